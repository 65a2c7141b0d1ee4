"""States and step results of the payment-required handshake."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from payrouter.models.payment import PaymentDetails, ProofV1, ProofV2


class AccessState(str, Enum):
    """Per-attempt handshake state.

    unprobed -> free | payment_required
    payment_required -> paid | pay_failed
    paid -> accessed
    """

    UNPROBED = "unprobed"
    FREE = "free"
    PAYMENT_REQUIRED = "payment_required"
    PAID = "paid"
    PAY_FAILED = "pay_failed"
    ACCESSED = "accessed"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing a resource.

    `payload` is set for free resources (parsed JSON, else raw text);
    `details` is set when payment is required.
    """

    state: AccessState
    url: str
    status_code: int
    payload: Any = None
    details: PaymentDetails | None = None

    @property
    def requires_payment(self) -> bool:
        return self.state is AccessState.PAYMENT_REQUIRED


@dataclass(frozen=True)
class PayOutcome:
    """Outcome of the pay step. Always carries the original requirements."""

    state: AccessState
    details: PaymentDetails
    reference: str | None = None
    error: str | None = None
    reused: bool = False

    @property
    def ok(self) -> bool:
        return self.state is AccessState.PAID


@dataclass(frozen=True)
class AccessResult:
    """Response from the resource after (or without) payment.

    state is ACCESSED when a proof was accepted, FREE when no payment was
    needed, and stays PAID when the server rejected the proof.
    """

    state: AccessState
    url: str
    status_code: int
    data: Any
    proof: ProofV1 | ProofV2 | None = None

    @property
    def ok(self) -> bool:
        return self.status_code < 400
