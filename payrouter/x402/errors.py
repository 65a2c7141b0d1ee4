"""Errors raised by the payment-required protocol client."""

from __future__ import annotations

from payrouter.models.payment import PaymentDetails


class X402Error(Exception):
    """Base class for payment-required protocol failures."""

    def __init__(self, url: str, detail: str) -> None:
        super().__init__(f"{url}: {detail}")
        self.url = url
        self.detail = detail


class AmbiguousPaymentRequired(X402Error):
    """Server answered 402 but asserted no parsable payment requirements.

    Distinct from "no payment required": the resource is gated, we just
    cannot tell what it wants.
    """


class ResourceAccessError(X402Error):
    """The gated resource could not be reached (transport failure)."""


class PaymentFailed(X402Error):
    """The payment step failed. Carries the original requirements so the
    caller can retry or pick another payment method."""

    def __init__(self, url: str, details: PaymentDetails, reason: str) -> None:
        super().__init__(url, f"payment failed: {reason}")
        self.details = details
        self.reason = reason
