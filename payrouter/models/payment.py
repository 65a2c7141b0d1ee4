"""Pydantic models for the HTTP 402 payment-required handshake.

Payment proofs come in two generations that must coexist:

- ProofV1: a bare opaque proof string (tx hash, signed receipt).
- ProofV2: the opaque proof bound to the paying wallet, the time of
  payment and the requirements it satisfies.

Each variant owns its header serialization.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from payrouter.models.types import validate_amount

PROOF_HEADER = "X-Payment-Proof"
WALLET_HEADER = "X-Wallet-Address"
VERSION_HEADER = "X-Payment-Version"
# Header a gated resource may use to assert its requirements
REQUIREMENTS_HEADER = "X-Payment"


class PaymentDetails(BaseModel):
    """Requirements asserted by a gated resource on probe.

    Fields are kept as the server sent them so they can be echoed back
    unchanged in proofs and error responses.
    """

    amount: str
    token: str
    chain: str
    recipient: str

    model_config = {"frozen": True, "coerce_numbers_to_str": True}

    @property
    def amount_decimal(self) -> Decimal:
        """Amount as a Decimal; raises ValueError if the server sent garbage."""
        return validate_amount(self.amount)


class ProofV1(BaseModel):
    """Opaque proof string, the first-generation access credential."""

    version: Literal[1] = 1
    proof: str

    model_config = {"frozen": True}

    def to_headers(self) -> dict[str, str]:
        return {PROOF_HEADER: self.proof}


class ProofV2(BaseModel):
    """Structured proof binding a settlement reference to a wallet identity."""

    version: Literal[2] = 2
    proof: str = Field(description="Opaque settlement reference (tx hash, signed receipt)")
    wallet_address: str = Field(alias="walletAddress")
    paid_at: datetime = Field(alias="paidAt")
    payment_details: PaymentDetails = Field(alias="paymentDetails")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def create(
        cls,
        wallet_address: str,
        payment_details: PaymentDetails,
        proof: str = "",
        paid_at: datetime | None = None,
    ) -> "ProofV2":
        """Build a proof for a payment that has just settled."""
        return cls(
            proof=proof,
            wallet_address=wallet_address,
            paid_at=paid_at or datetime.now(UTC),
            payment_details=payment_details,
        )

    def to_headers(self) -> dict[str, str]:
        """Full JSON proof plus the terse wallet header and version marker."""
        return {
            PROOF_HEADER: self.model_dump_json(by_alias=True),
            WALLET_HEADER: self.wallet_address,
            VERSION_HEADER: str(self.version),
        }


PaymentProof = Annotated[ProofV1 | ProofV2, Field(discriminator="version")]


__all__ = [
    "PaymentDetails",
    "PaymentProof",
    "ProofV1",
    "ProofV2",
    "PROOF_HEADER",
    "WALLET_HEADER",
    "VERSION_HEADER",
    "REQUIREMENTS_HEADER",
]
