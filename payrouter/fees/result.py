"""Fee engine result types."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payrouter.fees.config import FeeTier


class DiscountReason(Enum):
    """Why the effective rate differs from the tier rate."""

    GAS_ALLOWANCE = "gas_allowance"  # Receiver pre-funded gas, fee waived
    INTERNAL_PAYMENT = "internal_payment"  # Both parties registered
    REGISTERED_SENDER = "registered_sender"  # Only the sender registered


@dataclass(frozen=True)
class FeeQuote:
    """Fee owed on a single settled payment.

    Attributes:
        tier: Volume tier the receiver falls in
        fee_rate_bps: Effective rate after discounts
        fee_amount: Fee in settlement token units, truncated to token precision
        discount_reason: Set when any discount applied
        network_discount: Fraction of the tier rate waived by network membership
            (0, 0.5 or 1)

    Examples:
        quote = calculator.compute_fee(Decimal("1000"), Decimal("0"), "a.eth", "b.eth")
        quote.fee_rate_bps   # Decimal("15")
        quote.fee_amount     # Decimal("1.500000")
    """

    tier: FeeTier
    fee_rate_bps: Decimal
    fee_amount: Decimal
    discount_reason: DiscountReason | None = None
    network_discount: Decimal = Decimal(0)

    @property
    def is_waived(self) -> bool:
        return self.fee_rate_bps == 0

    @property
    def fee_percent(self) -> str:
        percent = (self.fee_rate_bps / 100).normalize()
        return f"{percent:f}%"


@dataclass(frozen=True)
class YieldShare:
    """Split of realized yield. The two shares always sum to the yield."""

    protocol_share: Decimal
    receiver_share: Decimal

    @property
    def total(self) -> Decimal:
        return self.protocol_share + self.receiver_share


@dataclass(frozen=True)
class TierProgress:
    """Where a monthly volume sits relative to the next tier.

    Attributes:
        current_tier: Tier for the volume
        next_tier: Next cheaper tier, None at the top
        volume_remaining: Volume still needed to reach next_tier (0 at the top)
        percent_complete: Progress through the current tier, clamped to [0, 100]
    """

    current_tier: FeeTier
    next_tier: FeeTier | None
    volume_remaining: Decimal
    percent_complete: Decimal
