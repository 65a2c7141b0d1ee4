"""Fee tier table and fee engine configuration."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class FeeTier:
    """Volume bracket with its baseline fee rate.

    Attributes:
        name: Display name
        min_volume: Inclusive lower bound of monthly USD volume
        max_volume: Exclusive upper bound, None for the open top tier
        fee_rate_bps: Fee rate in basis points (may be fractional, e.g. 2.5)
    """

    name: str
    min_volume: Decimal
    max_volume: Decimal | None
    fee_rate_bps: Decimal

    def contains(self, volume: Decimal) -> bool:
        if volume < self.min_volume:
            return False
        return self.max_volume is None or volume < self.max_volume

    @property
    def fee_percent(self) -> str:
        """Rate as a display percentage, e.g. '0.15%'."""
        percent = (self.fee_rate_bps / 100).normalize()
        return f"{percent:f}%"


# Higher volume, lower fee
DEFAULT_FEE_TIERS: tuple[FeeTier, ...] = (
    FeeTier("Starter", Decimal(0), Decimal(1_000), Decimal(15)),
    FeeTier("Growth", Decimal(1_000), Decimal(10_000), Decimal(10)),
    FeeTier("Pro", Decimal(10_000), Decimal(100_000), Decimal(5)),
    FeeTier("Enterprise", Decimal(100_000), None, Decimal("2.5")),
)


def validate_tiers(tiers: tuple[FeeTier, ...] | list[FeeTier]) -> None:
    """Check that tiers partition [0, inf) in ascending order.

    The first tier must start at 0, each tier must start where the previous
    one ends, only the last tier may be open-ended, and rates must not
    increase with volume.

    Raises:
        ValueError: Describing the first violation found
    """
    if not tiers:
        raise ValueError("Fee tier table is empty")
    if tiers[0].min_volume != 0:
        raise ValueError(f"First tier must start at 0, starts at {tiers[0].min_volume}")

    for tier in tiers:
        if tier.fee_rate_bps < 0:
            raise ValueError(f"Tier {tier.name} has a negative fee rate")
        if tier.max_volume is not None and tier.max_volume <= tier.min_volume:
            raise ValueError(f"Tier {tier.name} has an empty volume range")

    for lower, upper in zip(tiers, tiers[1:]):
        if lower.max_volume is None:
            raise ValueError(f"Tier {lower.name} is open-ended but is not the last tier")
        if upper.min_volume != lower.max_volume:
            raise ValueError(
                f"Tiers {lower.name} and {upper.name} leave a gap or overlap "
                f"({lower.max_volume} vs {upper.min_volume})"
            )
        if upper.fee_rate_bps > lower.fee_rate_bps:
            raise ValueError(f"Tier {upper.name} charges more than {lower.name}")

    if tiers[-1].max_volume is not None:
        raise ValueError(f"Last tier {tiers[-1].name} must be open-ended")


@dataclass(frozen=True)
class FeeConfig:
    """Centralized configuration for protocol fee calculation.

    Attributes:
        tiers: Volume tier table, ascending by min_volume
        yield_share_rate: Protocol's cut of realized yield (never of principal)
        sender_discount: Fraction of the tier rate waived when only the
            sender is a registered participant
        bps_base: Basis-point denominator
        settlement_decimals: Precision of the settlement token. Fee amounts
            are truncated (ROUND_DOWN) to this many decimals.
    """

    tiers: tuple[FeeTier, ...] = DEFAULT_FEE_TIERS
    yield_share_rate: Decimal = Decimal("0.10")
    sender_discount: Decimal = Decimal("0.5")
    bps_base: int = 10_000
    settlement_decimals: int = 6


# Default configuration instance
DEFAULT_FEE_CONFIG = FeeConfig()
