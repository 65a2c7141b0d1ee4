"""Protocol fee calculator.

Rates come from a volume tier table and are then reduced by standing
incentives, evaluated in this order:

1. Receiver has pre-funded a gas allowance: fee waived.
2. Sender and receiver are both registered participants: fee waived.
3. Only the sender is registered: tier rate halved.
4. Otherwise: tier rate.

Inputs are advisory and never raise. Degenerate volumes classify into the
lowest tier and degenerate amounts are charged nothing.

Rounding: fee amounts are truncated (ROUND_DOWN) to the settlement token's
decimals, so a fee is never negative and never above the nominal rate.
"""

from __future__ import annotations

import dataclasses
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Any, Protocol

import structlog

from payrouter.fees.config import DEFAULT_FEE_CONFIG, FeeConfig, FeeTier, validate_tiers
from payrouter.fees.participants import InMemoryParticipantRegistry, ParticipantRegistry
from payrouter.fees.result import DiscountReason, FeeQuote, TierProgress, YieldShare
from payrouter.models.types import to_decimal

logger = structlog.get_logger()

_PERCENT = Decimal(100)
_PERCENT_PLACES = Decimal("0.01")


class FeeCalculator(Protocol):
    """Protocol for protocol-fee calculation.

    Different implementations can be used for testing or for different
    fee schedules.
    """

    participants: ParticipantRegistry

    @property
    def tiers(self) -> tuple[FeeTier, ...]: ...

    @property
    def yield_share_rate(self) -> Decimal: ...

    def classify_tier(self, monthly_volume: Any) -> FeeTier: ...

    def compute_fee(
        self,
        amount: Any,
        monthly_volume: Any,
        sender_id: str | None,
        receiver_id: str | None,
        has_funded_gas_allowance: bool = False,
    ) -> FeeQuote: ...

    def compute_yield_share(self, yield_earned: Any) -> YieldShare: ...

    def next_tier_progress(self, monthly_volume: Any) -> TierProgress: ...


class DefaultFeeCalculator:
    """Default tiered fee schedule with network-effect discounts.

    Attributes:
        config: Fee configuration. An invalid tier table is replaced by the
            default table (and logged) rather than rejected.
        participants: Registry used for network-effect discounts
    """

    def __init__(
        self,
        config: FeeConfig | None = None,
        participants: ParticipantRegistry | None = None,
    ):
        config = config or DEFAULT_FEE_CONFIG
        try:
            validate_tiers(config.tiers)
        except ValueError as err:
            logger.warning("fee_tiers_invalid_using_defaults", error=str(err))
            config = dataclasses.replace(config, tiers=DEFAULT_FEE_CONFIG.tiers)
        self.config = config
        self.participants = participants if participants is not None else InMemoryParticipantRegistry()
        self._unit = Decimal(1).scaleb(-config.settlement_decimals)

    @property
    def tiers(self) -> tuple[FeeTier, ...]:
        return self.config.tiers

    @property
    def yield_share_rate(self) -> Decimal:
        return self.config.yield_share_rate

    def _volume(self, monthly_volume: Any) -> Decimal | None:
        volume = to_decimal(monthly_volume)
        if volume is None or volume < 0:
            return None
        return volume

    def classify_tier(self, monthly_volume: Any) -> FeeTier:
        """Tier whose [min_volume, max_volume) interval contains the volume.

        Tiers are scanned from the highest threshold down; the lowest tier
        is the default for degenerate input (None, negative, NaN, garbage).
        """
        volume = self._volume(monthly_volume)
        if volume is None:
            logger.debug("fee_tier_degenerate_volume", monthly_volume=str(monthly_volume))
            return self.tiers[0]

        for tier in reversed(self.tiers):
            if volume >= tier.min_volume:
                return tier
        return self.tiers[0]

    def _is_registered(self, identifier: str | None) -> bool:
        return bool(identifier) and self.participants.contains(identifier)

    def compute_fee(
        self,
        amount: Any,
        monthly_volume: Any,
        sender_id: str | None,
        receiver_id: str | None,
        has_funded_gas_allowance: bool = False,
    ) -> FeeQuote:
        """Fee owed on one payment.

        Args:
            amount: Payment amount in settlement token units
            monthly_volume: Receiver's trailing monthly USD volume
            sender_id: Paying identity (address or name)
            receiver_id: Receiving identity (address or name)
            has_funded_gas_allowance: Receiver has pre-funded a gas allowance

        Returns:
            FeeQuote with the effective rate and truncated fee amount
        """
        tier = self.classify_tier(monthly_volume)

        if has_funded_gas_allowance:
            return FeeQuote(tier, Decimal(0), Decimal(0), DiscountReason.GAS_ALLOWANCE)

        sender_registered = self._is_registered(sender_id)
        receiver_registered = self._is_registered(receiver_id)

        if sender_registered and receiver_registered:
            return FeeQuote(
                tier,
                Decimal(0),
                Decimal(0),
                DiscountReason.INTERNAL_PAYMENT,
                network_discount=Decimal(1),
            )

        rate = tier.fee_rate_bps
        reason = None
        discount = Decimal(0)
        if sender_registered:
            discount = self.config.sender_discount
            rate = rate * (1 - discount)
            reason = DiscountReason.REGISTERED_SENDER

        return FeeQuote(tier, rate, self._fee_amount(amount, rate), reason, network_discount=discount)

    def _fee_amount(self, amount: Any, rate_bps: Decimal) -> Decimal:
        value = to_decimal(amount)
        if value is None or value <= 0:
            if value is None:
                logger.warning("fee_amount_degenerate", amount=str(amount))
            return Decimal(0)
        fee = value * rate_bps / self.config.bps_base
        return fee.quantize(self._unit, rounding=ROUND_DOWN)

    def compute_yield_share(self, yield_earned: Any) -> YieldShare:
        """Protocol's cut of realized yield; the receiver keeps the rest.

        Applies to yield only, never principal, and is independent of the
        fee tier. The protocol share is truncated to token precision and
        the receiver share is the exact difference.
        """
        value = to_decimal(yield_earned)
        if value is None or value <= 0:
            return YieldShare(Decimal(0), Decimal(0))
        protocol = (value * self.config.yield_share_rate).quantize(self._unit, rounding=ROUND_DOWN)
        return YieldShare(protocol_share=protocol, receiver_share=value - protocol)

    def next_tier_progress(self, monthly_volume: Any) -> TierProgress:
        """Progress from the current tier's floor to the next tier.

        Exactly 0% at a tier boundary, 100% (and no next tier) at the top.
        """
        volume = self._volume(monthly_volume) or Decimal(0)
        current = self.classify_tier(volume)
        index = self.tiers.index(current)

        if index == len(self.tiers) - 1:
            return TierProgress(current, None, Decimal(0), _PERCENT)

        upcoming = self.tiers[index + 1]
        span = upcoming.min_volume - current.min_volume
        progress = (volume - current.min_volume) / span * _PERCENT
        percent = min(_PERCENT, max(Decimal(0), progress)).quantize(
            _PERCENT_PLACES, rounding=ROUND_HALF_UP
        )
        return TierProgress(
            current_tier=current,
            next_tier=upcoming,
            volume_remaining=max(Decimal(0), upcoming.min_volume - volume),
            percent_complete=percent,
        )


# Default calculator instance
DEFAULT_FEE_CALCULATOR = DefaultFeeCalculator()
