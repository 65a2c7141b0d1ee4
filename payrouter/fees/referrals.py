"""Referral rewards: a share of the protocol fee paid to whoever referred a receiver."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import ROUND_DOWN, Decimal
from typing import Any

import structlog

from payrouter.models.types import normalize_identifier, to_decimal

logger = structlog.get_logger()

REFERRAL_FEE_SHARE = Decimal("0.50")
REFERRAL_DURATION = timedelta(days=180)


class ReferralError(ValueError):
    """Raised when a referral cannot be registered."""


@dataclass
class Referral:
    referrer: str
    referred: str
    created_at: datetime
    expires_at: datetime
    total_earned: Decimal = Decimal(0)

    def is_active(self, now: datetime) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class ReferralReward:
    """Split of one protocol fee between referrer and protocol."""

    referrer: str | None
    reward: Decimal
    net_protocol_fee: Decimal


@dataclass(frozen=True)
class ReferrerStats:
    referrer: str
    total_referrals: int
    active_referrals: int
    total_earned: Decimal


class ReferralBook:
    """In-memory referral registry.

    Each receiver has at most one referrer, nobody may refer themselves,
    and a referral earns for a fixed period after registration.

    Args:
        fee_share: Fraction of the protocol fee paid to the referrer
        duration: How long a referral keeps earning
        decimals: Precision rewards are truncated to
        clock: Returns the current time (UTC)
    """

    def __init__(
        self,
        fee_share: Decimal = REFERRAL_FEE_SHARE,
        duration: timedelta = REFERRAL_DURATION,
        decimals: int = 6,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.fee_share = fee_share
        self.duration = duration
        self._unit = Decimal(1).scaleb(-decimals)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._by_referred: dict[str, Referral] = {}

    def register(self, referrer: str, referred: str, at: datetime | None = None) -> Referral:
        """Record that `referrer` brought in `referred`.

        Raises:
            ReferralError: On self-referral or if `referred` already has a referrer
        """
        referrer_key = normalize_identifier(referrer)
        referred_key = normalize_identifier(referred)
        if not referrer_key or not referred_key:
            raise ReferralError("Referrer and referred must be non-empty")
        if referrer_key == referred_key:
            raise ReferralError("Cannot refer yourself")
        if referred_key in self._by_referred:
            raise ReferralError(f"{referred_key} already has a referrer")

        created = at or self._clock()
        referral = Referral(referrer_key, referred_key, created, created + self.duration)
        self._by_referred[referred_key] = referral
        logger.info("referral_registered", referrer=referrer_key, referred=referred_key)
        return referral

    def get_referrer(self, referred: str) -> str | None:
        """Active referrer for a receiver, None if none or expired."""
        referral = self._by_referred.get(normalize_identifier(referred))
        if referral is None or not referral.is_active(self._clock()):
            return None
        return referral.referrer

    def calculate_reward(self, receiver: str, protocol_fee: Any) -> ReferralReward:
        """How much of a protocol fee goes to the receiver's referrer."""
        fee = to_decimal(protocol_fee)
        if fee is None or fee <= 0:
            return ReferralReward(None, Decimal(0), max(fee or Decimal(0), Decimal(0)))

        referrer = self.get_referrer(receiver)
        if referrer is None:
            return ReferralReward(None, Decimal(0), fee)

        reward = (fee * self.fee_share).quantize(self._unit, rounding=ROUND_DOWN)
        return ReferralReward(referrer, reward, fee - reward)

    def record_earning(self, referred: str, amount: Any) -> None:
        """Credit a paid-out reward to an active referral."""
        referral = self._by_referred.get(normalize_identifier(referred))
        value = to_decimal(amount)
        if referral is None or value is None or value <= 0:
            return
        if referral.is_active(self._clock()):
            referral.total_earned += value

    def stats(self, referrer: str) -> ReferrerStats:
        key = normalize_identifier(referrer)
        now = self._clock()
        referrals = [r for r in self._by_referred.values() if r.referrer == key]
        return ReferrerStats(
            referrer=key,
            total_referrals=len(referrals),
            active_referrals=sum(1 for r in referrals if r.is_active(now)),
            total_earned=sum((r.total_earned for r in referrals), Decimal(0)),
        )
