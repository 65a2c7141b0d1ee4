"""Per-receiver payment volume, the input to tier classification."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import structlog

from payrouter.fees.calculator import DEFAULT_FEE_CALCULATOR, FeeCalculator
from payrouter.models.types import normalize_identifier, to_decimal

logger = structlog.get_logger()


@dataclass(frozen=True)
class VolumeRecord:
    """Volume snapshot for one receiver."""

    receiver: str
    monthly_volume: Decimal = Decimal(0)
    total_volume: Decimal = Decimal(0)
    payment_count: int = 0
    last_payment_at: datetime | None = None
    tier: str = ""


class VolumeTracker:
    """In-memory volume store keyed case-insensitively by receiver.

    Args:
        calculator: Used to label each record with its current tier
        clock: Returns the current time (UTC)
    """

    def __init__(
        self,
        calculator: FeeCalculator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.calculator = calculator or DEFAULT_FEE_CALCULATOR
        self._clock = clock or (lambda: datetime.now(UTC))
        self._records: dict[str, VolumeRecord] = {}

    def get_record(self, receiver: str) -> VolumeRecord:
        """Current record; receivers with no payments get an empty record."""
        key = normalize_identifier(receiver)
        record = self._records.get(key)
        if record is None:
            return VolumeRecord(receiver=key, tier=self.calculator.classify_tier(0).name)
        return record

    def record_payment(self, receiver: str, amount: Any) -> VolumeRecord:
        """Add a settled payment to the receiver's volume.

        Raises:
            ValueError: If amount is not a non-negative number
        """
        value = to_decimal(amount)
        if value is None or value < 0:
            raise ValueError(f"Payment amount must be a non-negative number, got {amount!r}")

        existing = self.get_record(receiver)
        monthly = existing.monthly_volume + value
        updated = dataclasses.replace(
            existing,
            monthly_volume=monthly,
            total_volume=existing.total_volume + value,
            payment_count=existing.payment_count + 1,
            last_payment_at=self._clock(),
            tier=self.calculator.classify_tier(monthly).name,
        )
        self._records[existing.receiver] = updated

        if updated.tier != existing.tier:
            logger.info(
                "receiver_tier_changed",
                receiver=updated.receiver,
                old_tier=existing.tier,
                new_tier=updated.tier,
            )
        return updated

    def leaderboard(self, limit: int = 10) -> list[VolumeRecord]:
        """Top receivers by monthly volume."""
        ranked = sorted(self._records.values(), key=lambda r: r.monthly_volume, reverse=True)
        return ranked[: max(0, limit)]

    def __len__(self) -> int:
        return len(self._records)
