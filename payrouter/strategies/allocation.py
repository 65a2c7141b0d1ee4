"""Parsing, normalizing and applying receiver strategy allocations.

An allocation record looks like ``"yield:60,restaking:40"``. Parsing never
raises: unknown ids, non-integer or non-positive weights are dropped, and
what survives is renormalized to whole percentages summing to exactly 100
with the largest-remainder method (ties go to the earlier entry). An
allocation with nothing left degrades to 100% hold-as-is.

Splitting works in integer base units of the settlement token, so the
legs always add back up to the total (truncated to token precision). The
rounding remainder goes to the first allocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

import structlog

from payrouter.models.types import to_decimal
from payrouter.strategies.catalog import DEFAULT_STRATEGY, StrategyId, resolve_strategy_id

logger = structlog.get_logger()

ENTRY_SEPARATOR = ","
WEIGHT_SEPARATOR = ":"
FULL_ALLOCATION = 100


@dataclass(frozen=True)
class StrategyAllocation:
    """One destination's share of an incoming payment, in whole percent."""

    destination_id: StrategyId
    percentage: int


@dataclass(frozen=True)
class AllocatedAmount:
    """A leg of a split payment."""

    destination_id: StrategyId
    amount: Decimal


DEFAULT_ALLOCATION = (StrategyAllocation(DEFAULT_STRATEGY, FULL_ALLOCATION),)


def _parse_entries(record: str) -> list[tuple[StrategyId, int]]:
    """Valid (id, weight) pairs in declaration order, duplicates merged."""
    weights: dict[StrategyId, int] = {}
    for raw in record.split(ENTRY_SEPARATOR):
        entry = raw.strip()
        if not entry:
            continue
        destination, sep, weight_text = entry.partition(WEIGHT_SEPARATOR)
        destination_id = resolve_strategy_id(destination)
        try:
            weight = int(weight_text.strip()) if sep else 0
        except ValueError:
            weight = 0
        if destination_id is None or weight <= 0:
            logger.debug("allocation_entry_dropped", entry=entry)
            continue
        weights[destination_id] = weights.get(destination_id, 0) + weight
    return list(weights.items())


def normalize_weights(entries: list[tuple[StrategyId, int]]) -> list[StrategyAllocation]:
    """Scale positive integer weights to whole percentages summing to 100.

    Largest-remainder method: every entry gets the floor of its exact
    share, then the leftover points go one each to the largest fractional
    remainders. Equal remainders are resolved in declaration order.
    Entries that end up at 0% are dropped.
    """
    total = sum(weight for _, weight in entries)
    if total <= 0:
        return []

    floors = [weight * FULL_ALLOCATION // total for _, weight in entries]
    remainders = [weight * FULL_ALLOCATION % total for _, weight in entries]
    leftover = FULL_ALLOCATION - sum(floors)

    by_remainder = sorted(range(len(entries)), key=lambda i: (-remainders[i], i))
    for index in by_remainder[:leftover]:
        floors[index] += 1

    return [
        StrategyAllocation(destination_id, percentage)
        for (destination_id, _), percentage in zip(entries, floors)
        if percentage > 0
    ]


def parse_allocation(multi: str | None, single: str | None = None) -> list[StrategyAllocation]:
    """Resolve a receiver's allocation from their preference records.

    Args:
        multi: Multi-destination record, e.g. "yield:60,restaking:40".
            Takes precedence when present.
        single: Single-destination fallback, e.g. "restaking"

    Returns:
        Allocations whose percentages are positive and sum to 100
    """
    if multi and multi.strip():
        allocations = normalize_weights(_parse_entries(multi))
        if allocations:
            return allocations
        logger.info("allocation_degraded_to_default", record=multi)
        return list(DEFAULT_ALLOCATION)

    destination_id = resolve_strategy_id(single)
    if destination_id is not None:
        return [StrategyAllocation(destination_id, FULL_ALLOCATION)]
    return list(DEFAULT_ALLOCATION)


def split_amount(
    total: Decimal | str | int,
    allocations: list[StrategyAllocation],
    decimals: int = 6,
) -> list[AllocatedAmount]:
    """Split a payment amount across allocations by weight.

    Args:
        total: Amount in whole token units
        allocations: Normalized allocations (percentages summing to 100)
        decimals: Settlement token precision

    Returns:
        One leg per allocation, in allocation order. Legs sum to `total`
        truncated to `decimals`; the rounding remainder goes to the first leg.
        A degenerate total (negative, NaN, garbage) splits as zero.
    """
    if not allocations or sum(a.percentage for a in allocations) <= 0:
        allocations = list(DEFAULT_ALLOCATION)

    amount = to_decimal(total)
    if amount is None or amount < 0:
        logger.warning("split_amount_invalid_total", total=str(total))
        amount = Decimal(0)

    scale = Decimal(10) ** decimals
    base_units = int((amount * scale).to_integral_value(rounding=ROUND_DOWN))
    weight_total = sum(a.percentage for a in allocations)

    shares = [base_units * a.percentage // weight_total for a in allocations]
    shares[0] += base_units - sum(shares)

    return [
        AllocatedAmount(a.destination_id, Decimal(units).scaleb(-decimals))
        for a, units in zip(allocations, shares)
    ]


def format_allocation(allocations: list[StrategyAllocation]) -> str:
    """Serialize allocations back into a preference record."""
    if not allocations:
        allocations = list(DEFAULT_ALLOCATION)
    return ENTRY_SEPARATOR.join(
        f"{a.destination_id.value}{WEIGHT_SEPARATOR}{a.percentage}"
        for a in allocations
        if a.percentage > 0
    )


def validate_allocation_record(record: str) -> list[StrategyAllocation]:
    """Strict parse for records a receiver is about to store.

    Unlike parse_allocation, nothing is dropped or rescaled: every entry
    must name a known destination with a whole percentage in (0, 100],
    and the percentages must already add up to 100.

    Raises:
        ValueError: Describing the first problem found
    """
    allocations: list[StrategyAllocation] = []
    seen: set[StrategyId] = set()
    for raw in record.split(ENTRY_SEPARATOR):
        destination, sep, weight_text = raw.strip().partition(WEIGHT_SEPARATOR)
        destination_id = resolve_strategy_id(destination)
        if destination_id is None:
            raise ValueError(f"Invalid strategy type: {destination.strip()!r}")
        if destination_id in seen:
            raise ValueError(f"Duplicate strategy: {destination_id.value}")
        try:
            percentage = int(weight_text.strip()) if sep else -1
        except ValueError:
            percentage = -1
        if not 0 < percentage <= FULL_ALLOCATION:
            raise ValueError(f"Invalid percentage for {destination_id.value}: {weight_text.strip()!r}")
        seen.add(destination_id)
        allocations.append(StrategyAllocation(destination_id, percentage))

    total = sum(a.percentage for a in allocations)
    if total != FULL_ALLOCATION:
        raise ValueError(f"Allocations must sum to 100%, got {total}%")
    return allocations


class StrategyAllocator:
    """Turns a receiver's preference records into per-destination legs.

    Args:
        decimals: Settlement token precision used for splitting
    """

    def __init__(self, decimals: int = 6) -> None:
        self.decimals = decimals

    def allocate(
        self,
        total: Decimal | str | int,
        multi: str | None = None,
        single: str | None = None,
    ) -> list[AllocatedAmount]:
        allocations = parse_allocation(multi, single)
        return split_amount(total, allocations, self.decimals)


__all__ = [
    "AllocatedAmount",
    "DEFAULT_ALLOCATION",
    "StrategyAllocation",
    "StrategyAllocator",
    "format_allocation",
    "normalize_weights",
    "parse_allocation",
    "split_amount",
    "validate_allocation_record",
]
