"""Receiver strategy allocation.

A receiver declares how incoming funds should be split across destination
strategies (hold, yield deposit, restake). The allocator parses that
declaration and partitions a payment into legs that are routed
independently.

Usage:
    from payrouter.strategies import parse_allocation, split_amount

    allocations = parse_allocation("yield:60,restaking:40")
    legs = split_amount(Decimal("100"), allocations, decimals=6)
"""

from payrouter.strategies.allocation import (
    DEFAULT_ALLOCATION,
    AllocatedAmount,
    StrategyAllocation,
    StrategyAllocator,
    format_allocation,
    normalize_weights,
    parse_allocation,
    split_amount,
    validate_allocation_record,
)
from payrouter.strategies.catalog import (
    DEFAULT_STRATEGY,
    STRATEGIES,
    Strategy,
    StrategyId,
    get_strategy,
    resolve_strategy_id,
)

__all__ = [
    # Catalog
    "Strategy",
    "StrategyId",
    "STRATEGIES",
    "DEFAULT_STRATEGY",
    "get_strategy",
    "resolve_strategy_id",
    # Allocation
    "StrategyAllocation",
    "AllocatedAmount",
    "StrategyAllocator",
    "DEFAULT_ALLOCATION",
    "parse_allocation",
    "normalize_weights",
    "split_amount",
    "format_allocation",
    "validate_allocation_record",
]
