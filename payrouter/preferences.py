"""Receiver preference records (text-record style key/value store).

The relay only reads and writes strings; persistence belongs to the
store implementation (ENS text records in production).
"""

from __future__ import annotations

from typing import Protocol

import structlog

from payrouter.models.types import normalize_identifier
from payrouter.strategies import StrategyAllocation, format_allocation, parse_allocation

logger = structlog.get_logger()

# Text record keys
STRATEGIES_KEY = "flowfi.strategies"  # Multi-destination: "yield:60,restaking:40"
STRATEGY_KEY = "flowfi.strategy"  # Single destination: "restaking"


class PreferenceStore(Protocol):
    """Key/value text records keyed by receiver identity."""

    async def get_record(self, identity: str, key: str) -> str | None: ...

    async def set_record(self, identity: str, key: str, value: str) -> None: ...


class InMemoryPreferenceStore:
    """PreferenceStore kept in a dict. Identities are case-insensitive."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], str] = {}

    async def get_record(self, identity: str, key: str) -> str | None:
        return self._records.get((normalize_identifier(identity), key))

    async def set_record(self, identity: str, key: str, value: str) -> None:
        self._records[(normalize_identifier(identity), key)] = value


async def load_allocation(store: PreferenceStore, identity: str) -> list[StrategyAllocation]:
    """Receiver's allocation; the multi-destination record wins over the single one."""
    multi = await store.get_record(identity, STRATEGIES_KEY)
    single = await store.get_record(identity, STRATEGY_KEY)
    return parse_allocation(multi, single)


async def save_allocation(
    store: PreferenceStore,
    identity: str,
    allocations: list[StrategyAllocation],
) -> str:
    """Write allocations to the multi-destination record.

    Returns:
        The record value written
    """
    record = format_allocation(allocations)
    await store.set_record(identity, STRATEGIES_KEY, record)
    logger.info("strategy_preference_saved", receiver=normalize_identifier(identity), record=record)
    return record
