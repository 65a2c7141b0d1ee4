"""Registered network participants, for network-effect discounts.

The fee engine only needs membership checks, so it depends on the
ParticipantRegistry protocol. The in-memory implementation is
process-wide and append-only; production deployments back the protocol
with a durable store.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from payrouter.models.types import normalize_identifier


class ParticipantRegistry(Protocol):
    """Set of registered identifiers (addresses or ENS-style names).

    All lookups are case-insensitive.
    """

    def contains(self, identifier: str) -> bool: ...

    def add(self, identifier: str) -> None: ...

    def get(self, identifier: str) -> str | None:
        """Stored (normalized) form of an identifier, None if not registered."""
        ...

    def count(self) -> int: ...


class InMemoryParticipantRegistry:
    """ParticipantRegistry backed by a set. Entries are never removed."""

    def __init__(self, identifiers: Iterable[str] = ()) -> None:
        self._members: set[str] = set()
        for identifier in identifiers:
            self.add(identifier)

    def contains(self, identifier: str) -> bool:
        if not identifier:
            return False
        return normalize_identifier(identifier) in self._members

    def add(self, identifier: str) -> None:
        if not identifier or not identifier.strip():
            raise ValueError("Participant identifier cannot be empty")
        self._members.add(normalize_identifier(identifier))

    def get(self, identifier: str) -> str | None:
        key = normalize_identifier(identifier) if identifier else ""
        return key if key in self._members else None

    def count(self) -> int:
        return len(self._members)

    def __contains__(self, identifier: object) -> bool:
        return isinstance(identifier, str) and self.contains(identifier)

    def __len__(self) -> int:
        return self.count()


def participant_pairs(registry: ParticipantRegistry) -> int:
    """Ordered participant pairs, i.e. potential zero-fee payment routes: n * (n - 1)."""
    n = registry.count()
    return n * (n - 1) if n > 1 else 0
