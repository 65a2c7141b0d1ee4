"""Base class and protocol for route providers."""

from __future__ import annotations

import math
from decimal import ROUND_DOWN, Decimal
from typing import Protocol

from payrouter.models.route import (
    ERROR_TAG,
    ESTIMATE_TAG,
    RouteOption,
    RouteRequest,
    RouteType,
    RoutingFamily,
)


class ProviderError(Exception):
    """Upstream failure inside a single provider (timeout, non-2xx, bad payload).

    Raised by providers and caught by the aggregator, which turns it into a
    diagnostic route. Never escapes aggregation.
    """

    def __init__(self, provider: str, detail: str) -> None:
        super().__init__(f"{provider}: {detail}")
        self.provider = provider
        self.detail = detail


class RouteProvider(Protocol):
    """Protocol for a liquidity/bridge source.

    Each provider knows which (token, chain) pairs it can service and
    normalizes its upstream response shape into RouteOption before
    returning. Contract:

    - Return [] when the request is outside the supported pairs.
    - Raise ProviderError on a genuine upstream failure.
    - Never raise for "not applicable".
    """

    name: str
    namespace: str
    family: RoutingFamily

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        """Find candidate routes for a request.

        Args:
            request: The routing request (one allocation leg)

        Returns:
            Routes from this source, possibly empty
        """
        ...


class BaseProvider:
    """Base class with shared provider utilities.

    Provides the common RouteOption builders and display formatting used
    by all provider adapters.
    """

    name: str = "unknown"
    namespace: str = "unknown"
    family: RoutingFamily = RoutingFamily.AGGREGATOR

    def _route(
        self,
        route_id: str,
        path: str,
        fee: str,
        estimated_time: str,
        route_type: RouteType | None = RouteType.STANDARD,
        *,
        estimate: bool = False,
    ) -> RouteOption:
        """Build a RouteOption attributed to this provider.

        Args:
            route_id: Stable id for the route
            path: Human-readable hop sequence
            fee: Display fee
            estimated_time: Display duration
            route_type: Route classification
            estimate: Tag the route as a fallback estimate, not a live quote
        """
        provider = f"{self.name} {ESTIMATE_TAG}" if estimate else self.name
        return RouteOption(
            id=route_id,
            path=path,
            fee=fee,
            estimated_time=estimated_time,
            provider=provider,
            route_type=route_type,
        )

    def _error(self, detail: str) -> ProviderError:
        return ProviderError(self.name, detail)

    @staticmethod
    def _format_usd(value: Decimal | float | str) -> str:
        return f"${Decimal(str(value)):.2f}"

    @staticmethod
    def _format_minutes(seconds: float) -> str:
        return f"{math.ceil(seconds / 60)} min"

    @staticmethod
    def _format_duration(seconds: float) -> str:
        """'~30s' under a minute, '~N min' otherwise."""
        if seconds < 60:
            return f"~{int(seconds)}s"
        return f"~{math.ceil(seconds / 60)} min"

    @staticmethod
    def _to_base_units(amount: Decimal, decimals: int) -> int:
        """Whole-token amount to integer base units, truncating dust."""
        scaled = (amount * (Decimal(10) ** decimals)).quantize(Decimal("1"), rounding=ROUND_DOWN)
        return int(scaled)


def diagnostic_route(namespace: str, provider_name: str, detail: str) -> RouteOption:
    """Single RouteOption explaining why a provider produced no routes."""
    return RouteOption(
        id=f"{namespace}-error",
        path=detail,
        fee="N/A",
        estimated_time="N/A",
        provider=f"{provider_name} {ERROR_TAG}",
        route_type=None,
    )


__all__ = [
    "BaseProvider",
    "ProviderError",
    "RouteProvider",
    "RoutingFamily",
    "diagnostic_route",
]
