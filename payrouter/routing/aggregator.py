"""Route aggregation across all registered providers.

For one routing request the aggregator:

1. Picks the registered providers (optionally a subset of routing families)
2. Serves each provider from the result cache when it can
3. Queries the rest concurrently, each bounded by a timeout
4. Turns every failure into a diagnostic route instead of raising
5. Merges and ranks everything into one sequence

A slow or failing provider never blocks or fails the others. If every
queried provider fails, a synthetic estimate is appended so the caller
still has a number to show.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

import structlog

from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.models.route import ESTIMATE_TAG, RouteOption, RouteRequest, RouteType
from payrouter.routing.cache import ResultCache
from payrouter.routing.providers.base import (
    ProviderError,
    RouteProvider,
    RoutingFamily,
    diagnostic_route,
)
from payrouter.routing.registry import ProviderRegistry

logger = structlog.get_logger()

# Synthetic quote used when no provider could answer
SYNTHETIC_PROVIDER = "Estimate"
SYNTHETIC_FEE_RATE = Decimal("0.001")
SYNTHETIC_MIN_FEE = Decimal("0.50")


@dataclass(frozen=True)
class ProviderOutcome:
    """What a single provider contributed to one aggregation."""

    namespace: str
    routes: tuple[RouteOption, ...]
    failed: bool = False
    cached: bool = False


class RouteAggregator:
    """Fans a routing request out to every registered provider.

    Args:
        registry: Providers to query
        cache: Shared quote cache. A fresh one is created if not provided.
        config: Timeout and TTL settings
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        cache: ResultCache[tuple[RouteOption, ...]] | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self.registry = registry
        self.config = config or DEFAULT_ROUTER_CONFIG
        self.cache = cache if cache is not None else ResultCache(self.config.cache_ttl_seconds)

    async def find_routes(
        self,
        request: RouteRequest,
        families: Iterable[RoutingFamily | str] | None = None,
        max_fee_usd: Decimal | None = None,
    ) -> list[RouteOption]:
        """Find, merge and rank routes for a request.

        Args:
            request: The routing request
            families: Restrict to these routing families (None = all)
            max_fee_usd: Receiver's fee cap. Routes above it are dropped
                unless that would leave nothing.

        Returns:
            Ranked routes. Empty when no provider had anything to offer.
        """
        providers = self.registry.providers(families)
        if not providers:
            logger.warning("no_providers_selected", families=families)
            return []

        outcomes = await asyncio.gather(*(self._query(p, request) for p in providers))

        merged = [route for outcome in outcomes for route in outcome.routes]
        if all(outcome.failed for outcome in outcomes):
            logger.warning(
                "all_providers_failed",
                providers=[o.namespace for o in outcomes],
                cache_key=request.cache_key(),
            )
            merged.append(synthetic_estimate(request))

        ranked = rank_routes(merged)
        if max_fee_usd is not None:
            ranked = filter_by_max_fee(ranked, max_fee_usd)

        logger.info(
            "routes_aggregated",
            providers=len(outcomes),
            cached=sum(1 for o in outcomes if o.cached),
            failed=sum(1 for o in outcomes if o.failed),
            routes=len(ranked),
        )
        return ranked

    async def _query(self, provider: RouteProvider, request: RouteRequest) -> ProviderOutcome:
        """Query one provider, through the cache, never raising."""
        key = f"{provider.namespace}:{request.cache_key()}"
        cached = self.cache.get(key)
        if cached is not None:
            return ProviderOutcome(provider.namespace, cached, cached=True)

        timeout = self.config.provider_timeout_seconds
        try:
            routes = await asyncio.wait_for(provider.find_routes(request), timeout=timeout)
        except TimeoutError:
            logger.warning("provider_timeout", provider=provider.namespace, timeout_seconds=timeout)
            return self._failure(provider, f"{provider.name} timed out after {timeout:g}s")
        except ProviderError as err:
            logger.warning("provider_error", provider=provider.namespace, detail=err.detail)
            return self._failure(provider, err.detail)
        except Exception:
            logger.exception("provider_unexpected_error", provider=provider.namespace)
            return self._failure(provider, f"{provider.name} failed unexpectedly")

        result = tuple(routes)
        self.cache.set(key, result)
        return ProviderOutcome(provider.namespace, result)

    @staticmethod
    def _failure(provider: RouteProvider, detail: str) -> ProviderOutcome:
        return ProviderOutcome(
            provider.namespace,
            (diagnostic_route(provider.namespace, provider.name, detail),),
            failed=True,
        )


def _rank_key(route: RouteOption) -> tuple[int, int, Decimal]:
    if route.is_diagnostic:
        group = 2
    elif route.is_estimate:
        group = 1
    else:
        group = 0
    fee = route.fee_usd
    return (group, fee is None, fee if fee is not None else Decimal(0))


def rank_routes(routes: list[RouteOption]) -> list[RouteOption]:
    """Live quotes first, then estimates, then diagnostics; cheapest first within each.

    The sort is stable, so equal-cost routes keep provider registration order.
    """
    return sorted(routes, key=_rank_key)


def filter_by_max_fee(routes: list[RouteOption], max_fee_usd: Decimal) -> list[RouteOption]:
    """Drop routes whose fee exceeds the cap; routes with unparseable fees stay.

    If nothing but diagnostics would survive, the input is returned unchanged.
    """
    if max_fee_usd <= 0:
        return routes
    kept = [r for r in routes if r.fee_usd is None or r.fee_usd <= max_fee_usd]
    if not any(not r.is_diagnostic for r in kept):
        return routes
    return kept


def synthetic_estimate(request: RouteRequest) -> RouteOption:
    """Best-effort quote when every provider failed."""
    fee = max(SYNTHETIC_MIN_FEE, request.amount * SYNTHETIC_FEE_RATE)
    return RouteOption(
        id="estimate-0",
        path=(
            f"{request.from_token.upper()} on {request.from_chain.lower()} -> "
            f"{request.to_token.upper()} on {request.to_chain.lower()}"
        ),
        fee=f"~${fee:.2f}",
        estimated_time="~5 min",
        provider=f"{SYNTHETIC_PROVIDER} {ESTIMATE_TAG}",
        route_type=RouteType.STANDARD,
    )


__all__ = [
    "ProviderOutcome",
    "RouteAggregator",
    "filter_by_max_fee",
    "rank_routes",
    "synthetic_estimate",
]
