"""Route discovery.

This package finds and ranks settlement routes across liquidity and
bridge providers.

Module structure:
- cache.py: ResultCache, TTL cache for provider quotes
- providers/: One adapter per liquidity/bridge source
- registry.py: ProviderRegistry for provider lookup by namespace and family
- aggregator.py: RouteAggregator fan-out, merge, rank and degrade
"""

from payrouter.routing.aggregator import RouteAggregator, rank_routes
from payrouter.routing.cache import ResultCache
from payrouter.routing.registry import ProviderRegistry, build_default_registry

__all__ = [
    "ProviderRegistry",
    "ResultCache",
    "RouteAggregator",
    "build_default_registry",
    "rank_routes",
]
