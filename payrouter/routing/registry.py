"""Centralized registry of route providers.

The registry maps each provider namespace to its adapter and groups
providers by routing family, so the aggregator can fan out to "all
providers" or to a caller-selected subset without knowing any concrete
provider type. Adding a source means registering one more adapter.
"""

from __future__ import annotations

from collections.abc import Iterable

import httpx

from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.routing.providers import (
    CctpBridgeProvider,
    DirectTransferProvider,
    LiFiComposerProvider,
    LiFiProvider,
    LiFiRestakingProvider,
    RouteProvider,
    RoutingFamily,
    V4HookProvider,
)


class ProviderRegistry:
    """Registry of route providers keyed by namespace.

    Registration order is preserved and is the tie-break when ranking
    routes of equal cost.

    Usage:
        registry = ProviderRegistry()
        registry.register(LiFiProvider(http_client))
        registry.register(CctpBridgeProvider(http_client))

        # Later in the aggregator:
        for provider in registry.providers(families={RoutingFamily.BRIDGE}):
            ...
    """

    def __init__(self) -> None:
        """Initialize an empty provider registry."""
        self._providers: dict[str, RouteProvider] = {}

    def register(self, provider: RouteProvider) -> None:
        """Register a provider. Re-registering a namespace replaces it in place.

        Args:
            provider: The RouteProvider implementation
        """
        self._providers[provider.namespace] = provider

    def get(self, namespace: str) -> RouteProvider | None:
        return self._providers.get(namespace)

    def providers(
        self, families: Iterable[RoutingFamily | str] | None = None
    ) -> list[RouteProvider]:
        """Registered providers, optionally restricted to routing families.

        Args:
            families: Families to include. None means every family.

        Returns:
            Providers in registration order
        """
        if families is None:
            return list(self._providers.values())
        wanted = {RoutingFamily(f) for f in families}
        return [p for p in self._providers.values() if p.family in wanted]

    @property
    def namespaces(self) -> list[str]:
        return list(self._providers)

    def is_registered(self, namespace: str) -> bool:
        return namespace in self._providers

    def __len__(self) -> int:
        return len(self._providers)


def build_default_registry(
    http_client: httpx.AsyncClient,
    config: RouterConfig | None = None,
) -> ProviderRegistry:
    """Registry with every built-in provider.

    Order: direct, hook, bridge, then aggregators, so cheap deterministic
    routes win ties against aggregator quotes.
    """
    config = config or DEFAULT_ROUTER_CONFIG
    registry = ProviderRegistry()
    registry.register(DirectTransferProvider())
    registry.register(V4HookProvider())
    registry.register(CctpBridgeProvider(http_client, config))
    registry.register(LiFiProvider(http_client, config))
    registry.register(LiFiComposerProvider(http_client, config))
    registry.register(LiFiRestakingProvider(http_client, config))
    return registry


__all__ = ["ProviderRegistry", "build_default_registry"]
