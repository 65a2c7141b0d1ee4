"""Route provider adapters.

Each provider wraps one liquidity/bridge source:
- DirectTransferProvider: same token, same chain
- LiFiProvider: swap/bridge aggregator routes
- LiFiComposerProvider: bridge + vault deposit (yield destination)
- LiFiRestakingProvider: bridge + restaking router call (restaking destination)
- CctpBridgeProvider: native USDC cross-chain transfers
- V4HookProvider: same-chain stablecoin hook pools

The RouteProvider protocol defines the common interface for all providers.
"""

from payrouter.routing.providers.base import (
    BaseProvider,
    ProviderError,
    RouteProvider,
    RoutingFamily,
    diagnostic_route,
)
from payrouter.routing.providers.cctp import CctpBridgeProvider
from payrouter.routing.providers.direct import DirectTransferProvider
from payrouter.routing.providers.lifi import (
    LiFiComposerProvider,
    LiFiProvider,
    LiFiRestakingProvider,
)
from payrouter.routing.providers.v4_hook import V4HookProvider

__all__ = [
    "BaseProvider",
    "ProviderError",
    "RouteProvider",
    "RoutingFamily",
    "diagnostic_route",
    "CctpBridgeProvider",
    "DirectTransferProvider",
    "LiFiProvider",
    "LiFiComposerProvider",
    "LiFiRestakingProvider",
    "V4HookProvider",
]
