"""Routing configuration for the relay."""

import os
from dataclasses import dataclass, field

LIFI_API_URL = "https://li.quest/v1"
CIRCLE_API_URL = "https://api.circle.com/v1"

# Exchanges excluded from aggregator routes unless the caller asks otherwise
DEFAULT_DENY_EXCHANGES = ("nordstern",)


@dataclass(frozen=True)
class RouterConfig:
    """Centralized configuration for route discovery.

    Attributes:
        provider_timeout_seconds: Upper bound on a single provider call.
            A provider that does not answer in time counts as failed for
            that request only.
        cache_ttl_seconds: How long a provider's quote result is reused.
        default_slippage: Slippage sent to aggregators when the request has none.
        lifi_api_url: Base URL of the LI.FI quote API.
        lifi_integrator: Integrator tag sent to LI.FI.
        lifi_max_routes: Number of aggregator routes kept per request.
        circle_api_url: Base URL of the Circle bridge quote API.
        circle_api_key: Circle credential. When unset the CCTP provider
            returns a deterministic estimate instead of a live quote.
        deny_exchanges: Exchanges always excluded from aggregator routes.
    """

    provider_timeout_seconds: float = 20.0
    cache_ttl_seconds: float = 30.0
    default_slippage: float = 0.005
    lifi_api_url: str = LIFI_API_URL
    lifi_integrator: str = "payrouter"
    lifi_max_routes: int = 3
    circle_api_url: str = CIRCLE_API_URL
    circle_api_key: str | None = field(default=None, repr=False)
    deny_exchanges: tuple[str, ...] = DEFAULT_DENY_EXCHANGES

    @classmethod
    def from_env(cls) -> "RouterConfig":
        """Build a config from environment variables.

        - PAYROUTER_PROVIDER_TIMEOUT: provider timeout in seconds (default: 20)
        - PAYROUTER_CACHE_TTL: quote cache TTL in seconds (default: 30)
        - LIFI_API_URL / LIFI_INTEGRATOR: LI.FI endpoint and integrator tag
        - CIRCLE_API_KEY: enables live CCTP quotes
        """
        return cls(
            provider_timeout_seconds=float(os.environ.get("PAYROUTER_PROVIDER_TIMEOUT", "20")),
            cache_ttl_seconds=float(os.environ.get("PAYROUTER_CACHE_TTL", "30")),
            lifi_api_url=os.environ.get("LIFI_API_URL", LIFI_API_URL),
            lifi_integrator=os.environ.get("LIFI_INTEGRATOR", "payrouter"),
            circle_api_key=os.environ.get("CIRCLE_API_KEY") or None,
        )


# Default configuration instance
DEFAULT_ROUTER_CONFIG = RouterConfig()
