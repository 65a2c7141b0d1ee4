"""Circle CCTP V2 bridge adapter: native USDC <-> USDC across chains."""

from __future__ import annotations

from decimal import Decimal

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.models.route import RouteOption, RouteRequest, RouteType
from payrouter.routing.providers.base import BaseProvider, RoutingFamily

logger = structlog.get_logger()

# CCTP domain ids
CCTP_DOMAINS: dict[str, int] = {
    "ethereum": 0,
    "optimism": 2,
    "arbitrum": 3,
    "base": 6,
}

_DOMAIN_NAMES = {domain: name for name, domain in CCTP_DOMAINS.items()}

# Fallback estimate: ~0.01% with a one-cent floor, settles in about 30 seconds
ESTIMATE_FEE_RATE = Decimal("0.0001")
ESTIMATE_MIN_FEE = Decimal("0.01")
ESTIMATE_SECONDS = 30


class _CctpRoute(BaseModel):
    src_chain: int = Field(alias="srcChain")
    dst_chain: int = Field(alias="dstChain")
    amount: str
    fee: Decimal
    estimated_time: float = Field(alias="estimatedTime")


class _CctpQuoteResponse(BaseModel):
    routes: list[_CctpRoute] = []


class CctpBridgeProvider(BaseProvider):
    """Native USDC bridge routes.

    Without a Circle credential the provider still answers, with a
    deterministic estimate tagged as such in `provider`.
    """

    name = "Circle CCTP"
    namespace = "cctp"
    family = RoutingFamily.BRIDGE

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: RouterConfig | None = None,
    ) -> None:
        self._http = http_client
        self.config = config or DEFAULT_ROUTER_CONFIG

    def supports(self, request: RouteRequest) -> bool:
        """USDC on both sides, two different CCTP chains."""
        if request.from_token.upper() != "USDC" or request.to_token.upper() != "USDC":
            return False
        from_chain = request.from_chain.strip().lower()
        to_chain = request.to_chain.strip().lower()
        return from_chain != to_chain and from_chain in CCTP_DOMAINS and to_chain in CCTP_DOMAINS

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        if request.destination not in (None, "liquid") or not self.supports(request):
            return []

        src = CCTP_DOMAINS[request.from_chain.strip().lower()]
        dst = CCTP_DOMAINS[request.to_chain.strip().lower()]

        if not self.config.circle_api_key:
            return [self._estimate(src, dst, request.amount)]

        quotes = await self._fetch_quotes(src, dst, request)
        return [
            self._route(
                f"cctp-{_chain_name(q.src_chain)}-{_chain_name(q.dst_chain)}-{i}",
                _bridge_path(q.src_chain, q.dst_chain),
                self._format_usd(q.fee),
                self._format_duration(q.estimated_time),
                RouteType.STANDARD,
            )
            for i, q in enumerate(quotes)
        ]

    async def _fetch_quotes(
        self, src: int, dst: int, request: RouteRequest
    ) -> list[_CctpRoute]:
        url = f"{self.config.circle_api_url.rstrip('/')}/bridge/quotes"
        body = {
            "sourceChain": src,
            "destinationChain": dst,
            "amount": f"{request.amount:f}",
            "sourceToken": "USDC",
            "destinationToken": "USDC",
            "sender": request.from_address,
        }
        headers = {"Authorization": f"Bearer {self.config.circle_api_key}"}
        try:
            response = await self._http.post(url, json=body, headers=headers)
        except httpx.HTTPError as err:
            raise self._error(f"request failed: {err.__class__.__name__}") from err

        if response.status_code >= 400:
            raise self._error(f"Circle Bridge API {response.status_code}: {response.text[:200]}")

        try:
            return _CctpQuoteResponse.model_validate(response.json()).routes
        except (ValueError, ValidationError) as err:
            raise self._error("malformed response") from err

    def _estimate(self, src: int, dst: int, amount: Decimal) -> RouteOption:
        fee = max(ESTIMATE_MIN_FEE, amount * ESTIMATE_FEE_RATE)
        logger.debug("cctp_estimate_used", src=src, dst=dst, fee=str(fee))
        return self._route(
            f"cctp-{_chain_name(src)}-{_chain_name(dst)}-0",
            _bridge_path(src, dst),
            self._format_usd(fee),
            self._format_duration(ESTIMATE_SECONDS),
            RouteType.STANDARD,
            estimate=True,
        )


def _chain_name(domain: int) -> str:
    return _DOMAIN_NAMES.get(domain, str(domain))


def _bridge_path(src: int, dst: int) -> str:
    return (
        f"USDC on {_chain_name(src).capitalize()} -> "
        f"USDC on {_chain_name(dst).capitalize()} via CCTP V2"
    )


__all__ = ["CctpBridgeProvider", "CCTP_DOMAINS"]
