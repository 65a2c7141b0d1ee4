"""LI.FI aggregator adapters.

Three route shapes come from the same upstream API:

- LiFiProvider: plain swap/bridge routes (/advanced/routes)
- LiFiComposerProvider: bridge + vault deposit for the yield destination (/quote)
- LiFiRestakingProvider: bridge + restaking router call (/quote/contractCalls)

Upstream JSON is validated into the models below and immediately
normalized into RouteOption; nothing LI.FI-specific leaves this module.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx
import structlog
from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import function_signature_to_4byte_selector
from pydantic import BaseModel, Field, ValidationError

from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.constants import (
    CHAIN_IDS,
    DEFAULT_VAULT_PROTOCOL,
    RESTAKING_GAS_LIMIT,
    RESTAKING_ROUTER,
    WETH_BASE,
    chain_id_for,
    get_token_address,
    get_token_decimals,
    get_vault_token_address,
)
from payrouter.models.route import RouteOption, RouteRequest, RouteType
from payrouter.models.types import is_valid_address
from payrouter.routing.providers.base import BaseProvider, ProviderError, RoutingFamily

logger = structlog.get_logger()

RESTAKING_CHAIN = "base"
DEPOSIT_SELECTOR = function_signature_to_4byte_selector("depositToRestaking(address,uint256)")


# --- Upstream response shapes ---


class _ToolDetails(BaseModel):
    name: str = ""


class _StepEstimate(BaseModel):
    execution_duration: float = Field(default=0, alias="executionDuration")


class _Step(BaseModel):
    type: str = ""
    tool_details: _ToolDetails | None = Field(default=None, alias="toolDetails")
    estimate: _StepEstimate | None = None

    @property
    def label(self) -> str:
        if self.tool_details is not None and self.tool_details.name:
            return self.tool_details.name
        return self.type


class _Route(BaseModel):
    gas_cost_usd: Decimal | None = Field(default=None, alias="gasCostUSD")
    steps: list[_Step] = []


class _RoutesResponse(BaseModel):
    routes: list[_Route] = []


class _GasCost(BaseModel):
    amount_usd: Decimal = Field(default=Decimal(0), alias="amountUSD")


class _QuoteEstimate(BaseModel):
    execution_duration: float | None = Field(default=None, alias="executionDuration")
    gas_costs: list[_GasCost] = Field(default=[], alias="gasCosts")
    to_amount_min: str | None = Field(default=None, alias="toAmountMin")


class _Quote(BaseModel):
    included_steps: list[_Step] = Field(default=[], alias="includedSteps")
    estimate: _QuoteEstimate | None = None

    def path(self, default: str, separator: str = " -> ") -> str:
        if not self.included_steps:
            return default
        return separator.join(step.label for step in self.included_steps)

    @property
    def gas_usd(self) -> Decimal:
        if self.estimate is None:
            return Decimal(0)
        return sum((g.amount_usd for g in self.estimate.gas_costs), Decimal(0))

    def duration_seconds(self) -> float | None:
        if self.estimate is None:
            return None
        return self.estimate.execution_duration


# --- Adapters ---


class _LiFiBase(BaseProvider):
    """Shared HTTP plumbing for LI.FI adapters."""

    family = RoutingFamily.AGGREGATOR

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: RouterConfig | None = None,
    ) -> None:
        self._http = http_client
        self.config = config or DEFAULT_ROUTER_CONFIG

    def _resolve_token(self, token: str, chain_id: int) -> str | None:
        """Direct 0x addresses pass through; symbols go through the token table."""
        if token.startswith("0x"):
            return token if is_valid_address(token) else None
        return get_token_address(token, chain_id)

    def _deny_list(self, request: RouteRequest) -> list[str]:
        deny = {d.strip().lower() for d in self.config.deny_exchanges}
        deny.update(d.strip().lower() for d in request.deny_exchanges)
        return sorted(d for d in deny if d)

    def _slippage(self, request: RouteRequest) -> float:
        return request.slippage or self.config.default_slippage

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Issue a request to LI.FI and return decoded JSON.

        Raises:
            ProviderError: On transport failure, non-2xx status or non-JSON body
        """
        url = f"{self.config.lifi_api_url.rstrip('/')}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as err:
            raise self._error(f"request failed: {err.__class__.__name__}") from err

        if response.status_code >= 400:
            raise self._error(_extract_error_detail(response))

        try:
            return response.json()
        except ValueError as err:
            raise self._error("malformed response (not JSON)") from err

    def _parse(self, model: type[BaseModel], payload: Any) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as err:
            raise self._error(f"malformed response ({err.error_count()} errors)") from err


class LiFiProvider(_LiFiBase):
    """Standard swap/bridge routes from the LI.FI aggregator."""

    name = "LI.FI"
    namespace = "lifi"

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        if request.destination not in (None, "liquid"):
            return []
        if not request.is_cross_chain and request.is_same_token:
            # Nothing to swap or bridge; the direct provider covers it
            return []

        from_chain_id = chain_id_for(request.from_chain)
        to_chain_id = chain_id_for(request.to_chain)
        if from_chain_id is None or to_chain_id is None:
            return []

        from_token = self._resolve_token(request.from_token, from_chain_id)
        to_token = self._resolve_token(request.to_token, to_chain_id)
        if from_token is None or to_token is None:
            return []

        body: dict[str, Any] = {
            "fromChainId": from_chain_id,
            "toChainId": to_chain_id,
            "fromTokenAddress": from_token,
            "toTokenAddress": to_token,
            "fromAmount": str(
                self._to_base_units(request.amount, get_token_decimals(request.from_token))
            ),
            "options": {
                "slippage": self._slippage(request),
                "integrator": self.config.lifi_integrator,
                "exchanges": {"deny": self._deny_list(request)},
            },
        }
        if request.from_address:
            # LI.FI validates checksums strictly; lowercase always passes
            body["fromAddress"] = request.from_address.lower()

        payload = await self._call("POST", "/advanced/routes", json=body)
        parsed: _RoutesResponse = self._parse(_RoutesResponse, payload)

        routes = []
        for i, route in enumerate(parsed.routes[: self.config.lifi_max_routes]):
            duration = sum(
                (step.estimate.execution_duration for step in route.steps if step.estimate),
                0.0,
            )
            routes.append(
                self._route(
                    f"lifi-route-{i}",
                    " -> ".join(step.label for step in route.steps),
                    self._format_usd(route.gas_cost_usd or 0),
                    self._format_minutes(duration),
                    RouteType.STANDARD,
                )
            )

        logger.debug("lifi_routes_found", count=len(routes), cache_key=request.cache_key())
        return routes


class LiFiComposerProvider(_LiFiBase):
    """Bridge/swap into a vault deposit in one route (yield destination)."""

    name = "LI.FI Composer"
    namespace = "lifi-composer"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        config: RouterConfig | None = None,
        vault_protocol: str = DEFAULT_VAULT_PROTOCOL,
    ) -> None:
        super().__init__(http_client, config)
        self.vault_protocol = vault_protocol

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        if request.destination != "yield" or not request.from_address:
            return []

        from_chain_id = chain_id_for(request.from_chain)
        to_chain_id = chain_id_for(request.to_chain)
        if from_chain_id is None or to_chain_id is None:
            return []

        from_token = self._resolve_token(request.from_token, from_chain_id)
        vault_token = get_vault_token_address(self.vault_protocol, request.to_token, to_chain_id)
        if from_token is None or vault_token is None:
            return []

        sender = request.from_address.lower()
        params = {
            "fromChain": from_chain_id,
            "toChain": to_chain_id,
            "fromToken": from_token,
            "toToken": vault_token,
            "fromAmount": str(
                self._to_base_units(request.amount, get_token_decimals(request.from_token))
            ),
            "fromAddress": sender,
            "toAddress": (request.to_address or sender).lower(),
            "slippage": self._slippage(request),
            "integrator": self.config.lifi_integrator,
        }
        deny = self._deny_list(request)
        if deny:
            params["denyExchanges"] = deny

        payload = await self._call("GET", "/quote", params=params)
        quote: _Quote = self._parse(_Quote, payload)

        duration = quote.duration_seconds()
        path = quote.path(f"{request.from_token.upper()} -> {self.vault_protocol} vault")
        return [
            self._route(
                "lifi-composer-0",
                f"Composer: {path}",
                self._format_usd(quote.gas_usd),
                self._format_minutes(duration) if duration else "~2 min",
                RouteType.COMPOSE,
            )
        ]


class LiFiRestakingProvider(_LiFiBase):
    """Bridge into WETH on Base and call the restaking router (restaking destination).

    The router deposits into Renzo and forwards ezETH to the recipient.
    A plain quote sizes the WETH leg first; if the contract-call quote
    then fails, the plain bridge-to-recipient route is offered instead.
    """

    name = "LI.FI + Renzo"
    namespace = "lifi-restaking"

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        if request.destination != "restaking":
            return []
        if not (request.from_address and is_valid_address(request.from_address)):
            return []
        if not (request.to_address and is_valid_address(request.to_address)):
            return []

        from_chain_id = chain_id_for(request.from_chain)
        if from_chain_id is None:
            return []
        to_chain_id = CHAIN_IDS[RESTAKING_CHAIN]
        from_token = self._resolve_token(request.from_token, from_chain_id)
        if from_token is None:
            return []

        sender = request.from_address.lower()
        recipient = request.to_address.lower()
        slippage = self._slippage(request)

        plain = await self._call(
            "GET",
            "/quote",
            params={
                "fromChain": from_chain_id,
                "toChain": to_chain_id,
                "fromToken": from_token,
                "toToken": WETH_BASE,
                "fromAmount": str(
                    self._to_base_units(request.amount, get_token_decimals(request.from_token))
                ),
                "fromAddress": sender,
                "toAddress": recipient,
                "slippage": slippage,
                "integrator": self.config.lifi_integrator,
            },
        )
        plain_quote: _Quote = self._parse(_Quote, plain)
        weth_amount = (plain_quote.estimate.to_amount_min if plain_quote.estimate else None) or ""
        bridge_path = plain_quote.path(f"{request.from_token.upper()} -> WETH")

        if weth_amount.isdigit() and int(weth_amount) > 0:
            try:
                call_quote = await self._contract_call_quote(
                    from_chain_id,  # type: ignore[arg-type]
                    to_chain_id,
                    from_token,
                    sender,
                    recipient,
                    int(weth_amount),
                    slippage,
                )
            except ProviderError as err:
                logger.warning(
                    "restaking_contract_call_failed",
                    error=str(err),
                    message="Falling back to plain bridge route",
                )
            else:
                duration = call_quote.duration_seconds()
                path = call_quote.path(f"{request.from_token.upper()} -> WETH")
                return [
                    self._route(
                        "restaking-route-0",
                        f"{path} -> Renzo -> ezETH",
                        self._format_usd(call_quote.gas_usd),
                        self._format_minutes(duration) if duration else "~5 min",
                        RouteType.CONTRACT_CALL,
                    )
                ]

        duration = plain_quote.duration_seconds()
        return [
            self._route(
                "restaking-route-0",
                f"{bridge_path} -> Ready for Renzo",
                self._format_usd(plain_quote.gas_usd),
                self._format_minutes(duration) if duration else "~3 min",
                RouteType.STANDARD,
            )
        ]

    async def _contract_call_quote(
        self,
        from_chain_id: int,
        to_chain_id: int,
        from_token: str,
        sender: str,
        recipient: str,
        weth_amount: int,
        slippage: float,
    ) -> _Quote:
        call_data = encode_restaking_deposit(recipient, weth_amount)
        body = {
            "fromChain": from_chain_id,
            "fromToken": from_token,
            "fromAddress": sender,
            "toChain": to_chain_id,
            "toToken": WETH_BASE,
            "toAmount": str(weth_amount),
            "toFallbackAddress": recipient,
            "contractCalls": [
                {
                    "fromAmount": str(weth_amount),
                    "fromTokenAddress": WETH_BASE,
                    "toContractAddress": RESTAKING_ROUTER,
                    "toContractCallData": call_data,
                    "toContractGasLimit": str(RESTAKING_GAS_LIMIT),
                }
            ],
            "slippage": slippage,
            "integrator": self.config.lifi_integrator,
        }
        payload = await self._call("POST", "/quote/contractCalls", json=body)
        return self._parse(_Quote, payload)


def encode_restaking_deposit(recipient: str, amount: int) -> str:
    """Calldata for RestakingRouter.depositToRestaking(recipient, amount)."""
    args = encode(["address", "uint256"], [recipient.lower(), amount])
    return "0x" + (DEPOSIT_SELECTOR + args).hex()


def _extract_error_detail(response: httpx.Response) -> str:
    """Best-effort human-readable reason from an error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return f"HTTP {response.status_code}: {data['message']}"
    return f"HTTP {response.status_code}"


__all__ = [
    "LiFiProvider",
    "LiFiComposerProvider",
    "LiFiRestakingProvider",
    "encode_restaking_deposit",
]
