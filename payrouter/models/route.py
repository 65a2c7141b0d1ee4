"""Pydantic models for route discovery requests and results."""

import re
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from payrouter.models.types import Amount

# Suffixes on RouteOption.provider that mark non-live results
ESTIMATE_TAG = "(estimate)"
ERROR_TAG = "(error)"

_FEE_NUMBER = re.compile(r"[0-9]+(?:\.[0-9]+)?")


class RouteType(str, Enum):
    """Classification of a route's execution shape."""

    STANDARD = "standard"
    COMPOSE = "multi-step-compose"  # Bridge/swap followed by a vault deposit
    CONTRACT_CALL = "contract-call"  # Bridge followed by an arbitrary contract call


class RoutingFamily(str, Enum):
    """Kinds of liquidity source. Callers may restrict a request to a subset."""

    AGGREGATOR = "aggregator"  # Generic swap/bridge aggregators
    BRIDGE = "bridge"  # Native stablecoin bridges
    HOOK = "hook"  # Same-chain AMM hook pools
    DIRECT = "direct"  # Plain transfers, no conversion


class RouteOption(BaseModel):
    """A candidate settlement route, as shown to the payer.

    Fee and time are display strings. Providers tag estimates and
    diagnostics in `provider` so callers can tell them from live quotes.
    """

    id: str
    path: str = Field(description="Human-readable hop sequence")
    fee: str = Field(description="Display fee, e.g. '$0.42' or 'N/A'")
    estimated_time: str = Field(alias="estimatedTime")
    provider: str
    route_type: RouteType | None = Field(default=None, alias="routeType")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def is_diagnostic(self) -> bool:
        """True if this entry explains a provider failure rather than a route."""
        return self.provider.endswith(ERROR_TAG)

    @property
    def is_estimate(self) -> bool:
        """True if this is a fallback estimate rather than a live quote."""
        return self.provider.endswith(ESTIMATE_TAG)

    @property
    def is_live(self) -> bool:
        return not (self.is_diagnostic or self.is_estimate)

    @property
    def fee_usd(self) -> Decimal | None:
        """Numeric fee parsed from the display string, None if unparseable."""
        match = _FEE_NUMBER.search(self.fee.replace(",", ""))
        if match is None:
            return None
        return Decimal(match.group(0))


class RouteRequest(BaseModel):
    """Parameters for a single routing request (one allocation leg)."""

    from_chain: str = Field(alias="fromChain")
    to_chain: str = Field(alias="toChain")
    amount: Amount
    from_token: str = Field(default="USDC", alias="fromToken")
    to_token: str = Field(default="USDC", alias="toToken")
    from_address: str | None = Field(default=None, alias="fromAddress")
    to_address: str | None = Field(default=None, alias="toAddress")
    destination: str | None = Field(
        default=None,
        description="Strategy destination id this leg settles into (yield, restaking, liquid)",
    )
    slippage: float | None = Field(default=None, gt=0, lt=1)
    deny_exchanges: tuple[str, ...] = Field(default=(), alias="denyExchanges")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def is_cross_chain(self) -> bool:
        return self.from_chain.strip().lower() != self.to_chain.strip().lower()

    @property
    def is_same_token(self) -> bool:
        return self.from_token.strip().upper() == self.to_token.strip().upper()

    def cache_key(self) -> str:
        """Normalized request parameters for result caching.

        Equivalent requests (case, amount formatting, deny-list order)
        produce the same key.
        """
        amount = self.amount.normalize()
        deny = ",".join(sorted({d.strip().lower() for d in self.deny_exchanges}))
        parts = [
            self.from_chain.strip().lower(),
            self.to_chain.strip().lower(),
            self.from_token.strip().upper(),
            self.to_token.strip().upper(),
            f"{amount:f}",
            (self.from_address or "").lower(),
            (self.to_address or "").lower(),
            (self.destination or "").lower(),
            str(self.slippage or ""),
            deny,
        ]
        return ":".join(parts)


__all__ = ["RouteOption", "RouteRequest", "RouteType", "RoutingFamily", "ESTIMATE_TAG", "ERROR_TAG"]
