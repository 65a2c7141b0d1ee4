"""Uniswap v4 hook pools for same-chain stablecoin swaps."""

from __future__ import annotations

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from payrouter.constants import STABLECOINS, ZERO_ADDRESS, chain_id_for, get_token_address
from payrouter.models.route import RouteOption, RouteRequest, RouteType
from payrouter.routing.providers.base import BaseProvider, RoutingFamily

# Pool parameters shared by the stablecoin hook pools
STABLE_POOL_FEE = 100  # 0.01% fee tier
STABLE_TICK_SPACING = 1


def compute_pool_id(
    currency0: str,
    currency1: str,
    fee: int,
    tick_spacing: int,
    hooks: str,
) -> str:
    """PoolId as keccak256(abi.encode(currency0, currency1, fee, tickSpacing, hooks)).

    Returns:
        0x-prefixed hex pool id
    """
    encoded = encode(
        ["address", "address", "uint24", "int24", "address"],
        [currency0.lower(), currency1.lower(), fee, tick_spacing, hooks.lower()],
    )
    return "0x" + keccak(encoded).hex()


def sort_currencies(a: str, b: str) -> tuple[str, str]:
    """Canonical (currency0, currency1) order: lower address first."""
    return (a, b) if int(a, 16) < int(b, 16) else (b, a)


class V4HookProvider(BaseProvider):
    """Routes through the relay's hook pool when both sides are stablecoins on one chain.

    Args:
        hooks: Deployed hook address per chain name. Chains missing from the
            map are not serviced.
    """

    name = "Uniswap v4 Hook"
    namespace = "v4"
    family = RoutingFamily.HOOK

    def __init__(self, hooks: dict[str, str] | None = None) -> None:
        if hooks is None:
            hooks = {chain: ZERO_ADDRESS for chain in ("ethereum", "base", "arbitrum", "optimism")}
        self.hooks = {chain.lower(): address for chain, address in hooks.items()}

    async def find_routes(self, request: RouteRequest) -> list[RouteOption]:
        from_token = request.from_token.upper()
        to_token = request.to_token.upper()
        if request.is_cross_chain or request.is_same_token:
            return []
        if from_token not in STABLECOINS or to_token not in STABLECOINS:
            return []
        if request.destination not in (None, "liquid"):
            return []

        chain = request.from_chain.strip().lower()
        hook = self.hooks.get(chain)
        chain_id = chain_id_for(chain)
        if hook is None or chain_id is None:
            return []

        from_address = get_token_address(from_token, chain_id)
        to_address = get_token_address(to_token, chain_id)
        if from_address is None or to_address is None:
            return []

        currency0, currency1 = sort_currencies(from_address, to_address)
        pool_id = compute_pool_id(currency0, currency1, STABLE_POOL_FEE, STABLE_TICK_SPACING, hook)

        return [
            self._route(
                f"v4-{pool_id[:18]}",
                f"{from_token} -> {to_token} via PayAgentHook",
                "$0.05",
                "~15s",
                RouteType.STANDARD,
            )
        ]


__all__ = ["V4HookProvider", "compute_pool_id", "sort_currencies"]
