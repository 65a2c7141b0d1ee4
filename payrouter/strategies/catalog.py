"""Destination strategies a receiver can allocate incoming funds to."""

from dataclasses import dataclass
from enum import Enum

from payrouter.constants import RESTAKING_ROUTER


class StrategyId(str, Enum):
    """Recognized destination ids."""

    YIELD = "yield"
    RESTAKING = "restaking"
    LIQUID = "liquid"


@dataclass(frozen=True)
class Strategy:
    """How funds allocated to a destination are settled.

    Attributes:
        id: Destination id used in allocation records
        name: Display name
        description: One-line summary shown to receivers
        dest_chain: Chain the destination lives on. None means the
            receiver's requested chain (no deposit step).
        dest_token: Token the leg is routed into
        protocol: Protocol that takes the deposit
        output_token: Token the receiver finally holds, if different
        contract_address: Router contract, if the deposit needs one
    """

    id: StrategyId
    name: str
    description: str
    dest_chain: str | None
    dest_token: str
    protocol: str
    output_token: str | None = None
    contract_address: str | None = None

    @property
    def requires_router(self) -> bool:
        return self.contract_address is not None


STRATEGIES: dict[StrategyId, Strategy] = {
    StrategyId.YIELD: Strategy(
        id=StrategyId.YIELD,
        name="Yield Vault",
        description="Earn yield on USDC via an ERC-4626 vault",
        dest_chain="base",
        dest_token="USDC",
        protocol="Morpho",
    ),
    StrategyId.RESTAKING: Strategy(
        id=StrategyId.RESTAKING,
        name="Restaking",
        description="Earn restaking points via Renzo ezETH",
        dest_chain="base",
        dest_token="WETH",
        protocol="Renzo",
        output_token="ezETH",
        contract_address=RESTAKING_ROUTER,
    ),
    StrategyId.LIQUID: Strategy(
        id=StrategyId.LIQUID,
        name="Liquid",
        description="Keep the stablecoin in the wallet (no deposit)",
        dest_chain=None,
        dest_token="USDC",
        protocol="Direct",
    ),
}

# Hold-as-is destination used whenever an allocation degrades
DEFAULT_STRATEGY = StrategyId.LIQUID


def resolve_strategy_id(value: str | None) -> StrategyId | None:
    """Recognized destination id for free text, None if unrecognized."""
    if not value:
        return None
    try:
        return StrategyId(value.strip().lower())
    except ValueError:
        return None


def get_strategy(value: str | StrategyId | None) -> Strategy:
    """Strategy for an id, falling back to the hold-as-is destination."""
    if isinstance(value, StrategyId):
        return STRATEGIES[value]
    return STRATEGIES[resolve_strategy_id(value) or DEFAULT_STRATEGY]
