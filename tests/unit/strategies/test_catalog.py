"""Tests for the destination strategy catalog."""

import pytest

from payrouter.constants import RESTAKING_ROUTER
from payrouter.strategies import STRATEGIES, StrategyId, get_strategy, resolve_strategy_id


class TestResolveStrategyId:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("yield", StrategyId.YIELD),
            (" Restaking ", StrategyId.RESTAKING),
            ("LIQUID", StrategyId.LIQUID),
            ("moon", None),
            ("", None),
            (None, None),
        ],
    )
    def test_resolve(self, value, expected):
        assert resolve_strategy_id(value) is expected


class TestCatalog:
    def test_every_id_has_a_strategy(self):
        assert set(STRATEGIES) == set(StrategyId)

    def test_restaking_uses_router(self):
        strategy = get_strategy("restaking")
        assert strategy.requires_router
        assert strategy.contract_address == RESTAKING_ROUTER
        assert strategy.dest_token == "WETH"
        assert strategy.output_token == "ezETH"

    def test_yield_settles_on_base(self):
        strategy = get_strategy(StrategyId.YIELD)
        assert strategy.dest_chain == "base"
        assert not strategy.requires_router

    def test_liquid_keeps_requested_chain(self):
        assert get_strategy("liquid").dest_chain is None

    def test_unknown_falls_back_to_liquid(self):
        assert get_strategy("moon").id is StrategyId.LIQUID
        assert get_strategy(None).id is StrategyId.LIQUID
