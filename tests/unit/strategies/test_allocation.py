"""Tests for parsing, normalizing and splitting strategy allocations."""

from decimal import Decimal

import pytest

from payrouter.strategies import (
    StrategyAllocation,
    StrategyAllocator,
    StrategyId,
    format_allocation,
    normalize_weights,
    parse_allocation,
    split_amount,
    validate_allocation_record,
)

YIELD = StrategyId.YIELD
RESTAKING = StrategyId.RESTAKING
LIQUID = StrategyId.LIQUID


def as_pairs(allocations):
    return [(a.destination_id.value, a.percentage) for a in allocations]


class TestParseAllocation:
    def test_valid_record(self):
        assert as_pairs(parse_allocation("yield:60,restaking:40")) == [
            ("yield", 60),
            ("restaking", 40),
        ]

    def test_unknown_id_dropped_and_rest_renormalized(self):
        """yield:60,restaking:30,bogus:10 renormalizes 60:30 to 67:33."""
        assert as_pairs(parse_allocation("yield:60,restaking:30,bogus:10")) == [
            ("yield", 67),
            ("restaking", 33),
        ]

    def test_whitespace_and_case_tolerated(self):
        assert as_pairs(parse_allocation(" Yield : 50 , LIQUID:50 ")) == [
            ("yield", 50),
            ("liquid", 50),
        ]

    @pytest.mark.parametrize(
        "record",
        ["yield:abc", "yield:-10", "yield:0", "yield:12.5", "yield", ":50"],
    )
    def test_invalid_weights_dropped(self, record):
        assert as_pairs(parse_allocation(f"{record},liquid:40")) == [("liquid", 100)]

    def test_duplicates_are_merged(self):
        assert as_pairs(parse_allocation("yield:30,liquid:40,yield:30")) == [
            ("yield", 60),
            ("liquid", 40),
        ]

    @pytest.mark.parametrize("record", ["", "   ", "bogus:100", "yield:0,restaking:0", ",,,"])
    def test_nothing_valid_degrades_to_liquid(self, record):
        assert as_pairs(parse_allocation(record)) == [("liquid", 100)]

    def test_none_degrades_to_liquid(self):
        assert as_pairs(parse_allocation(None)) == [("liquid", 100)]

    def test_single_record_used_when_multi_absent(self):
        assert as_pairs(parse_allocation(None, "restaking")) == [("restaking", 100)]

    def test_multi_record_wins_over_single(self):
        assert as_pairs(parse_allocation("yield:100", "restaking")) == [("yield", 100)]

    def test_invalid_single_record_degrades(self):
        assert as_pairs(parse_allocation(None, "moon")) == [("liquid", 100)]

    def test_result_always_sums_to_100(self):
        for record in ["yield:1,restaking:1,liquid:1", "yield:7,liquid:3", "yield:99,liquid:1"]:
            allocations = parse_allocation(record)
            assert sum(a.percentage for a in allocations) == 100
            assert all(a.percentage > 0 for a in allocations)


class TestNormalizeWeights:
    def test_equal_thirds_tie_goes_to_first(self):
        result = normalize_weights([(YIELD, 1), (RESTAKING, 1), (LIQUID, 1)])
        assert as_pairs(result) == [("yield", 34), ("restaking", 33), ("liquid", 33)]

    def test_largest_remainder_wins(self):
        # Exact shares: 14.28..., 28.57..., 57.14... -> floors 14, 28, 57 with one point left
        result = normalize_weights([(YIELD, 1), (RESTAKING, 2), (LIQUID, 4)])
        assert as_pairs(result) == [("yield", 14), ("restaking", 29), ("liquid", 57)]

    def test_tiny_share_rounds_away(self):
        result = normalize_weights([(YIELD, 1000), (LIQUID, 1)])
        assert as_pairs(result) == [("yield", 100)]

    def test_empty(self):
        assert normalize_weights([]) == []


class TestSplitAmount:
    def test_split_by_percentage(self):
        legs = split_amount(Decimal("100"), parse_allocation("yield:60,restaking:40"))

        assert [(leg.destination_id, leg.amount) for leg in legs] == [
            (YIELD, Decimal("60")),
            (RESTAKING, Decimal("40")),
        ]

    def test_legs_sum_to_total(self):
        allocations = parse_allocation("yield:34,restaking:33,liquid:33")
        legs = split_amount(Decimal("0.000001"), allocations)
        assert sum(leg.amount for leg in legs) == Decimal("0.000001")

        legs = split_amount(Decimal("100.000001"), allocations)
        assert sum(leg.amount for leg in legs) == Decimal("100.000001")

    def test_remainder_goes_to_first_leg(self):
        allocations = parse_allocation("yield:34,restaking:33,liquid:33")
        legs = split_amount(Decimal("1"), allocations, decimals=2)

        assert [leg.amount for leg in legs] == [Decimal("0.34"), Decimal("0.33"), Decimal("0.33")]

        legs = split_amount(Decimal("0.01"), allocations, decimals=2)
        assert [leg.amount for leg in legs] == [Decimal("0.01"), Decimal("0"), Decimal("0")]

    def test_total_truncated_to_token_precision(self):
        legs = split_amount(Decimal("10.1234567"), [StrategyAllocation(LIQUID, 100)], decimals=6)
        assert legs[0].amount == Decimal("10.123456")

    def test_zero_total(self):
        legs = split_amount(Decimal("0"), parse_allocation("yield:50,liquid:50"))
        assert all(leg.amount == 0 for leg in legs)

    @pytest.mark.parametrize("total", ["-5", "NaN", "abc", None])
    def test_degenerate_total_splits_as_zero(self, total):
        legs = split_amount(total, parse_allocation("yield:100"))
        assert legs[0].amount == 0

    def test_empty_allocations_fall_back_to_liquid(self):
        legs = split_amount(Decimal("5"), [])
        assert [(leg.destination_id, leg.amount) for leg in legs] == [(LIQUID, Decimal("5"))]

    def test_string_total(self):
        legs = split_amount("42.5", parse_allocation("liquid:100"))
        assert legs[0].amount == Decimal("42.5")


class TestFormatAllocation:
    def test_round_trips_through_parse(self):
        allocations = parse_allocation("yield:60,restaking:40")
        assert format_allocation(allocations) == "yield:60,restaking:40"

    def test_single_destination_uses_multi_form(self):
        assert format_allocation(parse_allocation(None, "restaking")) == "restaking:100"

    def test_empty_formats_default(self):
        assert format_allocation([]) == "liquid:100"


class TestValidateAllocationRecord:
    def test_valid(self):
        assert as_pairs(validate_allocation_record("yield:70,liquid:30")) == [
            ("yield", 70),
            ("liquid", 30),
        ]

    @pytest.mark.parametrize(
        ("record", "message"),
        [
            ("bogus:100", "Invalid strategy type"),
            ("yield:50,yield:50", "Duplicate strategy"),
            ("yield:0,liquid:100", "Invalid percentage"),
            ("yield:101", "Invalid percentage"),
            ("yield:abc", "Invalid percentage"),
            ("yield", "Invalid percentage"),
            ("yield:60,restaking:30", "sum to 100"),
        ],
    )
    def test_invalid(self, record, message):
        with pytest.raises(ValueError, match=message):
            validate_allocation_record(record)


class TestStrategyAllocator:
    def test_allocate(self):
        allocator = StrategyAllocator(decimals=6)
        legs = allocator.allocate("250", "yield:60,restaking:30,bogus:10")

        assert [(leg.destination_id, leg.amount) for leg in legs] == [
            (YIELD, Decimal("167.5")),
            (RESTAKING, Decimal("82.5")),
        ]
