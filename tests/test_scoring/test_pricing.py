"""
Tests for trendscope/scoring/pricing.py.

What we test
------------
round2():
  - Rounds half-up, unlike Python's banker's rounding.
  - Absorbs binary float noise (5.8500000000000005 -> 5.85).
  - Exact-decimal halves round up (1.005 -> 1.01).
  - Non-finite or oversized values raise ComputationGuardError.

generate_price_ladder():
  - Reference ladder for base 4.5 and base 1.0.
  - Zero costs -> (0.0, 0.0, 0.0).
  - Floors too large for cents, or overflowing to inf, raise ComputationGuardError.
  - For a grid of valid costs: strictly increasing, every entry >= base.

compute_margin():
  - Reference margin at the lowest ladder tier.
  - Zero / negative price raises ComputationGuardError (no inf / nan).
  - Always below 100 when costs are positive.
  - Strictly decreasing as any single cost component grows.
  - Negative when price is under the break-even floor.
"""

from __future__ import annotations

import math

import pytest

from trendscope.errors import ComputationGuardError
from trendscope.scoring.pricing import (
    LADDER_MULTIPLIERS,
    break_even_floor,
    compute_margin,
    generate_price_ladder,
    round2,
)

_COST_GRID = [
    (0.05, 0.0, 0.0),
    (0.1, 0.1, 0.1),
    (0.33, 0.33, 0.34),
    (0.5, 0.3, 0.2),
    (1.8, 0.6, 1.0),
    (2.5, 0.8, 1.2),
    (19.99, 4.5, 7.25),
    (0.0, 0.0, 12.0),
    (1000.0, 0.0, 0.0),
    (12345.67, 890.12, 34.56),
]


class TestRound2:
    def test_half_up_on_exact_half(self):
        assert round2(0.125) == 0.13
        assert round2(2.675) == 2.68

    def test_float_noise_is_absorbed(self):
        assert round2(4.5 * 1.3) == 5.85

    def test_already_rounded_value_unchanged(self):
        assert round2(7.2) == 7.2

    def test_exact_decimal_half_rounds_up(self):
        assert round2(1.005) == 1.01

    @pytest.mark.parametrize("value", [math.inf, math.nan, 1e26, 1.5e300])
    def test_unroundable_value_raises(self, value):
        with pytest.raises(ComputationGuardError):
            round2(value)


class TestGeneratePriceLadder:
    def test_reference_ladder_base_4_5(self):
        assert generate_price_ladder(2.5, 0.8, 1.2) == (5.85, 7.2, 9.0)

    def test_reference_ladder_base_1(self):
        assert generate_price_ladder(0.5, 0.3, 0.2) == (1.3, 1.6, 2.0)

    def test_zero_costs_give_zero_ladder(self):
        assert generate_price_ladder(0.0, 0.0, 0.0) == (0.0, 0.0, 0.0)

    def test_huge_floor_raises(self):
        with pytest.raises(ComputationGuardError, match="too large"):
            generate_price_ladder(1e26, 0.0, 0.0)

    def test_overflowing_floor_raises(self):
        with pytest.raises(ComputationGuardError, match="non-finite"):
            generate_price_ladder(1e308, 1e308, 0.0)

    def test_multipliers(self):
        assert LADDER_MULTIPLIERS == (1.3, 1.6, 2.0)

    def test_returns_three_entries(self):
        assert len(generate_price_ladder(1.0, 1.0, 1.0)) == 3

    @pytest.mark.parametrize("cogs,fees,shipping", _COST_GRID)
    def test_strictly_increasing(self, cogs, fees, shipping):
        low, mid, high = generate_price_ladder(cogs, fees, shipping)
        assert low < mid < high

    @pytest.mark.parametrize("cogs,fees,shipping", _COST_GRID)
    def test_every_entry_at_or_above_floor(self, cogs, fees, shipping):
        base = break_even_floor(cogs, fees, shipping)
        for price in generate_price_ladder(cogs, fees, shipping):
            assert price >= base


class TestComputeMargin:
    def test_reference_margin_at_lowest_tier(self):
        assert compute_margin(5.85, 2.5, 0.8, 1.2) == pytest.approx(23.0769, abs=1e-3)

    def test_formula(self):
        assert compute_margin(10.0, 2.0, 1.0, 1.0) == pytest.approx(60.0)

    def test_zero_price_raises(self):
        with pytest.raises(ComputationGuardError, match="non-positive price"):
            compute_margin(0.0, 1.0, 1.0, 1.0)

    def test_negative_price_raises(self):
        with pytest.raises(ComputationGuardError):
            compute_margin(-1.0, 0.0, 0.0, 0.0)

    def test_result_is_finite(self):
        assert math.isfinite(compute_margin(0.01, 100.0, 0.0, 0.0))

    @pytest.mark.parametrize("cogs,fees,shipping", _COST_GRID)
    def test_below_100_for_positive_costs(self, cogs, fees, shipping):
        price = break_even_floor(cogs, fees, shipping) * 1.5
        assert compute_margin(price, cogs, fees, shipping) < 100.0

    @pytest.mark.parametrize("component", ["cogs", "fees", "shipping"])
    def test_strictly_decreasing_in_each_cost(self, component):
        costs = {"cogs": 1.0, "fees": 1.0, "shipping": 1.0}
        margins = []
        for bump in (0.0, 0.5, 1.0, 2.0):
            varied = dict(costs)
            varied[component] += bump
            margins.append(compute_margin(10.0, **varied))
        assert all(a > b for a, b in zip(margins, margins[1:]))

    def test_negative_below_break_even(self):
        assert compute_margin(2.0, 2.0, 1.0, 0.0) < 0.0
