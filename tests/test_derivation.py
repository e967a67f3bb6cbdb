"""
tests/test_derivation.py

Current / improved / impact derivation. Pure inputs only, no I/O.

Coverage
--------
- Worked example (1000 customers)
- Determinism
- Improved inactive count never negative
- Zero customer base and zero purchase frequency
- Inactive count above the customer base
- Round-half-up rounding
- Impact ratios and ROI
"""

from __future__ import annotations

import dataclasses

import pytest

from retention_app.derivation import (
    derive,
    impact_ratios,
    roi_percent,
    round_1dp,
    round_half_up,
)
from retention_app.inputs import RetentionInputs


class TestWorkedExample:
    def test_current_state(self, example_inputs) -> None:
        cur = derive(example_inputs).current_state
        assert cur.multi_purchase_customers == 200
        assert cur.inactive_customers == 300
        assert cur.inactive_rate == 30.0
        assert cur.active_customers == 700
        assert cur.annual_revenue == 140000
        assert cur.total_ltv == 200000

    def test_improved_state(self, example_inputs) -> None:
        imp = derive(example_inputs).improved_state
        assert imp.multi_purchase_customers == 250
        assert imp.inactive_customers == 250
        assert imp.inactive_rate == 25.0
        assert imp.active_customers == 750
        assert imp.annual_revenue == pytest.approx(187500)
        # 200 * 1.05 * (2.5 / 2) per customer
        assert imp.total_ltv == pytest.approx(262500)

    def test_impact(self, example_inputs) -> None:
        impact = derive(example_inputs).impact
        assert impact.additional_customers == 50
        assert impact.reduced_churn == 50
        assert impact.revenue_increase == pytest.approx(47500)
        assert impact.ltv_increase == pytest.approx(62500)


class TestInvariants:
    def test_deterministic(self, example_inputs) -> None:
        assert derive(example_inputs) == derive(example_inputs)

    def test_does_not_mutate_inputs(self, example_inputs) -> None:
        before = dataclasses.asdict(example_inputs)
        derive(example_inputs)
        assert dataclasses.asdict(example_inputs) == before

    @pytest.mark.parametrize("churn_reduction", [0, 30, 31, 99, 100])
    def test_improved_inactive_never_negative(self, example_inputs, churn_reduction) -> None:
        example_inputs.set_field("churn_reduction", churn_reduction)
        res = derive(example_inputs)
        assert res.improved_state.inactive_customers >= 0
        assert res.impact.reduced_churn <= example_inputs.inactive_customers_count

    def test_improved_rate_capped_at_100(self) -> None:
        # improvement set directly, bypassing the setter bound
        inputs = RetentionInputs(customer_base=200, multi_purchase_rate=90.0, multi_purchase_improvement=40.0)
        res = derive(inputs)
        assert res.improved_state.multi_purchase_customers == 200
        assert res.impact.additional_customers == 20


class TestEdgeCases:
    def test_zero_customer_base_rates_are_zero(self) -> None:
        inputs = RetentionInputs(customer_base=0, inactive_customers_count=10)
        res = derive(inputs)
        assert res.current_state.inactive_rate == 0.0
        assert res.improved_state.inactive_rate == 0.0
        ratios = impact_ratios(inputs, res)
        assert ratios.multi_purchase_growth_pct == 0.0

    def test_zero_purchase_frequency_uses_churn_only(self) -> None:
        inputs = RetentionInputs(purchase_frequency=0.0, purchase_freq_improvement=1.0, ltv=100.0, churn_reduction=10.0)
        res = derive(inputs)
        assert res.current_state.annual_revenue == 0
        assert res.improved_state.total_ltv == pytest.approx(1000 * 100 * 1.1)

    def test_inactive_above_base_goes_negative(self) -> None:
        inputs = RetentionInputs(customer_base=100, inactive_customers_count=150, churn_reduction=0.0)
        res = derive(inputs)
        assert res.current_state.active_customers == -50
        assert res.current_state.annual_revenue < 0
        assert res.current_state.inactive_rate == 150.0


class TestRounding:
    @pytest.mark.parametrize("x, expected", [(2.5, 3), (3.5, 4), (-2.5, -2), (0.49, 0), (124.5, 125)])
    def test_round_half_up(self, x, expected) -> None:
        assert round_half_up(x) == expected

    def test_round_1dp(self) -> None:
        assert round_1dp(12.25) == 12.3
        assert round_1dp(33.333) == 33.3

    @pytest.mark.parametrize("x, expected", [(-2.75, -2.8), (-12.25, -12.3), (-0.04, 0.0), (0.0, 0.0)])
    def test_round_1dp_negative_rounds_away_from_zero(self, x, expected) -> None:
        assert round_1dp(x) == expected

    def test_round_1dp_has_no_negative_zero(self) -> None:
        assert str(round_1dp(-0.04)) == "0.0"

    def test_multi_purchase_count_rounds_half_up(self) -> None:
        # 5 * 50% = 2.5 -> 3
        res = derive(RetentionInputs(customer_base=5, multi_purchase_rate=50.0, inactive_customers_count=0))
        assert res.current_state.multi_purchase_customers == 3


class TestRatiosAndRoi:
    def test_impact_ratios(self, example_inputs) -> None:
        ratios = impact_ratios(example_inputs, derive(example_inputs))
        assert ratios.multi_purchase_growth_pct == 25.0
        assert ratios.reactivated_share_pct == 16.7
        assert ratios.revenue_growth_pct == 33.9
        assert ratios.ltv_growth_pct == 31.3

    def test_roi(self, example_inputs) -> None:
        # 47500 / (140000 * 2%) = 16.96x
        assert roi_percent(derive(example_inputs)) == 1696

    def test_roi_zero_without_revenue(self) -> None:
        res = derive(RetentionInputs(aov=0.0))
        assert roi_percent(res) == 0
