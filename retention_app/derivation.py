from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from retention_app.inputs import RetentionInputs


def round_half_up(x: float) -> int:
    return int(np.floor(x + 0.5))


def round_1dp(x: float) -> float:
    # half away from zero, like toFixed(1)
    return float(np.sign(x) * np.floor(abs(x) * 10 + 0.5) / 10) + 0.0


def _rate(part: float, whole: float) -> float:
    # percentage of whole, one decimal; 0.0 when there is nothing to divide by
    if whole <= 0:
        return 0.0
    return round_1dp(part / whole * 100)


@dataclass(frozen=True)
class StateMetrics:
    multi_purchase_customers: int
    inactive_customers: int
    inactive_rate: float
    active_customers: int
    annual_revenue: float
    total_ltv: float


@dataclass(frozen=True)
class ImpactMetrics:
    additional_customers: int
    reduced_churn: int
    revenue_increase: float
    ltv_increase: float


@dataclass(frozen=True)
class Results:
    current_state: StateMetrics
    improved_state: StateMetrics
    impact: ImpactMetrics


@dataclass(frozen=True)
class ImpactRatios:
    multi_purchase_growth_pct: float
    reactivated_share_pct: float
    revenue_growth_pct: float
    ltv_growth_pct: float


def derive(inputs: RetentionInputs) -> Results:
    """
    Current state, improved state and impact for one Inputs snapshot.

      annual revenue = active customers * AOV * purchase frequency
      improved LTV   = LTV * (1 + churn reduction) * (improved freq / freq)

    Pure: reads `inputs` once, returns a new Results, never caches.
    """
    base = inputs.customer_base
    freq = inputs.purchase_frequency

    # Current state
    current_mpc = round_half_up(base * inputs.multi_purchase_rate / 100)
    current_inactive = inputs.inactive_customers_count
    # Not guarded: inactive > base gives negative active customers.
    current_active = base - current_inactive
    current_revenue = current_active * inputs.aov * freq
    current_total_ltv = base * inputs.ltv

    # Improved state
    improved_rate = min(inputs.multi_purchase_rate + inputs.multi_purchase_improvement, 100)
    improved_mpc = round_half_up(base * improved_rate / 100)
    reactivated = round_half_up(inputs.churn_reduction / 100 * base)
    improved_inactive = max(current_inactive - reactivated, 0)
    improved_active = base - improved_inactive
    improved_freq = freq + inputs.purchase_freq_improvement
    improved_revenue = improved_active * inputs.aov * improved_freq

    churn_factor = 1 + inputs.churn_reduction / 100
    # No baseline frequency to scale against: LTV moves with churn only.
    freq_factor = improved_freq / freq if freq > 0 else 1.0
    improved_ltv = inputs.ltv * churn_factor * freq_factor
    improved_total_ltv = base * improved_ltv

    current = StateMetrics(
        multi_purchase_customers=current_mpc,
        inactive_customers=current_inactive,
        inactive_rate=_rate(current_inactive, base),
        active_customers=current_active,
        annual_revenue=float(current_revenue),
        total_ltv=float(current_total_ltv),
    )
    improved = StateMetrics(
        multi_purchase_customers=improved_mpc,
        inactive_customers=improved_inactive,
        inactive_rate=_rate(improved_inactive, base),
        active_customers=improved_active,
        annual_revenue=float(improved_revenue),
        total_ltv=float(improved_total_ltv),
    )
    impact = ImpactMetrics(
        additional_customers=improved_mpc - current_mpc,
        reduced_churn=current_inactive - improved_inactive,
        revenue_increase=float(improved_revenue - current_revenue),
        ltv_increase=float(improved_total_ltv - current_total_ltv),
    )
    return Results(current_state=current, improved_state=improved, impact=impact)


def impact_ratios(inputs: RetentionInputs, results: Results) -> ImpactRatios:
    cur = results.current_state
    imp = results.impact
    return ImpactRatios(
        multi_purchase_growth_pct=_rate(imp.additional_customers, cur.multi_purchase_customers),
        reactivated_share_pct=_rate(imp.reduced_churn, inputs.inactive_customers_count),
        revenue_growth_pct=_rate(imp.revenue_increase, cur.annual_revenue),
        ltv_growth_pct=_rate(imp.ltv_increase, cur.total_ltv),
    )


def roi_percent(results: Results, solution_cost_rate: float = 0.02) -> int:
    """First-year ROI when the solution costs `solution_cost_rate` of current annual revenue."""
    cost = results.current_state.annual_revenue * solution_cost_rate
    if cost <= 0:
        return 0
    return round_half_up(results.impact.revenue_increase / cost * 100)
