"""
Decision table, verdict and recommendation tests.

Guards against:
1. Rule order changes (SCALE must be checked before OPTIMISER)
2. Verdict drift on the deficit / fragile / profitable boundaries
3. Budget overrun not being flagged as a risk
"""
import pytest

from ads_analyzer.services.aggregator import Totals
from ads_analyzer.services.decision import (
    DEFICIT,
    FRAGILE,
    OPTIMISER,
    PROFITABLE,
    SCALE,
    STOP,
    build_action_plan,
    build_conclusions,
    build_summary,
    classify_bucket,
    classify_verdict,
    global_decision,
)
from ads_analyzer.services.metrics import BusinessContext, compute_global_metrics


# ---------------------------------------------------------------------------
# Bucket decisions
# ---------------------------------------------------------------------------

BREAK_EVEN = 4000


def test_high_roas_cheap_cpa_scales():
    assert classify_bucket(3.5, 0.5 * BREAK_EVEN, BREAK_EVEN) == SCALE


def test_moderate_roas_within_break_even_optimises():
    assert classify_bucket(1.5, 0.9 * BREAK_EVEN, BREAK_EVEN) == OPTIMISER


def test_low_roas_stops():
    assert classify_bucket(0.5, 0.1 * BREAK_EVEN, BREAK_EVEN) == STOP


def test_high_roas_but_cpa_near_break_even_only_optimises():
    assert classify_bucket(4.0, 0.9 * BREAK_EVEN, BREAK_EVEN) == OPTIMISER


def test_cpa_above_break_even_stops_even_with_roas():
    assert classify_bucket(2.0, 1.1 * BREAK_EVEN, BREAK_EVEN) == STOP


def test_boundaries_are_inclusive():
    assert classify_bucket(3.0, 0.8 * BREAK_EVEN, BREAK_EVEN) == SCALE
    assert classify_bucket(1.2, BREAK_EVEN, BREAK_EVEN) == OPTIMISER


def test_zero_conversion_bucket_has_zero_cpa():
    """CPA guards to 0 without conversions, so ROAS alone decides."""
    assert classify_bucket(3.0, 0, BREAK_EVEN) == SCALE


# ---------------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("profit, roas, verdict", [
    (-1, 5.0, DEFICIT),
    (0, 5.0, DEFICIT),
    (100, 0.9, DEFICIT),
    (100, 1.5, FRAGILE),
    (0.1, 3.0, FRAGILE),
    (19000, 20.0, PROFITABLE),
    (100, 2.0, PROFITABLE),
])
def test_verdict(profit, roas, verdict):
    assert classify_verdict(profit, roas) == verdict


def test_global_decision_threshold():
    assert global_decision(2.0)['decision'] == 'OPTIMISE THEN SCALE'
    assert global_decision(1.99)['decision'] == 'STOP OR REBUILD'


# ---------------------------------------------------------------------------
# Conclusions and action plan
# ---------------------------------------------------------------------------

def _metrics(spend, clicks, results, impressions, revenue=20000):
    context = BusinessContext(revenue_total=revenue, campaign_days=10, daily_budget=500, product_price=2000)
    return compute_global_metrics(Totals(spend, clicks, results, impressions), context), context


def test_summary_for_profitable_account():
    metrics, _ = _metrics(1000, 50, 5, 2000)
    summary = build_summary(metrics)
    assert summary['verdict'] == PROFITABLE
    assert summary['profit'] == 19000
    assert summary['decision'] == 'OPTIMISE THEN SCALE'


def test_budget_overrun_is_a_risk():
    metrics, context = _metrics(8000, 50, 5, 2000)
    risks = build_conclusions(metrics, context)['risks']
    assert risks[1] == 'Actual spend exceeds the declared budget.'


def test_weak_funnel_conclusions():
    metrics, context = _metrics(30000, 10, 0, 5000)
    conclusions = build_conclusions(metrics, context)
    assert conclusions['whatWorks'] == ['Creatives have room for improvement.', 'Profitability is insufficient.']
    assert conclusions['blockers'][0] == 'Landing page or offer is holding back conversion.'
    assert conclusions['risks'][0] == 'Scaling now risks a loss.'


def test_action_plan_mentions_break_even():
    metrics, _ = _metrics(1000, 50, 5, 2000)
    plan = build_action_plan(metrics)
    assert len(plan) == 3
    assert plan[2]['reason'] == "Break-even CPA is about 4 000 FCFA."
