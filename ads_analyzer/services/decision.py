"""
Decision Classifier

Deterministic (no LLM) rule tables turning bucket KPIs into SCALE /
OPTIMISER / STOP, and dataset KPIs into a verdict, a global decision,
conclusions and an action plan.
"""
from typing import Dict, List

from ads_analyzer.services.metrics import BusinessContext, GlobalMetrics
from ads_analyzer.utils.helpers import format_currency

SCALE = 'SCALE'
OPTIMISER = 'OPTIMISER'
STOP = 'STOP'

DEFICIT = 'deficit'
FRAGILE = 'fragile'
PROFITABLE = 'profitable'

# ---------------------------------------------------------------------------
# Bucket rules: (min_roas, max CPA as a fraction of break-even CPA, decision),
# evaluated top-down, first match wins. STOP otherwise.
# ---------------------------------------------------------------------------

DECISION_RULES = (
    (3.0, 0.8, SCALE),
    (1.2, 1.0, OPTIMISER),
)

# Global decision: ROAS at or above this keeps the account alive
GLOBAL_SCALE_ROAS = 2.0

_GLOBAL_DECISIONS = {
    True: (
        'OPTIMISE THEN SCALE',
        'The account is positive overall but needs to stabilise before scaling.',
    ),
    False: (
        'STOP OR REBUILD',
        'Overall performance is too weak to scale.',
    ),
}


def classify_bucket(roas: float, cpa: float, break_even_cpa: float) -> str:
    for min_roas, cpa_ratio, decision in DECISION_RULES:
        if roas >= min_roas and cpa <= break_even_cpa * cpa_ratio:
            return decision
    return STOP


def classify_verdict(profit: float, roas: float) -> str:
    """
    Dataset verdict.

    The fragile test compares profit with 20% of its own absolute value; it
    only fires for 0 < profit < 0.2 and is kept as-is pending product input.
    """
    if profit <= 0 or roas < 1:
        return DEFICIT
    if roas < 2 or profit < 0.2 * max(1, abs(profit)):
        return FRAGILE
    return PROFITABLE


def global_decision(roas: float) -> Dict[str, str]:
    decision, reason = _GLOBAL_DECISIONS[roas >= GLOBAL_SCALE_ROAS]
    return {'decision': decision, 'reason': reason}


def build_summary(metrics: GlobalMetrics) -> Dict:
    return {
        'verdict': classify_verdict(metrics.profit, metrics.roas),
        'profit': metrics.profit,
        **global_decision(metrics.roas),
    }


def build_conclusions(metrics: GlobalMetrics, context: BusinessContext) -> Dict[str, List[str]]:
    return {
        'whatWorks': [
            'Creatives drive reasonable engagement.' if metrics.ctr >= 1.5
            else 'Creatives have room for improvement.',
            'Overall profitability is acceptable.' if metrics.roas >= 2
            else 'Profitability is insufficient.',
        ],
        'blockers': [
            'Landing page or offer is holding back conversion.' if metrics.conversion_rate < 1
            else 'Conversion can still be optimised.',
            'CPA is above break-even.' if metrics.cpa > metrics.break_even_cpa
            else 'CPA is close to the acceptable threshold.',
        ],
        'risks': [
            'Scaling now risks a loss.' if metrics.roas < 1.5
            else 'Scaling must stay progressive.',
            'Actual spend exceeds the declared budget.' if context.declared_budget < metrics.spend
            else 'Budget is consistent with spend.',
        ],
    }


def build_action_plan(metrics: GlobalMetrics, currency: str = "FCFA") -> List[Dict[str, str]]:
    return [
        {
            'title': 'Fix the landing page (priority 1)',
            'reason': 'Conversion is too low for the traffic received.' if metrics.conversion_rate < 1
            else 'Improve conversion to secure ROAS.',
        },
        {
            'title': 'Optimise creatives and hooks',
            'reason': 'Weak CTR: the message is not convincing.' if metrics.ctr < 1.5
            else 'Test new angles before scaling.',
        },
        {
            'title': 'Scale progressively (+20%) only while CPA stays below break-even',
            'reason': f"Break-even CPA is about {format_currency(metrics.break_even_cpa, currency)}.",
        },
    ]
