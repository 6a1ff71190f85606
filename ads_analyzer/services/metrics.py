"""
Metrics & Revenue Allocation

Derives the advertising KPIs from dataset totals and the declared business
context, allocates declared revenue across buckets and maps each KPI to a
qualitative band.

Every ratio guards its denominator: a zero denominator gives 0, never NaN
or infinity.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from ads_analyzer.services.aggregator import AggregateBucket, Totals
from ads_analyzer.utils.helpers import safe_divide, format_currency


@dataclass
class BusinessContext:
    revenue_total: float
    campaign_days: float
    daily_budget: float
    product_price: float

    @property
    def declared_budget(self) -> float:
        return self.daily_budget * self.campaign_days


@dataclass
class GlobalMetrics:
    spend: float
    clicks: float
    results: float
    impressions: float
    revenue_total: float
    revenue_per_unit: float
    cpa: float
    roas: float
    profit: float
    break_even_cpa: float
    ctr: float
    cpc: float
    conversion_rate: float


@dataclass
class BucketPerformance:
    name: str
    spend: float
    clicks: float
    results: float
    impressions: float
    revenue: float
    cpa: float
    roas: float
    ctr: float
    cpc: float
    conversion_rate: float
    row_count: int = 0
    decision: Optional[str] = None


# ---------------------------------------------------------------------------
# Indicator bands: evaluated top-down, first match wins, last band is the
# fallback (upper=None).
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Band:
    upper: Optional[float]
    level: str
    interpretation: str
    inclusive: bool = False

    def contains(self, value: float) -> bool:
        if self.upper is None:
            return True
        return value <= self.upper if self.inclusive else value < self.upper


INDICATOR_BANDS: Dict[str, List[Band]] = {
    'ctr': [
        Band(1.0, 'weak', 'Weak CTR: creative or message is not convincing.'),
        Band(2.0, 'average', 'Average CTR: room for creative improvement.'),
        Band(None, 'solid', 'Solid CTR: creative and message resonate.'),
    ],
    # Measured on CPC per CTR point
    'cpc': [
        Band(200.0, 'consistent', 'CPC consistent: delivery is healthy.', inclusive=True),
        Band(None, 'high', 'CPC high for the CTR: review targeting or offer.'),
    ],
    'conversion': [
        Band(1.0, 'weak', 'Weak conversion: landing page or offer is the bottleneck.'),
        Band(2.0, 'average', 'Average conversion: optimisation required.'),
        Band(None, 'solid', 'Solid conversion: traffic is well qualified.'),
    ],
    'roas': [
        Band(1.0, 'loss', 'ROAS below 1: net loss.'),
        Band(2.0, 'weak', 'Weak ROAS: too fragile to scale.'),
        Band(None, 'healthy', 'Healthy ROAS: room to grow.'),
    ],
}


def pick_band(key: str, value: float) -> Band:
    """First band of `key` containing `value`"""
    bands = INDICATOR_BANDS[key]
    for band in bands:
        if band.contains(value):
            return band
    return bands[-1]


# ---------------------------------------------------------------------------
# Computation
# ---------------------------------------------------------------------------

def compute_global_metrics(totals: Totals, context: BusinessContext) -> GlobalMetrics:
    """Dataset-level KPIs. Without any conversion, product price stands in for revenue per unit."""
    revenue_per_unit = (
        context.revenue_total / totals.results if totals.results > 0 else context.product_price
    )
    return GlobalMetrics(
        spend=totals.spend,
        clicks=totals.clicks,
        results=totals.results,
        impressions=totals.impressions,
        revenue_total=context.revenue_total,
        revenue_per_unit=revenue_per_unit,
        cpa=safe_divide(totals.spend, totals.results),
        roas=safe_divide(context.revenue_total, totals.spend),
        profit=context.revenue_total - totals.spend,
        break_even_cpa=revenue_per_unit,
        ctr=safe_divide(totals.clicks, totals.impressions) * 100,
        cpc=safe_divide(totals.spend, totals.clicks),
        conversion_rate=safe_divide(totals.results, totals.clicks) * 100,
    )


def allocate_revenue(bucket: AggregateBucket, totals: Totals, revenue_total: float) -> float:
    """
    Share of declared revenue attributed to a bucket.

    Proportional to conversions when the dataset has any, otherwise to spend.
    """
    if totals.results > 0:
        return bucket.results / totals.results * revenue_total
    return safe_divide(bucket.spend, totals.spend) * revenue_total


def evaluate_bucket(bucket: AggregateBucket, totals: Totals, revenue_total: float) -> BucketPerformance:
    revenue = allocate_revenue(bucket, totals, revenue_total)
    return BucketPerformance(
        name=bucket.key,
        spend=bucket.spend,
        clicks=bucket.clicks,
        results=bucket.results,
        impressions=bucket.impressions,
        revenue=revenue,
        cpa=safe_divide(bucket.spend, bucket.results),
        roas=safe_divide(revenue, bucket.spend),
        ctr=safe_divide(bucket.clicks, bucket.impressions) * 100,
        cpc=safe_divide(bucket.spend, bucket.clicks),
        conversion_rate=safe_divide(bucket.results, bucket.clicks) * 100,
        row_count=bucket.row_count,
    )


def build_indicators(metrics: GlobalMetrics, currency: str = "FCFA") -> List[Dict]:
    """CTR, CPC, Conversion and ROAS with their formatted value and interpretation."""
    cpc_per_ctr_point = metrics.cpc / max(1.0, metrics.ctr) if metrics.ctr > 0 else 0.0

    entries = [
        ('ctr', 'CTR', f"{metrics.ctr:.2f}%", pick_band('ctr', metrics.ctr)),
        ('cpc', 'CPC', format_currency(metrics.cpc, currency), pick_band('cpc', cpc_per_ctr_point)),
        ('conversion', 'Conversion', f"{metrics.conversion_rate:.2f}%",
         pick_band('conversion', metrics.conversion_rate)),
        ('roas', 'ROAS', f"{metrics.roas:.2f}", pick_band('roas', metrics.roas)),
    ]

    return [
        {
            'key': key,
            'label': label,
            'value': value,
            'level': band.level,
            'interpretation': band.interpretation,
        }
        for key, label, value, band in entries
    ]
