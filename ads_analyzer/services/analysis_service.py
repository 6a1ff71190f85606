"""
Analysis Service
Runs the ad-spend analysis pipeline and assembles the response payload
"""
from typing import Any, Dict, List, Mapping, Optional

from ads_analyzer.config import get_settings
from ads_analyzer.services.aggregator import AggregateBucket, AggregationResult, Totals, aggregate
from ads_analyzer.services.currency import CurrencyConverter, parse_number
from ads_analyzer.services.decision import (
    build_action_plan,
    build_conclusions,
    build_summary,
    classify_bucket,
)
from ads_analyzer.services.errors import EmptyDatasetError, IncompleteBusinessContextError
from ads_analyzer.services.field_resolver import FieldResolver, row_keys
from ads_analyzer.services.llm_service import InsightNarrator, generate_narrative
from ads_analyzer.services.metrics import (
    BucketPerformance,
    BusinessContext,
    GlobalMetrics,
    build_indicators,
    compute_global_metrics,
    evaluate_bucket,
)
from ads_analyzer.services.row_normalizer import RowNormalizer
from ads_analyzer.utils.helpers import finite_or_zero, round_half_up, round_ratio
from ads_analyzer.utils.logger import log

# Request key -> BusinessContext attribute
BUSINESS_CONTEXT_FIELDS = {
    'revenueTotal': 'revenue_total',
    'campaignDays': 'campaign_days',
    'dailyBudget': 'daily_budget',
    'productPrice': 'product_price',
}

RANKING_SIZE = 5


def parse_business_context(raw: Optional[Mapping[str, Any]]) -> BusinessContext:
    """Every field must parse to a positive number, else the request is rejected."""
    raw = raw if isinstance(raw, Mapping) else {}
    values = {}
    missing = []
    for request_key, attribute in BUSINESS_CONTEXT_FIELDS.items():
        value = parse_number(raw.get(request_key))
        if value <= 0:
            missing.append(request_key)
        values[attribute] = value

    if missing:
        raise IncompleteBusinessContextError(missing)
    return BusinessContext(**values)


def bucket_view(perf: BucketPerformance) -> Dict:
    return {
        'name': perf.name,
        'spendFCFA': round_half_up(perf.spend),
        'results': round_half_up(perf.results),
        'clicks': round_half_up(perf.clicks),
        'impressions': round_half_up(perf.impressions),
        'cpaFCFA': round_half_up(perf.cpa),
        'roas': finite_or_zero(perf.roas),
        'revenueFCFA': round_half_up(perf.revenue),
        'ctr': round_ratio(perf.ctr),
        'cpcFCFA': round_half_up(perf.cpc),
        'conversionRate': round_ratio(perf.conversion_rate),
        'decision': perf.decision,
        'rowCount': perf.row_count,
    }


def build_rankings(campaigns: List[BucketPerformance], size: int = RANKING_SIZE) -> Dict[str, List[Dict]]:
    """Best and worst campaigns by ROAS"""
    def entry(perf: BucketPerformance) -> Dict:
        return {
            'name': perf.name,
            'roas': round_ratio(perf.roas),
            'spendFCFA': round_half_up(perf.spend),
            'results': round_half_up(perf.results),
            'cpaFCFA': round_half_up(perf.cpa),
        }

    return {
        'topProfitable': [entry(c) for c in sorted(campaigns, key=lambda c: c.roas, reverse=True)[:size]],
        'bottomToCut': [entry(c) for c in sorted(campaigns, key=lambda c: c.roas)[:size]],
    }


class AnalysisService:
    """
    Orchestrates normalization, aggregation, metrics and decisions.

    Usage:
        service = AnalysisService()
        report = service.build_report(raw_data, business_context)
        report = await service.analyze(raw_data, business_context, narrator)
    """

    def __init__(
        self,
        currency_rates: Optional[Mapping[str, float]] = None,
        base_currency: Optional[str] = None,
    ):
        settings = get_settings()
        self.base_currency = (base_currency or settings.base_currency).upper()
        self.resolver = FieldResolver()
        self.converter = CurrencyConverter(
            rates=currency_rates if currency_rates is not None else settings.currency_rates,
            base_currency=self.base_currency,
            resolver=self.resolver,
        )
        self.normalizer = RowNormalizer(self.resolver, self.converter)

    def evaluate_buckets(
        self,
        buckets: Mapping[str, AggregateBucket],
        totals: Totals,
        metrics: GlobalMetrics,
    ) -> List[BucketPerformance]:
        performances = []
        for bucket in buckets.values():
            perf = evaluate_bucket(bucket, totals, metrics.revenue_total)
            perf.decision = classify_bucket(perf.roas, perf.cpa, metrics.break_even_cpa)
            performances.append(perf)
        return performances

    def build_report(self, raw_data: Any, raw_context: Optional[Mapping[str, Any]]) -> Dict:
        """
        Full synchronous analysis. Raises AnalysisInputError subclasses for
        an empty dataset, an incomplete business context or no usable rows.
        """
        if not isinstance(raw_data, list) or not raw_data:
            raise EmptyDatasetError()

        context = parse_business_context(raw_context)

        first_row = raw_data[0]
        columns = list(row_keys(first_row))
        field_map = self.resolver.field_map(first_row)
        log.info(f"Analyzing {len(raw_data)} rows, {len(columns)} columns")
        log.debug(f"Detected field map: {field_map}")

        rows = self.normalizer.normalize(raw_data)
        aggregation: AggregationResult = aggregate(rows)
        totals = aggregation.totals

        metrics = compute_global_metrics(totals, context)
        campaigns = self.evaluate_buckets(aggregation.campaigns, totals, metrics)
        ad_sets = self.evaluate_buckets(aggregation.ad_sets, totals, metrics)

        log.info(
            f"Aggregated {len(rows)} rows into {len(campaigns)} campaigns / "
            f"{len(ad_sets)} ad sets (spend {totals.spend:.0f} {self.base_currency}, ROAS {metrics.roas:.2f})"
        )

        summary = build_summary(metrics)

        return {
            'success': True,
            'summary': {
                'verdict': summary['verdict'],
                'profitFCFA': round_half_up(summary['profit']),
                'decision': summary['decision'],
                'reason': summary['reason'],
            },
            'campaigns': [bucket_view(c) for c in campaigns],
            'indicators': build_indicators(metrics, self.base_currency),
            'conclusions': build_conclusions(metrics, context),
            'actionPlan': build_action_plan(metrics, self.base_currency),
            'stats': {
                'spendFCFA': round_half_up(totals.spend),
                'clicks': finite_or_zero(totals.clicks),
                'results': finite_or_zero(totals.results),
                'impressions': finite_or_zero(totals.impressions),
                'cpaFCFA': round_half_up(metrics.cpa),
                'roas': finite_or_zero(metrics.roas),
            },
            'metadata': {
                'rowCount': len(rows),
                'columns': columns,
                'fieldMap': field_map,
                'campaignsCount': len(campaigns),
                'adSetsCount': len(ad_sets),
                'countries': list(aggregation.countries),
                'baseCurrency': self.base_currency,
            },
            'adSets': [bucket_view(a) for a in ad_sets],
            'rankings': build_rankings(campaigns),
            'aiNarrative': None,
        }

    async def analyze(
        self,
        raw_data: Any,
        raw_context: Optional[Mapping[str, Any]],
        narrator: Optional[InsightNarrator] = None,
        timeout: Optional[float] = None,
    ) -> Dict:
        """Build the report, then try once to attach a narrative."""
        report = self.build_report(raw_data, raw_context)

        if narrator is not None:
            timeout = timeout if timeout is not None else get_settings().narrative_timeout_seconds
            report['aiNarrative'] = await generate_narrative(
                narrator, self.narrative_context(report, raw_context), timeout
            )

        return report

    def narrative_context(self, report: Dict, raw_context: Optional[Mapping[str, Any]]) -> Dict:
        raw_context = raw_context if isinstance(raw_context, Mapping) else {}
        return {
            'currency': self.base_currency,
            'businessContext': {key: parse_number(raw_context.get(key)) for key in BUSINESS_CONTEXT_FIELDS},
            'summary': report['summary'],
            'stats': report['stats'],
            'campaigns': report['campaigns'],
            'indicators': report['indicators'],
        }
