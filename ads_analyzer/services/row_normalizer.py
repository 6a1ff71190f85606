"""
Row Normalizer

Turns raw export rows into NormalizedRow records: resolved names, numeric
metrics and spend in base currency. Rows without any signal (no spend,
clicks, results or impressions) are dropped.
"""
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from ads_analyzer.services.currency import CurrencyConverter, parse_number
from ads_analyzer.services.errors import NoExploitableRowsError
from ads_analyzer.services.field_resolver import FieldResolver
from ads_analyzer.utils.logger import log

UNKNOWN_CAMPAIGN = "Unknown campaign"
UNKNOWN_AD_SET = "Unknown ad set"


@dataclass
class NormalizedRow:
    campaign: str
    ad_set: str
    spend_base: float
    clicks: float
    results: float
    impressions: float
    country: Optional[str] = None
    date: Optional[str] = None
    currency: Optional[str] = None

    @property
    def has_signal(self) -> bool:
        return self.spend_base > 0 or self.clicks > 0 or self.results > 0 or self.impressions > 0


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text_or_none(value: Any) -> Optional[str]:
    return None if _is_blank(value) else str(value)


def _metric(value: Any) -> float:
    return max(0.0, parse_number(value))


class RowNormalizer:
    """
    Usage:
        normalizer = RowNormalizer(resolver, converter)
        rows = normalizer.normalize(raw_rows)
    """

    def __init__(self, resolver: FieldResolver, converter: CurrencyConverter):
        self.resolver = resolver
        self.converter = converter

    def normalize_row(self, row: Any) -> NormalizedRow:
        campaign_raw = self.resolver.resolve_value(row, 'campaign')
        ad_set_raw = self.resolver.resolve_value(row, 'adSet')

        if not _is_blank(campaign_raw):
            campaign = str(campaign_raw)
        elif not _is_blank(ad_set_raw):
            campaign = str(ad_set_raw)
        else:
            campaign = UNKNOWN_CAMPAIGN

        if not _is_blank(ad_set_raw):
            ad_set = str(ad_set_raw)
        elif not _is_blank(campaign_raw):
            ad_set = str(campaign_raw)
        else:
            ad_set = UNKNOWN_AD_SET

        currency = self.converter.detect_currency(row)

        return NormalizedRow(
            campaign=campaign,
            ad_set=ad_set,
            spend_base=max(0.0, self.converter.to_base(self.resolver.resolve_value(row, 'spend'), currency)),
            clicks=_metric(self.resolver.resolve_value(row, 'clicks')),
            results=_metric(self.resolver.resolve_value(row, 'results')),
            impressions=_metric(self.resolver.resolve_value(row, 'impressions')),
            country=_text_or_none(self.resolver.resolve_value(row, 'country')),
            date=_text_or_none(self.resolver.resolve_value(row, 'date')),
            currency=currency,
        )

    def normalize(self, rows: Iterable[Any]) -> List[NormalizedRow]:
        """Normalize every row, keep input order, drop zero-signal rows."""
        normalized: List[NormalizedRow] = []
        dropped = 0
        for row in rows:
            record = self.normalize_row(row)
            if record.has_signal:
                normalized.append(record)
            else:
                dropped += 1

        if dropped:
            log.info(f"Dropped {dropped} rows without spend, clicks, results or impressions")

        if not normalized:
            raise NoExploitableRowsError()

        return normalized
