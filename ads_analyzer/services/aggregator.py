"""
Aggregator

Single pass over normalized rows producing dataset totals plus campaign and
ad-set buckets.

Buckets are keyed by the exact resolved name. 'Promo Noël' and 'promo noel'
land in different buckets; the raw name is what the advertiser typed.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ads_analyzer.services.row_normalizer import NormalizedRow


@dataclass
class Totals:
    spend: float = 0.0
    clicks: float = 0.0
    results: float = 0.0
    impressions: float = 0.0

    def add(self, row: NormalizedRow) -> None:
        self.spend += row.spend_base
        self.clicks += row.clicks
        self.results += row.results
        self.impressions += row.impressions


@dataclass
class AggregateBucket:
    """Running sums for one campaign or ad set. Metadata comes from the first row seen."""
    key: str
    spend: float = 0.0
    clicks: float = 0.0
    results: float = 0.0
    impressions: float = 0.0
    country: Optional[str] = None
    date: Optional[str] = None
    row_count: int = 0

    @classmethod
    def seed(cls, key: str, row: NormalizedRow) -> "AggregateBucket":
        bucket = cls(key=key, country=row.country, date=row.date)
        bucket.add(row)
        return bucket

    def add(self, row: NormalizedRow) -> None:
        self.spend += row.spend_base
        self.clicks += row.clicks
        self.results += row.results
        self.impressions += row.impressions
        self.row_count += 1


@dataclass
class AggregationResult:
    totals: Totals
    campaigns: Dict[str, AggregateBucket] = field(default_factory=dict)
    ad_sets: Dict[str, AggregateBucket] = field(default_factory=dict)
    countries: List[str] = field(default_factory=list)


def _accumulate(buckets: Dict[str, AggregateBucket], key: str, row: NormalizedRow) -> None:
    bucket = buckets.get(key)
    if bucket is None:
        buckets[key] = AggregateBucket.seed(key, row)
    else:
        bucket.add(row)


def aggregate(rows: Iterable[NormalizedRow]) -> AggregationResult:
    """Group rows by campaign and by ad set; totals include every row."""
    result = AggregationResult(totals=Totals())
    seen_countries = set()

    for row in rows:
        result.totals.add(row)
        if row.country and row.country not in seen_countries:
            seen_countries.add(row.country)
            result.countries.append(row.country)
        _accumulate(result.campaigns, row.campaign, row)
        _accumulate(result.ad_sets, row.ad_set, row)

    return result
