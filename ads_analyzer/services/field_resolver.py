"""
Field Resolver

Maps the arbitrary column names of an ad export (Meta, Google, TikTok, in
English or French, with or without accents) onto the logical fields the
analyzer works with.

The alias table is plain data: each logical field has an ordered list of
aliases, and each alias is tried first as an exact token match, then as a
substring of a column token. The first alias that matches wins, so precise
names must come before generic ones ('amount_spent' before 'montant').
When several columns match the same alias, the first column in row order is
used. That is deterministic, not necessarily the best column.
"""
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    'campaign': (
        'campaign', 'campaign_name', 'campaign_name_', 'nom_de_la_campagne', 'nom_campagne',
    ),
    'adSet': (
        'adset', 'ad_set', 'adset_name', 'ad_set_name', 'ensemble', 'adset_name_',
        'nom_de_lensemble_de_publicites', 'nom_de_lensemble_de_publicits',
    ),
    'spend': (
        'amount_spent', 'spend', 'depense', 'dépense', 'montant_depense', 'montant_dépense',
        'cost', 'spent', 'montant', 'montant_dpens', 'montant_dpens_hkd',
    ),
    'clicks': (
        'clicks', 'clics', 'link_clicks', 'outbound_clicks', 'unique_clicks',
    ),
    'results': (
        'results', 'resultats', 'résultats', 'purchases', 'achats', 'conversions',
    ),
    'impressions': (
        'impressions', 'impression', 'imp',
    ),
    'country': (
        'country', 'pays', 'geo', 'location',
    ),
    'currency': (
        'currency', 'devise', 'currency_code',
    ),
    'date': (
        'date', 'date_start', 'date_end', 'start_date', 'end_date',
    ),
}

EXACT = 'exact'
CONTAINS = 'contains'
MATCHERS = (EXACT, CONTAINS)

_SEPARATOR_RUN = re.compile(r'[^a-z0-9]+')


def normalize_header(value: Any) -> str:
    """
    Canonical token for a column name or alias.

    Trims, lowercases, strips accents and collapses every run of
    non-alphanumeric characters into a single underscore:
    'Montant dépensé (HKD)' -> 'montant_depense_hkd_'.
    """
    if value is None:
        return ''
    text = str(value).strip().lower()
    text = unicodedata.normalize('NFD', text)
    text = ''.join(ch for ch in text if not unicodedata.combining(ch))
    return _SEPARATOR_RUN.sub('_', text)


@dataclass(frozen=True)
class AliasRule:
    """One step of the resolution plan for a logical field"""
    field: str
    alias: str
    matcher: str

    def matches(self, token: str) -> bool:
        if self.matcher == EXACT:
            return token == self.alias
        return self.alias in token


def compile_rules(aliases: Mapping[str, Sequence[str]]) -> Dict[str, List[AliasRule]]:
    """Expand an alias table into ordered (alias, matcher) rules per field."""
    compiled: Dict[str, List[AliasRule]] = {}
    for field, names in aliases.items():
        rules: List[AliasRule] = []
        seen = set()
        for name in names:
            token = normalize_header(name)
            if not token or token in seen:
                continue
            seen.add(token)
            for matcher in MATCHERS:
                rules.append(AliasRule(field=field, alias=token, matcher=matcher))
        compiled[field] = rules
    return compiled


def row_keys(row: Any) -> Tuple[str, ...]:
    """Column names of a raw row, in row order. Non-mapping rows have none."""
    if not isinstance(row, Mapping):
        return ()
    return tuple(row.keys())


class FieldResolver:
    """
    Resolves logical fields against raw rows.

    Resolution only depends on the set of column names, so the result is
    cached per key shape: a homogeneous export is resolved once for the
    whole batch.

    Usage:
        resolver = FieldResolver()
        resolver.resolve_key(row, 'spend')    # -> 'Montant dépensé' or None
        resolver.resolve_value(row, 'spend')  # -> '1000' or None
    """

    def __init__(self, aliases: Optional[Mapping[str, Sequence[str]]] = None):
        self.aliases = aliases if aliases is not None else FIELD_ALIASES
        self.rules = compile_rules(self.aliases)
        self._shape_cache: Dict[Tuple[str, ...], Dict[str, Optional[str]]] = {}

    @property
    def fields(self) -> List[str]:
        return list(self.rules.keys())

    def _resolve_shape(self, keys: Tuple[str, ...]) -> Dict[str, Optional[str]]:
        cached = self._shape_cache.get(keys)
        if cached is not None:
            return cached

        index = [(key, normalize_header(key)) for key in keys]
        resolved: Dict[str, Optional[str]] = {}
        for field, rules in self.rules.items():
            resolved[field] = None
            for rule in rules:
                match = next((key for key, token in index if rule.matches(token)), None)
                if match is not None:
                    resolved[field] = match
                    break

        self._shape_cache[keys] = resolved
        return resolved

    def resolve_key(self, row: Any, field: str) -> Optional[str]:
        """Raw column name holding `field` in this row, or None when no alias matches."""
        if field not in self.rules:
            raise KeyError(f"Unknown logical field: {field}")
        return self._resolve_shape(row_keys(row)).get(field)

    def resolve_value(self, row: Any, field: str) -> Any:
        """Raw value of `field` in this row, or None when the column is absent."""
        key = self.resolve_key(row, field)
        if key is None:
            return None
        return row.get(key)

    def field_map(self, row: Any) -> Dict[str, Optional[str]]:
        """Resolved column name for every logical field (None when missing)."""
        return dict(self._resolve_shape(row_keys(row)))
