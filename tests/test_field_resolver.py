"""
Header normalization and field resolution tests.

Guards against:
1. Accent / case / punctuation variants of a header resolving differently
2. Alias priority being ignored (generic alias beating a precise one)
3. Resolver raising on unknown layouts instead of reporting "not found"
"""
from ads_analyzer.services.field_resolver import (
    FIELD_ALIASES,
    FieldResolver,
    compile_rules,
    normalize_header,
)


# ---------------------------------------------------------------------------
# normalize_header
# ---------------------------------------------------------------------------

def test_normalize_is_case_and_accent_insensitive():
    assert normalize_header("Dépense") == normalize_header("DEPENSE") == normalize_header("depense") == "depense"


def test_normalize_collapses_punctuation_runs():
    assert normalize_header("  Amount Spent (USD)") == "amount_spent_usd_"
    assert normalize_header("Nom de l'ensemble de publicités") == "nom_de_l_ensemble_de_publicites"


def test_normalize_is_idempotent():
    for raw in ["Montant dépensé (HKD)", "CTR (taux de clics)", "  --Résultats--  ", "", "Coût/résultat"]:
        once = normalize_header(raw)
        assert normalize_header(once) == once


def test_normalize_handles_none_and_numbers():
    assert normalize_header(None) == ""
    assert normalize_header(2024) == "2024"


# ---------------------------------------------------------------------------
# Rule compilation
# ---------------------------------------------------------------------------

def test_rules_try_exact_before_contains_for_each_alias():
    rules = compile_rules({'spend': ('amount_spent', 'spend')})['spend']
    assert [(r.alias, r.matcher) for r in rules] == [
        ('amount_spent', 'exact'),
        ('amount_spent', 'contains'),
        ('spend', 'exact'),
        ('spend', 'contains'),
    ]


def test_rules_drop_aliases_that_normalize_to_the_same_token():
    rules = compile_rules(FIELD_ALIASES)['spend']
    aliases = [r.alias for r in rules if r.matcher == 'exact']
    assert aliases.count('depense') == 1
    assert aliases.count('montant_depense') == 1


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def test_resolves_french_meta_export():
    row = {
        "Nom de la campagne": "C1",
        "Montant dépensé": "1000",
        "clics": "50",
        "achats": "5",
        "impressions": "2000",
    }
    resolver = FieldResolver()
    assert resolver.resolve_key(row, 'campaign') == "Nom de la campagne"
    assert resolver.resolve_key(row, 'spend') == "Montant dépensé"
    assert resolver.resolve_key(row, 'clicks') == "clics"
    assert resolver.resolve_key(row, 'results') == "achats"
    assert resolver.resolve_value(row, 'impressions') == "2000"


def test_alias_order_beats_column_order():
    """'amount_spent' is listed before 'cost', so it wins even when 'Cost' comes first."""
    row = {"Cost": "5", "Amount spent": "10"}
    assert FieldResolver().resolve_key(row, 'spend') == "Amount spent"


def test_exact_match_beats_substring_for_same_alias():
    row = {"Link clicks": "3", "Clicks": "7"}
    assert FieldResolver().resolve_key(row, 'clicks') == "Clicks"


def test_ambiguous_columns_resolve_to_first_in_row_order():
    row = {"Spend (EUR)": "1", "Spend (USD)": "2"}
    assert FieldResolver().resolve_key(row, 'spend') == "Spend (EUR)"


def test_missing_field_returns_none():
    row = {"foo": 1, "bar": 2}
    resolver = FieldResolver()
    assert resolver.resolve_key(row, 'campaign') is None
    assert resolver.resolve_value(row, 'campaign') is None


def test_non_mapping_row_resolves_nothing():
    resolver = FieldResolver()
    assert resolver.resolve_value("not a row", 'spend') is None
    assert all(v is None for v in resolver.field_map(None).values())


def test_field_map_reports_every_logical_field():
    row = {"Campaign name": "A", "Ad set name": "B", "Amount spent": 1, "Country": "CI", "Day": "x"}
    field_map = FieldResolver().field_map(row)
    assert set(field_map) == set(FIELD_ALIASES)
    assert field_map['campaign'] == "Campaign name"
    assert field_map['adSet'] == "Ad set name"
    assert field_map['country'] == "Country"
    assert field_map['date'] is None


def test_resolution_is_cached_per_key_shape():
    resolver = FieldResolver()
    resolver.resolve_key({"spend": 1, "clicks": 2}, 'spend')
    resolver.resolve_key({"spend": 3, "clicks": 4}, 'clicks')
    resolver.resolve_key({"clicks": 4, "spend": 3}, 'clicks')
    assert len(resolver._shape_cache) == 2


def test_custom_alias_table():
    resolver = FieldResolver({'spend': ('budget_used',)})
    assert resolver.resolve_key({"Budget used": 4}, 'spend') == "Budget used"
    assert resolver.fields == ['spend']
