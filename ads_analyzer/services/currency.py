"""
Currency Normalizer

Detects the currency of an export row and converts amounts into the
reporting base currency using a static rate table (no live FX).
Unknown codes convert at 1.0, so an unconvertible amount is treated as
already being in base currency instead of dropping the row.
"""
import math
import re
from typing import Any, Dict, Mapping, Optional

from ads_analyzer.config import DEFAULT_CURRENCY_RATES
from ads_analyzer.services.field_resolver import FieldResolver, normalize_header, row_keys
from ads_analyzer.utils.helpers import finite_or_zero

_NOT_NUMERIC = re.compile(r'[^0-9.\-]')
_LEADING_FLOAT = re.compile(r'-?(?:\d+(?:\.\d*)?|\.\d+)')


def parse_number(value: Any) -> float:
    """
    Lenient number parser used for every numeric cell. Never raises.

    None / '' -> 0. Finite numbers pass through. Strings get their first
    comma read as a decimal point, every character outside [0-9.-] dropped,
    and the leading number parsed: '1 234,56' -> 1234.56, '12 %' -> 12,
    'abc' -> 0.
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        value = str(value)
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return number if math.isfinite(number) else 0.0

    cleaned = _NOT_NUMERIC.sub('', str(value).replace(',', '.', 1))
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0.0
    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


class CurrencyConverter:
    """Currency detection and conversion against a fixed rate table"""

    def __init__(
        self,
        rates: Optional[Mapping[str, float]] = None,
        base_currency: str = "FCFA",
        resolver: Optional[FieldResolver] = None,
    ):
        source = rates if rates is not None else DEFAULT_CURRENCY_RATES
        self.rates: Dict[str, float] = {str(code).upper(): float(rate) for code, rate in source.items()}
        self.base_currency = base_currency.upper()
        if self.base_currency not in self.rates:
            self.rates[self.base_currency] = 1.0
        self.resolver = resolver or FieldResolver()

    def is_known(self, code: Any) -> bool:
        return code is not None and str(code).strip().upper() in self.rates

    def detect_currency(self, row: Any) -> str:
        """
        Currency of a row.

        1. the currency column, when its value is a known code;
        2. a known code appearing as a whole segment of a column name
           ('Amount Spent (USD)' -> USD), in rate table order;
        3. the base currency.
        """
        declared = self.resolver.resolve_value(row, 'currency')
        if declared is not None and self.is_known(declared):
            return str(declared).strip().upper()

        segments = set()
        for key in row_keys(row):
            segments.update(part for part in normalize_header(key).split('_') if part)
        for code in self.rates:
            if code.lower() in segments:
                return code

        return self.base_currency

    def rate_for(self, code: Optional[str]) -> float:
        if code is None:
            return 1.0
        return self.rates.get(str(code).upper(), 1.0)

    def to_base(self, value: Any, code: Optional[str]) -> float:
        """Parse `value` and convert it from `code` into the base currency. Overflow gives 0."""
        return finite_or_zero(parse_number(value) * self.rate_for(code))
