"""Formatting utilities for currency display.

The currency → locale table and the locale conventions live in
``data/currency_locales.json``.  Every function accepts a ``locales`` mapping
of the same shape so callers can add currencies without code changes.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Mapping, Optional, Union

from .config import DEFAULT_CURRENCY
from .defaults import load_config


def round_half_up(value: Union[float, int]) -> int:
    """Round to the nearest whole unit, halves away from zero.

    Example:
        >>> round_half_up(102.5)
        103
    """
    return int(Decimal(str(value)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


@lru_cache(maxsize=1)
def default_locales() -> Mapping[str, Any]:
    return load_config('currency_locales')


def currency_symbol(currency: str = DEFAULT_CURRENCY, locales: Optional[Mapping[str, Any]] = None) -> str:
    """Get the symbol for a currency code, falling back to the code itself."""
    table = locales if locales is not None else default_locales()
    return table.get('symbols', {}).get(currency, currency)


def _group_digits(digits: str, grouping: str, separator: str) -> str:
    if grouping == 'indian' and len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        pairs = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        return separator.join(pairs + [tail])
    return f"{int(digits):,}".replace(',', separator)


def format_currency(amount: Union[float, int], currency: str = DEFAULT_CURRENCY,
                    locales: Optional[Mapping[str, Any]] = None) -> str:
    """Format an amount in whole currency units using the currency's locale.

    Example:
        >>> format_currency(1234567, 'INR')
        '₹12,34,567'
        >>> format_currency(-1234.4, 'USD')
        '-$1,234'
    """
    table = locales if locales is not None else default_locales()
    locale = table.get('currencies', {}).get(currency, table.get('default_locale', 'en-US'))
    conventions = table.get('locales', {}).get(locale, {})

    whole = round_half_up(abs(amount))
    digits = _group_digits(str(whole), conventions.get('grouping', 'western'), conventions.get('thousands', ','))
    sign = '-' if amount < 0 and whole != 0 else ''
    symbol = currency_symbol(currency, table)
    if conventions.get('symbol_position') == 'suffix':
        return f"{sign}{digits} {symbol}"
    return f"{sign}{symbol}{digits}"


def format_compact(amount: Union[float, int], currency: str = DEFAULT_CURRENCY,
                   locales: Optional[Mapping[str, Any]] = None) -> str:
    """Format an amount with K/M suffixes (K/L lakh notation for INR).

    Example:
        >>> format_compact(250000, 'INR')
        '₹2.5L'
    """
    symbol = currency_symbol(currency, locales)
    magnitude = abs(amount)
    if currency == 'INR':
        if magnitude >= 100000:
            return f"{symbol}{amount / 100000:.1f}L"
        if magnitude >= 1000:
            return f"{symbol}{amount / 1000:.1f}K"
    else:
        if magnitude >= 1000000:
            return f"{symbol}{amount / 1000000:.1f}M"
        if magnitude >= 1000:
            return f"{symbol}{amount / 1000:.1f}K"
    return f"{symbol}{round_half_up(amount)}"
