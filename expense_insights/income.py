"""Income summaries over income records.

Income records come from the personal ledger; every amount is treated as
positive income in the record's currency.  Records with unparsable dates are
dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

import pandas as pd

from .models import Income, IncomeSummary, parse_records
from .spending import DateLike, parse_dates, reference_date

logger = logging.getLogger(__name__)


def income_frame(incomes: Iterable[Any]) -> pd.DataFrame:
    columns = ['id', 'Date', 'Month', 'Amount', 'Source', 'Category', 'Recurring']
    rows = [
        {
            'id': income.id,
            'Raw Date': income.date,
            'Amount': income.amount,
            'Source': income.source,
            'Category': income.category,
            'Recurring': income.is_recurring,
        }
        for income in parse_records(Income, incomes)
    ]
    if not rows:
        return pd.DataFrame(columns=columns)

    frame = pd.DataFrame(rows)
    frame['Date'] = parse_dates(frame['Raw Date'])
    invalid = frame['Date'].isna()
    if invalid.any():
        logger.debug("Dropping %d income records with unparsable dates", int(invalid.sum()))
        frame = frame[~invalid].copy()
    frame['Month'] = frame['Date'].dt.strftime('%Y-%m')
    return frame[columns].reset_index(drop=True)


def summarize_income(incomes: Iterable[Any], month: Optional[str] = None) -> IncomeSummary:
    """Total income, split into recurring and one-off, with per-category totals.

    Args:
        incomes: Income records (or mappings)
        month: Restrict to a ``YYYY-MM`` month; all records when omitted

    Returns:
        IncomeSummary for the selected records
    """
    frame = income_frame(incomes)
    if month is not None and not frame.empty:
        frame = frame[frame['Month'] == month]
    if frame.empty:
        return IncomeSummary(total=0.0, recurring=0.0, one_off=0.0, by_category={}, count=0)

    recurring = frame['Recurring'].astype(bool)
    by_category = frame.groupby('Category', sort=False)['Amount'].sum().sort_values(ascending=False, kind='mergesort')
    return IncomeSummary(
        total=float(frame['Amount'].sum()),
        recurring=float(frame.loc[recurring, 'Amount'].sum()),
        one_off=float(frame.loc[~recurring, 'Amount'].sum()),
        by_category={str(k): float(v) for k, v in by_category.items()},
        count=len(frame),
    )


def monthly_income_series(incomes: Iterable[Any], exclude_current: bool = False,
                          today: DateLike = None) -> pd.Series:
    """Income per month, indexed by ``YYYY-MM`` and sorted oldest first.

    Example:
        >>> monthly_income_series([
        ...     {'id': 1, 'date': '2024-01-31', 'amount': 5000},
        ...     {'id': 2, 'date': '2024-02-29', 'amount': 5200},
        ... ]).to_dict()
        {'2024-01': 5000.0, '2024-02': 5200.0}
    """
    frame = income_frame(incomes)
    if frame.empty:
        return pd.Series(dtype=float)
    if exclude_current:
        current = reference_date(today).strftime('%Y-%m')
        frame = frame[frame['Month'] < current]
    series = frame.groupby('Month')['Amount'].sum().sort_index().astype(float)
    series.index.name = None
    return series


def average_monthly_income(incomes: Iterable[Any], months: int = 3, today: DateLike = None) -> float:
    """Mean income of the most recent complete months (the current month is excluded)."""
    series = monthly_income_series(incomes, exclude_current=True, today=today)
    if series.empty:
        return 0.0
    recent = series.sort_index(ascending=False).head(months)
    return float(recent.mean())


def savings_rate(income_total: float, expense_total: float) -> float:
    """Share of income left after expenses, in percent (0 without income)."""
    if income_total <= 0:
        return 0.0
    return (income_total - expense_total) / income_total * 100
