"""Spending breakdowns over shared-expense records.

These helpers flatten expense records into a pandas DataFrame and compute
the category, monthly, group and weekday views that feed the budget engine
and the insight generator.

The user's amount for a record is their owed share when ``user_id`` is
given (zero when they are not a participant) and the full record cost in
ledger mode (``user_id=None``).  Settlement payments and cancelled records
never count as spending.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .categories import classify
from .models import CategorySpend, Expense, Group, MonthlyComparison, parse_records

logger = logging.getLogger(__name__)

DAYS_OF_WEEK = ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']

FRAME_COLUMNS = ['id', 'Description', 'Category', 'Date', 'Raw Date', 'Cost', 'Share', 'Paid', 'Group']

DateLike = Union[str, date, datetime, pd.Timestamp, None]


def parse_dates(values: Union[pd.Series, Sequence[Any]]) -> pd.Series:
    """Parse ISO-8601 strings into naive timestamps; unparsable values become NaT."""
    series = values if isinstance(values, pd.Series) else pd.Series(list(values), dtype=object)
    parsed = pd.to_datetime(series, errors='coerce', utc=True, format='ISO8601')
    return parsed.dt.tz_localize(None)


def reference_date(today: DateLike = None) -> pd.Timestamp:
    """Return ``today`` as a naive timestamp, defaulting to the current time."""
    stamp = pd.Timestamp.now() if today is None else pd.Timestamp(today)
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert('UTC').tz_localize(None)
    return stamp


def month_key(stamp: pd.Timestamp) -> str:
    return stamp.strftime('%Y-%m')


def expense_frame(expenses: Iterable[Any], user_id: Any = None) -> pd.DataFrame:
    """Flatten active expense records into a DataFrame, one row per record.

    Records whose date cannot be parsed are dropped.
    """
    rows = []
    for expense in parse_records(Expense, expenses):
        if not expense.is_active:
            continue
        if user_id is None:
            share, paid = expense.cost, expense.cost
        else:
            share, paid = expense.owed_share(user_id), expense.paid_share(user_id)
        rows.append({
            'id': expense.id,
            'Description': expense.description,
            'Category': expense.category or classify(expense.description),
            'Raw Date': expense.date,
            'Cost': expense.cost,
            'Share': share,
            'Paid': paid,
            'Group': expense.group_id,
        })
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    frame = pd.DataFrame(rows)
    frame['Date'] = parse_dates(frame['Raw Date'])
    invalid = frame['Date'].isna()
    if invalid.any():
        logger.debug("Dropping %d expense records with unparsable dates", int(invalid.sum()))
        frame = frame[~invalid]
    return frame[FRAME_COLUMNS].reset_index(drop=True)


def _category_totals(frame: pd.DataFrame) -> pd.DataFrame:
    positive = frame[frame['Share'] > 0]
    if positive.empty:
        return pd.DataFrame(columns=['Amount', 'Count'])
    totals = positive.groupby('Category', sort=False).agg(Amount=('Share', 'sum'), Count=('Share', 'size'))
    return totals.sort_values('Amount', ascending=False, kind='mergesort')


def expenses_by_category(expenses: Iterable[Any], user_id: Any = None) -> List[CategorySpend]:
    """Total the user's positive spend per category, largest first."""
    totals = _category_totals(expense_frame(expenses, user_id))
    return [
        CategorySpend(name=str(name), amount=float(row['Amount']), count=int(row['Count']))
        for name, row in totals.iterrows()
    ]


def monthly_expenses_by_category(expenses: Iterable[Any], user_id: Any, month: str) -> Dict[str, CategorySpend]:
    """Category spend for a single ``YYYY-MM`` month, keyed by category name."""
    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return {}
    in_month = frame[frame['Date'].dt.strftime('%Y-%m') == month]
    totals = _category_totals(in_month)
    return {
        str(name): CategorySpend(name=str(name), amount=float(row['Amount']), count=int(row['Count']))
        for name, row in totals.iterrows()
    }


def monthly_total(expenses: Iterable[Any], user_id: Any, month: str) -> float:
    """The user's positive spend for a ``YYYY-MM`` month."""
    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return 0.0
    in_month = frame[(frame['Date'].dt.strftime('%Y-%m') == month) & (frame['Share'] > 0)]
    return float(in_month['Share'].sum())


def monthly_comparison(expenses: Iterable[Any], user_id: Any, today: DateLike = None) -> MonthlyComparison:
    """Compare this month's spend with last month's."""
    reference = reference_date(today)
    this_key = month_key(reference)
    last_key = month_key(reference - pd.DateOffset(months=1))

    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return MonthlyComparison(0.0, 0.0, 0.0)
    months = frame['Date'].dt.strftime('%Y-%m')
    this_total = float(frame.loc[months == this_key, 'Share'].sum())
    last_total = float(frame.loc[months == last_key, 'Share'].sum())
    pct_change = (this_total - last_total) / last_total * 100 if last_total > 0 else 0.0
    return MonthlyComparison(this_month=this_total, last_month=last_total, pct_change=pct_change)


def monthly_spending(expenses: Iterable[Any], user_id: Any, months: int = 12, today: DateLike = None) -> pd.DataFrame:
    """Per-month totals for the trailing ``months`` months, oldest first.

    Columns: Month (``YYYY-MM``), Label, Total (record cost), Paid, Share.
    """
    reference = reference_date(today)
    keys = [reference - pd.DateOffset(months=offset) for offset in range(months - 1, -1, -1)]
    result = pd.DataFrame({
        'Month': [month_key(k) for k in keys],
        'Label': [k.strftime('%b %Y') for k in keys],
    })

    for column in ('Total', 'Paid', 'Share'):
        result[column] = 0.0
    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return result
    frame['Month'] = frame['Date'].dt.strftime('%Y-%m')
    totals = frame.groupby('Month').agg(Total=('Cost', 'sum'), Paid=('Paid', 'sum'), Share=('Share', 'sum'))
    for column in ('Total', 'Paid', 'Share'):
        result[column] = result['Month'].map(totals[column]).astype(float).fillna(0.0)
    return result


def group_spending(groups: Iterable[Any], expenses: Iterable[Any], user_id: Any) -> pd.DataFrame:
    """Totals per group, busiest first; the non-group bucket (id 0) is excluded."""
    columns = ['id', 'name', 'total_expenses', 'your_share', 'member_count', 'expense_count']
    known = [g for g in parse_records(Group, groups) if g.id != 0]
    if not known:
        return pd.DataFrame(columns=columns)

    summary = pd.DataFrame({
        'id': [g.id for g in known],
        'name': [g.name for g in known],
        'member_count': [len(g.members) for g in known],
    })
    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return pd.DataFrame(columns=columns)
    totals = frame.groupby('Group').agg(
        total_expenses=('Cost', 'sum'),
        your_share=('Share', 'sum'),
        expense_count=('Cost', 'size'),
    )
    for column in ('total_expenses', 'your_share'):
        summary[column] = summary['id'].map(totals[column]).astype(float).fillna(0.0)
    summary['expense_count'] = summary['id'].map(totals['expense_count']).fillna(0).astype(int)
    summary = summary[summary['total_expenses'] > 0]
    return summary.sort_values('total_expenses', ascending=False, kind='mergesort')[columns].reset_index(drop=True)


def top_payers(expenses: Iterable[Any], names: Optional[Mapping[Any, str]] = None) -> pd.DataFrame:
    """Who paid the most across all active expenses."""
    rows = []
    for expense in parse_records(Expense, expenses):
        if not expense.is_active:
            continue
        for share in expense.shares:
            if share.paid_share <= 0:
                continue
            name = (names or {}).get(share.participant_id) or share.name or ''
            rows.append({'id': share.participant_id, 'name': name, 'paid': share.paid_share})
    if not rows:
        return pd.DataFrame(columns=['id', 'name', 'total_paid', 'count'])
    frame = pd.DataFrame(rows)
    result = frame.groupby('id', sort=False).agg(
        name=('name', 'first'),
        total_paid=('paid', 'sum'),
        count=('paid', 'size'),
    ).reset_index()
    return result.sort_values('total_paid', ascending=False, kind='mergesort').reset_index(drop=True)


def day_of_week_spending(expenses: Iterable[Any], user_id: Any = None) -> pd.DataFrame:
    """Spend and record count per weekday, Sunday first."""
    result = pd.DataFrame({'day': DAYS_OF_WEEK, 'amount': 0.0, 'count': 0})
    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return result
    # pandas numbers Monday as 0; shift so Sunday is 0
    day_index = (frame['Date'].dt.dayofweek + 1) % 7
    grouped = frame.groupby(day_index).agg(amount=('Share', 'sum'), count=('Share', 'size'))
    result.loc[grouped.index, 'amount'] = grouped['amount'].astype(float).values
    result.loc[grouped.index, 'count'] = grouped['count'].astype(int).values
    return result


def category_trend(expenses: Iterable[Any], user_id: Any = None, months: int = 4,
                   today: DateLike = None, top_n: int = 5) -> pd.DataFrame:
    """Monthly spend of the top categories over the trailing ``months`` months.

    The index holds ``YYYY-MM`` keys (oldest first); columns are the
    ``top_n`` categories by total spend in the window.
    """
    reference = reference_date(today)
    keys = [month_key(reference - pd.DateOffset(months=offset)) for offset in range(months - 1, -1, -1)]

    frame = expense_frame(expenses, user_id)
    if frame.empty:
        return pd.DataFrame(index=pd.Index(keys, name='Month'))
    frame['Month'] = frame['Date'].dt.strftime('%Y-%m')
    frame = frame[frame['Month'].isin(keys) & (frame['Share'] > 0)]
    if frame.empty:
        return pd.DataFrame(index=pd.Index(keys, name='Month'))

    top = _category_totals(frame).head(top_n).index.tolist()
    pivot = frame[frame['Category'].isin(top)].pivot_table(
        index='Month', columns='Category', values='Share', aggfunc='sum', fill_value=0.0
    )
    pivot = pivot.reindex(index=keys, columns=top, fill_value=0.0).astype(float)
    pivot.index.name = 'Month'
    pivot.columns.name = None
    return pivot


def total_share(frame: pd.DataFrame) -> float:
    return float(np.nansum(frame['Share'].to_numpy(dtype=float))) if not frame.empty else 0.0
