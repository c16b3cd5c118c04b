"""Short, human-readable observations about the user's spending.

Each insight has its own formula and is evaluated independently, so missing
data for one (no groups, no friends) never suppresses the others.  The full
list is returned; :func:`top_insights` applies the usual display truncation.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Callable, Iterable, List, Optional

import pandas as pd

from .balances import compute_friend_balances
from .config import EngineConfig, get_config
from .formatting import format_currency, round_half_up
from .models import Expense, Group, Insight, parse_records
from .spending import DateLike, expense_frame, expenses_by_category, monthly_comparison, total_share

logger = logging.getLogger(__name__)

Formatter = Callable[[float, str], str]


def generate_insights(
    expenses: Iterable[Any],
    friends: Iterable[Any],
    groups: Iterable[Any],
    user_id: Any,
    *,
    today: DateLike = None,
    config: Optional[EngineConfig] = None,
    currency: Optional[str] = None,
    formatter: Optional[Formatter] = None,
) -> List[Insight]:
    """Build the insight list for a user.

    Args:
        expenses: Expense records (or mappings)
        friends: Friend records with balances relative to the user
        groups: Group records, used to name the most active group
        user_id: The user whose shares are analysed
        today: Reference date for the month-over-month comparison
        config: Thresholds to use instead of the environment defaults
        currency: Currency used to display amounts (default currency if omitted)
        formatter: ``(amount, currency) -> str``; defaults to :func:`format_currency`

    Returns:
        Insights in a fixed order: category, expense, trend, group, friend,
        average, velocity
    """
    engine_config = config or get_config()
    currency = currency or engine_config.balance.default_currency
    fmt = formatter or format_currency

    records = [e for e in parse_records(Expense, expenses) if e.is_active]
    frame = expense_frame(records, user_id)

    insights: List[Insight] = []
    for build in (_dominant_category, _biggest_expense):
        insight = build(records, frame, user_id, fmt, currency)
        if insight is not None:
            insights.append(insight)

    trend = _month_over_month(records, user_id, today, fmt, currency)
    if trend is not None:
        insights.append(trend)

    group = _most_active_group(records, parse_records(Group, groups))
    if group is not None:
        insights.append(group)

    friend = _top_counterpart(friends, engine_config, fmt)
    if friend is not None:
        insights.append(friend)

    for build in (_average_share, _velocity):
        insight = build(records, frame, user_id, fmt, currency)
        if insight is not None:
            insights.append(insight)

    logger.debug("Generated %d insights for user %s", len(insights), user_id)
    return insights


def top_insights(insights: List[Insight], limit: int = 2) -> List[Insight]:
    return insights[:max(limit, 0)]


def _dominant_category(records, frame, user_id, fmt, currency) -> Optional[Insight]:
    categories = expenses_by_category(records, user_id)
    if not categories:
        return None
    top = categories[0]
    total = sum(c.amount for c in categories)
    pct = round_half_up(top.amount / total * 100) if total > 0 else 0
    return Insight(
        kind='category',
        icon='📊',
        title=f"{top.name} dominates",
        description=(
            f"{pct}% of your spending ({fmt(top.amount, currency)}) goes to {top.name}. "
            f"That's {top.count} expenses."
        ),
    )


def _biggest_expense(records, frame, user_id, fmt, currency) -> Optional[Insight]:
    positive = frame[frame['Share'] > 0]
    if positive.empty:
        return None
    # idxmax keeps the first of equal shares
    row = positive.loc[positive['Share'].idxmax()]
    return Insight(
        kind='expense',
        icon='💰',
        title='Biggest expense',
        description=f'"{row["Description"]}": your share was {fmt(float(row["Share"]), currency)}',
    )


def _month_over_month(records, user_id, today, fmt, currency) -> Optional[Insight]:
    comparison = monthly_comparison(records, user_id, today)
    if comparison.last_month <= 0:
        return None
    rising = comparison.pct_change > 0
    return Insight(
        kind='trend',
        icon='📈' if rising else '📉',
        title=f"Spending {'up' if rising else 'down'} {round_half_up(abs(comparison.pct_change))}%",
        description=(
            f"This month: {fmt(comparison.this_month, currency)} "
            f"vs last month: {fmt(comparison.last_month, currency)}"
        ),
    )


def _most_active_group(records: List[Expense], groups: List[Group]) -> Optional[Insight]:
    counts = Counter(e.group_id for e in records if e.group_id not in (None, 0))
    if not counts:
        return None
    group_id, count = counts.most_common(1)[0]
    group = next((g for g in groups if g.id == group_id), None)
    if group is None:
        logger.debug("Most active group %s is not in the group list", group_id)
        return None
    return Insight(
        kind='group',
        icon='👥',
        title=f"Most active: {group.name}",
        description=f"{count} expenses in this group recently",
    )


def _top_counterpart(friends, config: EngineConfig, fmt) -> Optional[Insight]:
    owers = [f for f in compute_friend_balances(friends, config) if f.primary_balance_amount > 0]
    if not owers:
        return None
    top = owers[0]
    return Insight(
        kind='friend',
        icon='🤝',
        title=f"{top.name} owes you the most",
        description=f"Outstanding: {fmt(top.primary_balance_amount, top.primary_currency)}",
    )


def _average_share(records, frame, user_id, fmt, currency) -> Optional[Insight]:
    if frame.empty:
        return None
    count = len(frame)
    return Insight(
        kind='average',
        icon='📏',
        title='Average expense share',
        description=f"{fmt(total_share(frame) / count, currency)} across {count} expenses",
    )


def _velocity(records, frame, user_id, fmt, currency) -> Optional[Insight]:
    if len(frame) < 2:
        return None
    span = frame['Date'].max() - frame['Date'].min()
    days = max(int(span / pd.Timedelta(days=1)), 1)
    per_day = total_share(frame) / days
    return Insight(
        kind='velocity',
        icon='⚡',
        title=f"{fmt(per_day, currency)}/day",
        description=f"Average daily spending rate over {days} days",
    )
