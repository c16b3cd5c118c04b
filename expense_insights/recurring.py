"""Helpers for detecting recurring charges like subscriptions or rent.

Detection is heuristic: a description that repeats at a steady cadence
(weekly, bi-weekly or monthly) with a consistent amount is reported as a
recurring charge.  Irregular billing or changing prices produce false
negatives, which is accepted.  All thresholds come from
:class:`~expense_insights.config.RecurringThresholds`.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence

import pandas as pd

from .categories import classify
from .config import EngineConfig, FrequencyWindow, get_config
from .formatting import round_half_up
from .models import Expense, RecurringCharge, parse_records
from .spending import DateLike, parse_dates, reference_date

logger = logging.getLogger(__name__)


@dataclass
class GapStats:
    avg_days: float
    samples: int


def normalize_description(value: Any) -> str:
    """Normalize description text so repeated charges group together.

    Example:
        >>> normalize_description('Netflix  Subscription 0124')
        'netflix subscription'
    """
    if not isinstance(value, str):
        return ''
    text = value.lower()
    text = re.sub(r'[0-9]+', '', text)
    text = re.sub(r'\s+', ' ', text)
    return text.strip()


def detect_recurring(expenses: Iterable[Any], *, today: DateLike = None,
                     config: Optional[EngineConfig] = None) -> List[RecurringCharge]:
    """Identify subscription-like charges in the expense history.

    Args:
        expenses: Expense records (or mappings accepted by ``Expense.from_dict``)
        today: Reference date for the trailing analysis window; defaults to now
        config: Thresholds to use instead of the environment defaults

    Returns:
        Up to ``max_candidates`` charges, highest average amount first
    """
    thresholds = (config or get_config()).recurring
    working = _charge_frame(expenses, thresholds.min_key_length)
    if working.empty:
        return []

    window_start = reference_date(today) - pd.DateOffset(months=thresholds.window_months)
    candidates: List[RecurringCharge] = []

    for key, group in working.groupby('Key', sort=False):
        if len(group) < thresholds.min_occurrences:
            continue
        recent = group[group['Date'] >= window_start]
        if len(recent) < thresholds.min_window_occurrences:
            continue
        recent = recent.sort_values('Date', kind='mergesort')

        stats = _gap_stats(recent['Date'])
        if stats.samples == 0:
            continue
        frequency = _label_frequency(stats.avg_days, thresholds.frequency_windows)
        if frequency is None:
            continue

        variation = coefficient_of_variation(recent['Amount'])
        if variation > thresholds.max_variation:
            logger.debug("Skipping '%s': amount variation %.2f above %.2f", key, variation, thresholds.max_variation)
            continue

        representative = group.iloc[0]
        candidates.append(
            RecurringCharge(
                description=representative['Description'],
                category=representative['Category'],
                frequency=frequency,
                occurrence_count=len(recent),
                average_amount=round_half_up(recent['Amount'].mean()),
                months_analyzed=thresholds.window_months,
                last_date=recent['Raw Date'].iloc[-1],
            )
        )

    candidates.sort(key=lambda c: c.average_amount, reverse=True)
    return candidates[:thresholds.max_candidates]


def coefficient_of_variation(amounts: pd.Series) -> float:
    """Population standard deviation over the mean; infinite when the mean is not positive."""
    if amounts.empty:
        return math.inf
    mean = float(amounts.mean())
    if mean <= 0:
        return math.inf
    return float(amounts.std(ddof=0)) / mean


def monthly_estimate(charge: RecurringCharge, config: Optional[EngineConfig] = None) -> float:
    """Approximate monthly cost of a recurring charge from its cadence."""
    window = (config or get_config()).recurring.window_for(charge.frequency)
    multiplier = window.monthly_multiplier if window is not None else 1.0
    return round(charge.average_amount * multiplier, 2)


def _charge_frame(expenses: Iterable[Any], min_key_length: int) -> pd.DataFrame:
    rows = []
    for expense in parse_records(Expense, expenses):
        if expense.cancelled or expense.is_refund or expense.is_payment:
            continue
        key = normalize_description(expense.description)
        if len(key) < min_key_length:
            continue
        rows.append({
            'Key': key,
            'Description': expense.description,
            'Category': expense.category or classify(expense.description),
            'Raw Date': expense.date,
            'Amount': expense.cost,
        })
    if not rows:
        return pd.DataFrame()

    working = pd.DataFrame(rows)
    working['Date'] = parse_dates(working['Raw Date'])
    invalid = working['Date'].isna()
    if invalid.any():
        # Undated charges still count as occurrences but never fall inside the window
        logger.debug("%d charges have unparsable dates; counted for repetition only", int(invalid.sum()))
    return working


def _gap_stats(dates: pd.Series) -> GapStats:
    diffs = dates.diff().dt.days.dropna()
    if diffs.empty:
        return GapStats(0.0, 0)
    return GapStats(float(diffs.mean()), len(diffs))


def _label_frequency(gap: float, windows: Sequence[FrequencyWindow]) -> Optional[str]:
    for window in windows:
        if window.contains(gap):
            return window.label
    return None
