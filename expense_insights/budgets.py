"""Budget status and alert calculation.

Spend for a month comes from two places: the ledger breakdown computed by
:mod:`expense_insights.spending` and the manual entries stored with the
budget.  Both are combined per category and overall, then compared with the
limits using the cut points in
:class:`~expense_insights.config.BudgetThresholds`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .categories import OTHER_CATEGORY
from .config import BudgetThresholds, EngineConfig, get_config
from .models import BudgetConfig, BudgetLine, BudgetStatus, to_float

NO_LIMIT = 'no_limit'
OVER_BUDGET = 'over_budget'
CRITICAL = 'critical'
WARNING = 'warning'
ON_TRACK = 'on_track'

# Most severe first
ALERT_SEVERITY = {OVER_BUDGET: 0, CRITICAL: 1, WARNING: 2}

OVERALL_NAME = 'Overall'


def alert_status(percentage: float, limit: float, thresholds: Optional[BudgetThresholds] = None) -> str:
    """Classify spend against a limit.

    Example:
        >>> alert_status(102.5, 20000)
        'over_budget'
        >>> alert_status(50, 0)
        'no_limit'
    """
    cuts = thresholds or get_config().budget
    if limit <= 0:
        return NO_LIMIT
    if percentage > cuts.over_budget_pct:
        return OVER_BUDGET
    if percentage >= cuts.critical_pct:
        return CRITICAL
    if percentage >= cuts.warning_pct:
        return WARNING
    return ON_TRACK


def compute_budget_status(
    budget: Optional[Any],
    category_spending: Optional[Mapping[str, Any]],
    ledger_total: float,
    config: Optional[EngineConfig] = None,
) -> Optional[BudgetStatus]:
    """Combine ledger spend and manual entries into budget status.

    Args:
        budget: ``BudgetConfig`` (or its mapping form); ``None`` yields ``None``
        category_spending: Category name → ledger spend, as a number, a
            ``CategorySpend`` or a mapping with an ``amount`` key
        ledger_total: The ledger's total spend for the month
        config: Thresholds to use instead of the environment defaults

    Returns:
        Overall and per-category budget lines, or ``None`` without a budget
    """
    if budget is None:
        return None
    if isinstance(budget, Mapping):
        budget = BudgetConfig.from_dict(budget)
    engine_config = config or get_config()
    thresholds = engine_config.budget

    ledger_total = to_float(ledger_total)
    manual_by_category, manual_total = _manual_totals(budget)
    ledger_by_category = {name: _spend_amount(value) for name, value in (category_spending or {}).items()}

    overall_limit = budget.overall_limit or 0.0
    overall_spent = ledger_total + manual_total
    overall_pct = overall_spent / overall_limit * 100 if overall_limit > 0 else 0.0
    overall = BudgetLine(
        name=OVERALL_NAME,
        limit=overall_limit,
        spent=overall_spent,
        ledger_amount=ledger_total,
        manual_amount=manual_total,
        percentage=overall_pct,
        remaining=overall_limit - overall_spent,
        status=alert_status(overall_pct, overall_limit, thresholds),
    )

    names = dict.fromkeys([*budget.category_limits, *ledger_by_category, *manual_by_category])
    categories: Dict[str, BudgetLine] = {}
    for name in names:
        limit = budget.category_limits.get(name, 0.0) or 0.0
        ledger_amount = ledger_by_category.get(name, 0.0)
        manual_amount = manual_by_category.get(name, 0.0)
        spent = ledger_amount + manual_amount
        if limit > 0:
            percentage = spent / limit * 100
        else:
            percentage = 100.0 if spent > 0 else 0.0
        categories[name] = BudgetLine(
            name=name,
            limit=limit,
            spent=spent,
            ledger_amount=ledger_amount,
            manual_amount=manual_amount,
            percentage=percentage,
            remaining=limit - spent,
            status=alert_status(percentage, limit, thresholds),
        )

    return BudgetStatus(
        overall=overall,
        categories=categories,
        currency=budget.currency or engine_config.balance.default_currency,
    )


def budget_alerts(status: Optional[BudgetStatus]) -> List[BudgetLine]:
    """Budget lines at warning level or worse, most severe first."""
    if status is None:
        return []
    lines = [status.overall, *status.categories.values()]
    flagged = [line for line in lines if line.status in ALERT_SEVERITY]
    return sorted(flagged, key=lambda line: (ALERT_SEVERITY[line.status], -line.percentage))


def _manual_totals(budget: BudgetConfig) -> Tuple[Dict[str, float], float]:
    if not budget.manual_entries:
        return {}, 0.0
    entries = pd.DataFrame({
        'category': [entry.category or OTHER_CATEGORY for entry in budget.manual_entries],
        'amount': [entry.amount for entry in budget.manual_entries],
    })
    by_category = entries.groupby('category', sort=False)['amount'].sum()
    return {str(k): float(v) for k, v in by_category.items()}, float(entries['amount'].sum())


def _spend_amount(value: Any) -> float:
    if isinstance(value, Mapping):
        value = value.get('amount', 0.0)
    elif hasattr(value, 'amount'):
        value = value.amount
    return to_float(value)
