"""Top-level package for the expense insights engine.

The engine turns shared-expense and income records into the derived state a
user inspects.  The primary modules are:

* ``categories`` – keyword classification of expense descriptions
* ``balances`` – per-currency netting of group and friend balances
* ``recurring`` – detection of subscription-like charges
* ``budgets`` – budget status and alert levels
* ``settle_up`` – debt edges the user should settle, with resolved names
* ``insights`` – short observations composed from the modules above

All functions are pure: they accept record lists (dataclasses from
``models`` or plain mappings in the API shape) and return new objects.
"""

from .balances import compute_friend_balances, compute_member_balances, compute_overall_balances
from .budgets import alert_status, budget_alerts, compute_budget_status
from .categories import classify, category_names
from .config import EngineConfig, get_config
from .formatting import format_compact, format_currency
from .income import savings_rate, summarize_income
from .insights import generate_insights, top_insights
from .recurring import detect_recurring
from .settle_up import compute_settle_up_suggestions, summarize_settle_up
from .spending import expenses_by_category, monthly_expenses_by_category, monthly_total

__all__ = [
    "EngineConfig",
    "alert_status",
    "budget_alerts",
    "category_names",
    "classify",
    "compute_budget_status",
    "compute_friend_balances",
    "compute_member_balances",
    "compute_overall_balances",
    "compute_settle_up_suggestions",
    "detect_recurring",
    "expenses_by_category",
    "format_compact",
    "format_currency",
    "generate_insights",
    "get_config",
    "monthly_expenses_by_category",
    "monthly_total",
    "savings_rate",
    "summarize_income",
    "summarize_settle_up",
    "top_insights",
]
