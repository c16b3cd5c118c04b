"""Multi-currency balance aggregation.

Two different "primary currency" rules live here on purpose:

* group totals rank currencies by combined activity (owed + owes), and
* a friend's primary balance is the single largest-magnitude entry.

The first drives the overall summary cards, the second decides which amount is
shown next to a friend's name.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import BalanceThresholds, EngineConfig, get_config
from .models import (
    Balance,
    BalanceSummary,
    CurrencyTotals,
    FriendBalance,
    Group,
    Person,
    parse_records,
)

logger = logging.getLogger(__name__)


def _significant(balances: Iterable[Balance], thresholds: BalanceThresholds) -> List[Balance]:
    """Drop near-zero balances and fill in the default currency code."""
    kept = []
    for balance in balances:
        if abs(balance.amount) <= thresholds.noise_epsilon:
            continue
        kept.append(Balance(balance.currency_code or thresholds.default_currency, balance.amount))
    return kept


def _find_member(members: Iterable[Person], user_id: Any) -> Optional[Person]:
    for member in members:
        if member.id == user_id:
            return member
    return None


def compute_overall_balances(groups: Iterable[Any], user_id: Any,
                             config: Optional[EngineConfig] = None) -> BalanceSummary:
    """Net the user's balances across all groups, per currency.

    Args:
        groups: Group records (or mappings) carrying member balances
        user_id: The user whose member entry is aggregated
        config: Thresholds to use instead of the environment defaults

    Returns:
        Per-currency totals ordered by activity, plus the primary currency's
        totals as shortcut fields

    Example:
        >>> summary = compute_overall_balances(
        ...     [{'id': 1, 'members': [{'id': 9, 'balance': [{'currency_code': 'USD', 'amount': '-20'}]}]}], 9)
        >>> summary.primary_currency, summary.net_balance
        ('USD', -20.0)
    """
    thresholds = (config or get_config()).balance
    owed: Dict[str, float] = defaultdict(float)
    owes: Dict[str, float] = defaultdict(float)
    seen: List[str] = []

    for group in parse_records(Group, groups):
        me = _find_member(group.members, user_id)
        if me is None:
            logger.debug("User %s is not a member of group %s", user_id, group.id)
            continue
        for balance in _significant(me.balances, thresholds):
            code = balance.currency_code
            if code not in seen:
                seen.append(code)
            if balance.amount > 0:
                owed[code] += balance.amount
            else:
                owes[code] += abs(balance.amount)

    totals = [
        CurrencyTotals(code, owed[code], owes[code], owed[code] - owes[code])
        for code in seen
    ]
    # sorted() is stable, so equal activity keeps first-seen order
    totals = sorted(totals, key=lambda t: t.activity, reverse=True)

    if not totals:
        return BalanceSummary(currencies=(), primary_currency=thresholds.default_currency)
    primary = totals[0]
    return BalanceSummary(
        currencies=tuple(totals),
        primary_currency=primary.currency_code,
        total_owed=primary.total_owed_to_user,
        total_owe=primary.total_user_owes,
        net_balance=primary.net,
    )


def _primary_balance(balances: List[Balance], default_currency: str) -> Balance:
    """Largest-magnitude balance; the first one wins a tie."""
    best = Balance(balances[0].currency_code if balances else default_currency, 0.0)
    for balance in balances:
        if abs(balance.amount) > abs(best.amount):
            best = balance
    return best


def compute_friend_balances(friends: Iterable[Any], config: Optional[EngineConfig] = None) -> List[FriendBalance]:
    """Friends with an outstanding balance, largest amount owed to the user first."""
    thresholds = (config or get_config()).balance
    results = []
    for friend in parse_records(Person, friends):
        balances = _significant(friend.balances, thresholds)
        primary = _primary_balance(balances, thresholds.default_currency)
        if abs(primary.amount) <= thresholds.friend_min_balance:
            continue
        results.append(
            FriendBalance(
                id=friend.id,
                name=friend.display_name,
                primary_balance_amount=primary.amount,
                primary_currency=primary.currency_code,
                all_balances=tuple(balances),
            )
        )
    results.sort(key=lambda f: f.primary_balance_amount, reverse=True)
    return results


def compute_member_balances(members: Iterable[Any], user_id: Any,
                            config: Optional[EngineConfig] = None) -> Tuple[Balance, ...]:
    """The user's balances within one group, largest magnitude first."""
    thresholds = (config or get_config()).balance
    me = _find_member(parse_records(Person, members), user_id)
    if me is None:
        return ()
    balances = _significant(me.balances, thresholds)
    return tuple(sorted(balances, key=lambda b: abs(b.amount), reverse=True))
