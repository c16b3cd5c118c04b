"""Settle-up suggestions from group debt edges."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .config import EngineConfig, get_config
from .models import Group, Person, SettleUpSuggestion, parse_records

logger = logging.getLogger(__name__)

NON_GROUP_LABEL = 'Non-group expenses'
UNKNOWN_NAME = 'Unknown'


def _name_lookup(group: Group, friends: List[Person], user_id: Any,
                 current_user: Optional[Person]) -> Dict[Any, str]:
    """Map participant ids to names: group roster, then friends, then the user."""
    lookup = {member.id: member.display_name for member in group.members}
    for friend in friends:
        lookup.setdefault(friend.id, friend.display_name)
    if current_user is not None:
        lookup.setdefault(user_id, current_user.display_name)
    return lookup


def compute_settle_up_suggestions(
    groups: Iterable[Any],
    user_id: Any,
    friends: Iterable[Any] = (),
    current_user: Optional[Any] = None,
    config: Optional[EngineConfig] = None,
) -> List[SettleUpSuggestion]:
    """List the debts the user is part of, largest first.

    Args:
        groups: Group records with simplified or original debt edges
        user_id: The current user's id
        friends: Friend records, used to name people missing from a roster
        current_user: The user's own profile record, if known
        config: Thresholds to use instead of the environment defaults

    Returns:
        One suggestion per debt edge touching the user with an amount of at
        least one unit
    """
    thresholds = (config or get_config()).balance
    friend_records = parse_records(Person, friends)
    if current_user is not None and not isinstance(current_user, Person):
        current_user = Person.from_dict(current_user)

    suggestions = []
    for group in parse_records(Group, groups):
        names = _name_lookup(group, friend_records, user_id, current_user)
        for edge in group.debts:
            if edge.amount < thresholds.settle_min_amount:
                continue
            if edge.from_id == edge.to_id:
                logger.debug("Ignoring self-debt of %s in group %s", edge.from_id, group.id)
                continue
            if user_id not in (edge.from_id, edge.to_id):
                continue
            suggestions.append(
                SettleUpSuggestion(
                    group_id=group.id,
                    group_name=NON_GROUP_LABEL if group.id == 0 else group.name,
                    from_id=edge.from_id,
                    from_name=names.get(edge.from_id) or UNKNOWN_NAME,
                    to_id=edge.to_id,
                    to_name=names.get(edge.to_id) or UNKNOWN_NAME,
                    amount=edge.amount,
                    currency_code=edge.currency_code or thresholds.default_currency,
                    you_pay=edge.from_id == user_id,
                )
            )

    suggestions.sort(key=lambda s: s.amount, reverse=True)
    return suggestions


def summarize_settle_up(suggestions: Iterable[SettleUpSuggestion]) -> Dict[str, Dict[str, Any]]:
    """Total what the user pays and receives, per currency.

    Example:
        >>> summarize_settle_up([])
        {'pay': {'count': 0, 'totals': {}}, 'receive': {'count': 0, 'totals': {}}}
    """
    summary: Dict[str, Dict[str, Any]] = {
        'pay': {'count': 0, 'totals': {}},
        'receive': {'count': 0, 'totals': {}},
    }
    for suggestion in suggestions:
        side = summary['pay' if suggestion.you_pay else 'receive']
        side['count'] += 1
        totals = side['totals']
        totals[suggestion.currency_code] = totals.get(suggestion.currency_code, 0.0) + suggestion.amount
    return summary
