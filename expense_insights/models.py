"""Record types consumed and produced by the insights engine.

Input records are immutable snapshots of what the expense-ledger API and the
personal ledger hand over.  ``from_dict`` accepts both the bill-splitting API
shape (``users``, ``deleted_at``, ``payment``, ``currency_code``) and the
ledger shape (``amount``, ``cancelled``, ``isRefund``).  Parsing never raises:
missing or malformed fields fall back to zero, empty, or ``None``.

Derived records expose ``to_dict`` with the key names the presentation layer
reads.  Those keys are a compatibility contract and must stay stable.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


def to_float(value: Any) -> float:
    """Parse a monetary value, treating anything unparsable as zero."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _first(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _optional_text(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        value = value.get('name')
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _full_name(first_name: str, last_name: Optional[str]) -> str:
    return f"{first_name} {last_name or ''}".strip()


# ── Input records ──


@dataclass(frozen=True)
class ParticipantShare:
    participant_id: Any
    paid_share: float = 0.0
    owed_share: float = 0.0
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ParticipantShare":
        user = data.get('user') or {}
        name = None
        if isinstance(user, Mapping) and user.get('first_name'):
            name = _full_name(str(user['first_name']), user.get('last_name'))
        return cls(
            participant_id=_first(data, 'user_id', 'participantId', 'participant_id'),
            paid_share=to_float(_first(data, 'paid_share', 'paidShare')),
            owed_share=to_float(_first(data, 'owed_share', 'owedShare')),
            name=name,
        )


@dataclass(frozen=True)
class Expense:
    id: Any
    date: str
    cost: float
    description: str = ''
    category: Optional[str] = None
    shares: Tuple[ParticipantShare, ...] = ()
    group_id: Optional[Any] = None
    currency_code: Optional[str] = None
    cancelled: bool = False
    is_refund: bool = False
    is_payment: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Expense":
        shares = _first(data, 'users', 'shares', default=[]) or []
        return cls(
            id=data.get('id'),
            date=str(data.get('date') or ''),
            cost=to_float(_first(data, 'cost', 'amount')),
            description=str(data.get('description') or ''),
            category=_optional_text(data.get('category')),
            shares=tuple(ParticipantShare.from_dict(share) for share in shares if isinstance(share, Mapping)),
            group_id=_first(data, 'group_id', 'groupId'),
            currency_code=_optional_text(_first(data, 'currency_code', 'currencyCode')),
            cancelled=bool(data.get('cancelled')) or bool(data.get('deleted_at')),
            is_refund=bool(_first(data, 'isRefund', 'is_refund')),
            is_payment=bool(_first(data, 'payment', 'isSettlementPayment', 'is_payment')),
        )

    @property
    def is_active(self) -> bool:
        """Whether the record counts as spending (not cancelled, not a settlement)."""
        return not self.cancelled and not self.is_payment

    def share_for(self, participant_id: Any) -> Optional[ParticipantShare]:
        for share in self.shares:
            if share.participant_id == participant_id:
                return share
        return None

    def owed_share(self, participant_id: Any) -> float:
        share = self.share_for(participant_id)
        return share.owed_share if share is not None else 0.0

    def paid_share(self, participant_id: Any) -> float:
        share = self.share_for(participant_id)
        return share.paid_share if share is not None else 0.0


@dataclass(frozen=True)
class Income:
    id: Any
    date: str
    amount: float
    source: str = ''
    category: str = 'other'
    is_recurring: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Income":
        return cls(
            id=data.get('id'),
            date=str(data.get('date') or ''),
            amount=to_float(data.get('amount')),
            source=str(data.get('source') or ''),
            category=_optional_text(data.get('category')) or 'other',
            is_recurring=bool(_first(data, 'isRecurring', 'is_recurring')),
        )


@dataclass(frozen=True)
class Balance:
    """A signed amount in one currency: positive means the counterpart owes the user."""
    currency_code: Optional[str]
    amount: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Balance":
        return cls(
            currency_code=_optional_text(_first(data, 'currency_code', 'currencyCode')),
            amount=to_float(data.get('amount')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'currencyCode': self.currency_code, 'amount': self.amount}


@dataclass(frozen=True)
class Person:
    """A group member or a friend, with balances relative to the user."""
    id: Any
    first_name: str = ''
    last_name: Optional[str] = None
    balances: Tuple[Balance, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Person":
        balances = data.get('balance') or data.get('balances') or []
        return cls(
            id=data.get('id'),
            first_name=str(_first(data, 'first_name', 'firstName', default='')),
            last_name=_optional_text(_first(data, 'last_name', 'lastName')),
            balances=tuple(Balance.from_dict(b) for b in balances if isinstance(b, Mapping)),
        )

    @property
    def display_name(self) -> str:
        return _full_name(self.first_name, self.last_name)


Member = Person
Friend = Person


@dataclass(frozen=True)
class DebtEdge:
    from_id: Any
    to_id: Any
    amount: float
    currency_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DebtEdge":
        return cls(
            from_id=_first(data, 'from', 'fromId', 'from_id'),
            to_id=_first(data, 'to', 'toId', 'to_id'),
            amount=to_float(data.get('amount')),
            currency_code=_optional_text(_first(data, 'currency_code', 'currencyCode')),
        )


def _debt_list(raw: Any) -> Optional[Tuple[DebtEdge, ...]]:
    if raw is None:
        return None
    return tuple(DebtEdge.from_dict(edge) for edge in raw if isinstance(edge, Mapping))


@dataclass(frozen=True)
class Group:
    id: Any
    name: str = ''
    members: Tuple[Person, ...] = ()
    simplified_debts: Optional[Tuple[DebtEdge, ...]] = None
    original_debts: Optional[Tuple[DebtEdge, ...]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Group":
        members = data.get('members') or []
        return cls(
            id=data.get('id'),
            name=str(data.get('name') or ''),
            members=tuple(Person.from_dict(m) for m in members if isinstance(m, Mapping)),
            simplified_debts=_debt_list(_first(data, 'simplified_debts', 'simplifiedDebts')),
            original_debts=_debt_list(_first(data, 'original_debts', 'originalDebts')),
        )

    @property
    def debts(self) -> Tuple[DebtEdge, ...]:
        """Simplified debts when the group has them, otherwise the original ones."""
        if self.simplified_debts is not None:
            return self.simplified_debts
        return self.original_debts or ()

    def member(self, member_id: Any) -> Optional[Person]:
        for person in self.members:
            if person.id == member_id:
                return person
        return None


@dataclass(frozen=True)
class ManualEntry:
    amount: float
    category: Optional[str] = None
    date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ManualEntry":
        return cls(
            amount=to_float(data.get('amount')),
            category=_optional_text(data.get('category')),
            date=_optional_text(data.get('date')),
        )


@dataclass(frozen=True)
class BudgetConfig:
    overall_limit: float = 0.0
    category_limits: Mapping[str, float] = field(default_factory=dict, hash=False)
    manual_entries: Tuple[ManualEntry, ...] = ()
    currency: Optional[str] = None

    def __post_init__(self) -> None:
        # Read-only copy; callers keep ownership of the mapping they passed in
        object.__setattr__(self, 'category_limits', MappingProxyType(dict(self.category_limits)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BudgetConfig":
        limits = _first(data, 'categoryLimits', 'category_limits', default={}) or {}
        entries = _first(data, 'manualEntries', 'manual_entries', default=[]) or []
        return cls(
            overall_limit=to_float(_first(data, 'overallLimit', 'overall_limit')),
            category_limits={str(name): to_float(limit) for name, limit in limits.items()},
            manual_entries=tuple(ManualEntry.from_dict(e) for e in entries if isinstance(e, Mapping)),
            currency=_optional_text(data.get('currency')),
        )


def parse_records(cls, rows: Optional[Iterable[Any]]) -> List[Any]:
    """Build records of ``cls`` from mappings, passing through ready-made instances."""
    records = []
    for row in rows or []:
        if isinstance(row, cls):
            records.append(row)
        elif isinstance(row, Mapping):
            records.append(cls.from_dict(row))
    return records


# ── Derived outputs ──


@dataclass(frozen=True)
class CurrencyTotals:
    currency_code: str
    total_owed_to_user: float
    total_user_owes: float
    net: float

    @property
    def activity(self) -> float:
        return self.total_owed_to_user + self.total_user_owes

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currencyCode': self.currency_code,
            'totalOwedToUser': self.total_owed_to_user,
            'totalUserOwes': self.total_user_owes,
            'net': self.net,
        }


@dataclass(frozen=True)
class BalanceSummary:
    currencies: Tuple[CurrencyTotals, ...]
    primary_currency: str
    total_owed: float = 0.0
    total_owe: float = 0.0
    net_balance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currencies': [c.to_dict() for c in self.currencies],
            'primaryCurrency': self.primary_currency,
            'totalOwed': self.total_owed,
            'totalOwe': self.total_owe,
            'netBalance': self.net_balance,
        }


@dataclass(frozen=True)
class FriendBalance:
    id: Any
    name: str
    primary_balance_amount: float
    primary_currency: str
    all_balances: Tuple[Balance, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'primaryBalanceAmount': self.primary_balance_amount,
            'primaryCurrency': self.primary_currency,
            'allBalances': [b.to_dict() for b in self.all_balances],
        }


@dataclass(frozen=True)
class RecurringCharge:
    description: str
    category: str
    frequency: str
    occurrence_count: int
    average_amount: int
    months_analyzed: int
    last_date: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'description': self.description,
            'category': self.category,
            'frequency': self.frequency,
            'occurrenceCount': self.occurrence_count,
            'averageAmount': self.average_amount,
            'monthsAnalyzed': self.months_analyzed,
            'lastDate': self.last_date,
        }


@dataclass(frozen=True)
class BudgetLine:
    """Spend against a limit, for the whole budget or a single category."""
    name: str
    limit: float
    spent: float
    ledger_amount: float
    manual_amount: float
    percentage: float
    remaining: float
    status: str

    @property
    def has_limit(self) -> bool:
        return self.limit > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'limit': self.limit,
            'spent': self.spent,
            'ledgerAmount': self.ledger_amount,
            'manualAmount': self.manual_amount,
            'percentage': self.percentage,
            'remaining': self.remaining,
            'status': self.status,
            'hasLimit': self.has_limit,
        }


@dataclass(frozen=True)
class BudgetStatus:
    overall: BudgetLine
    categories: Mapping[str, BudgetLine]
    currency: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall.to_dict(),
            'categories': {name: line.to_dict() for name, line in self.categories.items()},
            'currency': self.currency,
        }


@dataclass(frozen=True)
class SettleUpSuggestion:
    group_id: Any
    group_name: str
    from_id: Any
    from_name: str
    to_id: Any
    to_name: str
    amount: float
    currency_code: str
    you_pay: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'groupId': self.group_id,
            'groupName': self.group_name,
            'from': self.from_id,
            'fromName': self.from_name,
            'to': self.to_id,
            'toName': self.to_name,
            'amount': self.amount,
            'currency': self.currency_code,
            'youPay': self.you_pay,
        }


@dataclass(frozen=True)
class Insight:
    kind: str
    icon: str
    title: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'icon': self.icon, 'title': self.title, 'description': self.description}


@dataclass(frozen=True)
class CategorySpend:
    name: str
    amount: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'amount': self.amount, 'count': self.count}


@dataclass(frozen=True)
class IncomeSummary:
    total: float
    recurring: float
    one_off: float
    by_category: Mapping[str, float]
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'recurring': self.recurring,
            'oneOff': self.one_off,
            'byCategory': dict(self.by_category),
            'count': self.count,
        }


@dataclass(frozen=True)
class MonthlyComparison:
    this_month: float
    last_month: float
    pct_change: float

    def to_dict(self) -> Dict[str, Any]:
        return {'thisMonth': self.this_month, 'lastMonth': self.last_month, 'pctChange': self.pct_change}
