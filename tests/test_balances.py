from expense_insights.balances import (
    compute_friend_balances,
    compute_member_balances,
    compute_overall_balances,
)
from expense_insights.config import BalanceThresholds, EngineConfig

USER_ID = 1


def _member(member_id, *balances, first_name='Member'):
    return {
        'id': member_id,
        'first_name': first_name,
        'balance': [{'currency_code': code, 'amount': amount} for code, amount in balances],
    }


def _groups():
    return [
        {'id': 10, 'name': 'Flat', 'members': [
            _member(USER_ID, ('USD', '50.0'), ('INR', '-200.0')),
            _member(2, ('INR', '200.0')),
        ]},
        {'id': 11, 'name': 'Trip', 'members': [
            _member(USER_ID, ('INR', '300.0'), ('EUR', '0.005')),
        ]},
        {'id': 12, 'name': 'Not mine', 'members': [_member(3, ('GBP', '999'))]},
        {'id': 13, 'name': 'No roster'},
    ]


def test_overall_balances_net_per_currency():
    summary = compute_overall_balances(_groups(), USER_ID)

    for totals in summary.currencies:
        assert totals.net == totals.total_owed_to_user - totals.total_user_owes
    codes = [t.currency_code for t in summary.currencies]
    assert codes == ['INR', 'USD']
    inr = summary.currencies[0]
    assert inr.total_owed_to_user == 300.0
    assert inr.total_user_owes == 200.0


def test_primary_currency_has_most_activity():
    summary = compute_overall_balances(_groups(), USER_ID)

    top_activity = max(t.activity for t in summary.currencies)
    assert summary.primary_currency == 'INR'
    assert summary.currencies[0].activity == top_activity
    assert summary.total_owed == 300.0
    assert summary.total_owe == 200.0
    assert summary.net_balance == 100.0


def test_overall_balances_without_activity_default_to_inr():
    summary = compute_overall_balances([{'id': 1, 'members': []}], USER_ID)
    assert summary.currencies == ()
    assert summary.to_dict() == {
        'currencies': [],
        'primaryCurrency': 'INR',
        'totalOwed': 0.0,
        'totalOwe': 0.0,
        'netBalance': 0.0,
    }


def test_default_currency_can_be_configured():
    config = EngineConfig(balance=BalanceThresholds(default_currency='USD'))
    assert compute_overall_balances([], USER_ID, config=config).primary_currency == 'USD'


def test_friend_balances_pick_largest_magnitude():
    friends = [
        {'id': 2, 'first_name': 'Asha', 'last_name': 'Rao',
         'balance': [{'currency_code': 'INR', 'amount': '100'}, {'currency_code': 'USD', 'amount': '-150'}]},
        {'id': 3, 'first_name': 'Dev', 'balance': [{'currency_code': 'INR', 'amount': '0.3'}]},
        {'id': 4, 'first_name': 'Meera', 'balance': [{'currency_code': 'INR', 'amount': '400'}]},
        {'id': 5, 'first_name': 'Kabir', 'balance': []},
        {'id': 6, 'first_name': 'Nisha'},
    ]

    balances = compute_friend_balances(friends)

    assert [f.name for f in balances] == ['Meera', 'Asha Rao']
    asha = balances[1]
    assert asha.primary_balance_amount == -150.0
    assert asha.primary_currency == 'USD'
    assert len(asha.all_balances) == 2


def test_friend_balances_drop_noise_and_fill_currency():
    friends = [{'id': 2, 'first_name': 'Asha', 'balance': [
        {'amount': '25'},
        {'currency_code': 'USD', 'amount': '0.004'},
    ]}]

    [friend] = compute_friend_balances(friends)

    assert friend.primary_currency == 'INR'
    assert friend.to_dict()['allBalances'] == [{'currencyCode': 'INR', 'amount': 25.0}]


def test_member_balances_sorted_by_magnitude():
    members = _groups()[0]['members']
    balances = compute_member_balances(members, USER_ID)
    assert [(b.currency_code, b.amount) for b in balances] == [('INR', -200.0), ('USD', 50.0)]
    assert compute_member_balances(members, 99) == ()
