import pandas as pd

from expense_insights.spending import (
    category_trend,
    day_of_week_spending,
    expense_frame,
    expenses_by_category,
    group_spending,
    monthly_comparison,
    monthly_expenses_by_category,
    monthly_spending,
    monthly_total,
    top_payers,
)

USER_ID = 1
TODAY = '2024-03-20'


def _expense(expense_id, description, date, cost, owed, paid, group_id=None, **extra):
    row = {
        'id': expense_id,
        'description': description,
        'date': date,
        'cost': cost,
        'group_id': group_id,
        'users': [
            {'user_id': USER_ID, 'paid_share': paid, 'owed_share': owed,
             'user': {'first_name': 'Priya', 'last_name': 'Shah'}},
            {'user_id': 2, 'paid_share': cost - paid, 'owed_share': cost - owed,
             'user': {'first_name': 'Ravi'}},
        ],
    }
    row.update(extra)
    return row


def _expenses():
    return [
        _expense(1, 'Zomato dinner', '2024-03-05', 1000, 500, 1000, group_id=10),
        _expense(2, 'Uber to airport', '2024-03-10', 600, 300, 600, group_id=10),
        _expense(3, 'Electricity bill', '2024-02-10', 2000, 1000, 0),
        _expense(4, 'Old sofa', '2024-01-15', 900, 0, 900, category={'name': 'Shopping'}),
        _expense(5, 'Cancelled taxi', '2024-03-11', 400, 200, 400, deleted_at='2024-03-12'),
        _expense(6, 'Payment', '2024-03-12', 700, 0, 700, payment=True),
        _expense(7, 'Bad date', 'not-a-date', 100, 50, 100),
    ]


def test_expense_frame_drops_inactive_and_undated_records():
    frame = expense_frame(_expenses(), USER_ID)
    assert frame['id'].tolist() == [1, 2, 3, 4]
    assert frame['Category'].tolist() == ['Food & Dining', 'Transport', 'Utilities', 'Shopping']


def test_expenses_by_category_for_user():
    categories = expenses_by_category(_expenses(), USER_ID)
    assert [(c.name, c.amount, c.count) for c in categories] == [
        ('Utilities', 1000.0, 1),
        ('Food & Dining', 500.0, 1),
        ('Transport', 300.0, 1),
    ]


def test_expenses_by_category_ledger_mode_uses_cost():
    categories = expenses_by_category(_expenses())
    assert categories[0].name == 'Utilities'
    assert {c.name: c.amount for c in categories}['Shopping'] == 900.0


def test_monthly_category_breakdown_and_total():
    breakdown = monthly_expenses_by_category(_expenses(), USER_ID, '2024-03')
    assert {name: spend.amount for name, spend in breakdown.items()} == {
        'Food & Dining': 500.0,
        'Transport': 300.0,
    }
    assert monthly_total(_expenses(), USER_ID, '2024-03') == 800.0
    assert monthly_total(_expenses(), USER_ID, '2023-12') == 0.0


def test_monthly_comparison():
    comparison = monthly_comparison(_expenses(), USER_ID, today=TODAY)
    assert comparison.this_month == 800.0
    assert comparison.last_month == 1000.0
    assert comparison.pct_change == -20.0

    quiet = monthly_comparison(_expenses(), USER_ID, today='2024-06-01')
    assert quiet.pct_change == 0.0


def test_monthly_spending_series():
    monthly = monthly_spending(_expenses(), USER_ID, months=3, today=TODAY)
    assert monthly['Month'].tolist() == ['2024-01', '2024-02', '2024-03']
    assert monthly['Share'].tolist() == [0.0, 1000.0, 800.0]
    assert monthly['Total'].tolist() == [900.0, 2000.0, 1600.0]
    assert monthly['Paid'].tolist() == [900.0, 0.0, 1600.0]


def test_group_spending_excludes_non_group_bucket():
    groups = [
        {'id': 10, 'name': 'Flatmates', 'members': [{'id': USER_ID}, {'id': 2}]},
        {'id': 11, 'name': 'Dormant', 'members': [{'id': USER_ID}]},
        {'id': 0, 'name': 'Non-group'},
    ]
    summary = group_spending(groups, _expenses(), USER_ID)
    assert summary['name'].tolist() == ['Flatmates']
    row = summary.iloc[0]
    assert row['total_expenses'] == 1600.0
    assert row['your_share'] == 800.0
    assert row['member_count'] == 2
    assert row['expense_count'] == 2


def test_top_payers():
    payers = top_payers(_expenses())
    assert payers['name'].tolist() == ['Priya Shah', 'Ravi']
    assert payers['total_paid'].tolist() == [2600.0, 2000.0]
    assert payers.iloc[0]['count'] == 4


def test_day_of_week_spending_starts_on_sunday():
    days = day_of_week_spending(_expenses(), USER_ID)
    assert days['day'].tolist()[0] == 'Sun'
    by_day = dict(zip(days['day'], days['amount']))
    # 10 Mar 2024 was a Sunday, 5 Mar a Tuesday and 10 Feb a Saturday
    assert by_day['Sun'] == 300.0
    assert by_day['Tue'] == 500.0
    assert by_day['Sat'] == 1000.0
    assert by_day['Mon'] == 0.0


def test_category_trend_pivot():
    trend = category_trend(_expenses(), USER_ID, months=2, today=TODAY)
    assert trend.index.tolist() == ['2024-02', '2024-03']
    assert trend.columns.tolist() == ['Utilities', 'Food & Dining', 'Transport']
    assert trend.loc['2024-02', 'Utilities'] == 1000.0
    assert trend.loc['2024-03', 'Utilities'] == 0.0


def test_empty_history():
    assert expenses_by_category([]) == []
    assert monthly_total([], USER_ID, '2024-03') == 0.0
    assert isinstance(category_trend([], USER_ID, today=TODAY), pd.DataFrame)
    assert group_spending([], [], USER_ID).empty
