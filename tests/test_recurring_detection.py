import pytest

from expense_insights.config import EngineConfig, RecurringThresholds
from expense_insights.recurring import (
    coefficient_of_variation,
    detect_recurring,
    monthly_estimate,
    normalize_description,
)

TODAY = '2024-03-31'


def _expense(description, date, cost, **extra):
    row = {'id': f"{description}-{date}", 'description': description, 'date': date, 'cost': cost}
    row.update(extra)
    return row


def _netflix_rows():
    return [
        _expense('Netflix Subscription', '2024-01-05', 1200, category='Food & Dining'),
        _expense('Netflix Subscription', '2024-02-04', 1180),
        _expense('Netflix Subscription', '2024-03-06', 1210),
    ]


def test_detects_monthly_subscription():
    recurring = detect_recurring(_netflix_rows(), today=TODAY)

    assert len(recurring) == 1
    charge = recurring[0]
    assert charge.description == 'Netflix Subscription'
    assert charge.category == 'Food & Dining'
    assert charge.frequency == 'monthly'
    assert charge.occurrence_count == 3
    assert charge.average_amount == 1197
    assert charge.months_analyzed == 6
    assert charge.last_date == '2024-03-06'


def test_to_dict_uses_presentation_keys():
    charge = detect_recurring(_netflix_rows(), today=TODAY)[0]
    assert charge.to_dict() == {
        'description': 'Netflix Subscription',
        'category': 'Food & Dining',
        'frequency': 'monthly',
        'occurrenceCount': 3,
        'averageAmount': 1197,
        'monthsAnalyzed': 6,
        'lastDate': '2024-03-06',
    }


def test_detection_is_idempotent():
    rows = _netflix_rows() + [
        _expense('Spotify Premium', '2024-01-10', 119),
        _expense('Spotify Premium', '2024-02-10', 119),
        _expense('Spotify Premium', '2024-03-10', 119),
    ]
    first = detect_recurring(rows, today=TODAY)
    second = detect_recurring(rows, today=TODAY)
    assert first == second
    assert [c.description for c in first] == ['Netflix Subscription', 'Spotify Premium']


def test_requires_two_occurrences_inside_window():
    rows = [
        _expense('Gym Membership', '2023-06-01', 1500),
        _expense('Gym Membership', '2023-07-01', 1500),
        _expense('Gym Membership', '2024-03-01', 1500),
    ]
    assert detect_recurring(rows, today=TODAY) == []


def test_requires_three_total_occurrences():
    rows = [
        _expense('Gym Membership', '2024-02-01', 1500),
        _expense('Gym Membership', '2024-03-01', 1500),
    ]
    assert detect_recurring(rows, today=TODAY) == []


def test_inconsistent_amounts_are_rejected():
    rows = [
        _expense('Swiggy order', '2024-01-05', 100),
        _expense('Swiggy order', '2024-02-05', 500),
        _expense('Swiggy order', '2024-03-05', 100),
    ]
    assert detect_recurring(rows, today=TODAY) == []


def test_irregular_gaps_are_rejected():
    rows = [
        _expense('Cylinder refill', '2024-01-01', 900),
        _expense('Cylinder refill', '2024-01-20', 900),
        _expense('Cylinder refill', '2024-03-20', 900),
    ]
    # mean gap of 39.5 days falls outside every cadence window
    assert detect_recurring(rows, today=TODAY) == []


def test_weekly_cadence_and_inferred_category():
    rows = [
        _expense('Badminton court', date, 250)
        for date in ('2024-03-02', '2024-03-09', '2024-03-16', '2024-03-23')
    ]
    charge = detect_recurring(rows, today=TODAY)[0]
    assert charge.frequency == 'weekly'
    assert charge.category == 'Entertainment'
    assert monthly_estimate(charge) == pytest.approx(250 * 52 / 12, abs=0.01)


def test_cancelled_refunds_and_payments_are_ignored():
    rows = _netflix_rows()
    rows[1] = dict(rows[1], deleted_at='2024-02-05T10:00:00Z')
    rows += [
        _expense('Netflix Subscription', '2024-02-04', 1180, isRefund=True),
        _expense('Netflix Subscription', '2024-02-04', 1180, payment=True),
    ]
    # two live charges remain, below the minimum of three
    assert detect_recurring(rows, today=TODAY) == []


def test_short_keys_are_discarded():
    rows = [_expense(f'{n} ab', f'2024-0{n}-01', 100) for n in (1, 2, 3)]
    assert detect_recurring(rows, today=TODAY) == []


def test_results_ranked_and_truncated():
    rows = _netflix_rows() + [
        _expense('Spotify Premium', '2024-01-10', 119),
        _expense('Spotify Premium', '2024-02-10', 119),
        _expense('Spotify Premium', '2024-03-10', 119),
    ]
    config = EngineConfig(recurring=RecurringThresholds(max_candidates=1))
    recurring = detect_recurring(rows, today=TODAY, config=config)
    assert [c.description for c in recurring] == ['Netflix Subscription']


def test_looser_variation_threshold_is_respected():
    rows = [
        _expense('Swiggy order', '2024-01-05', 100),
        _expense('Swiggy order', '2024-02-05', 500),
        _expense('Swiggy order', '2024-03-05', 100),
    ]
    config = EngineConfig(recurring=RecurringThresholds(max_variation=1.0))
    assert len(detect_recurring(rows, today=TODAY, config=config)) == 1


def test_normalize_description():
    assert normalize_description('  Netflix   Subscription 0124 ') == 'netflix subscription'
    assert normalize_description(None) == ''


def test_coefficient_of_variation_guards_non_positive_mean():
    import math

    import pandas as pd

    assert coefficient_of_variation(pd.Series([0.0, 0.0])) == math.inf
    assert coefficient_of_variation(pd.Series([100.0, 100.0])) == 0.0


def test_undated_charge_counts_toward_repetition():
    rows = [
        _expense('Gym Membership', 'garbage', 1500),
        _expense('Gym Membership', '2024-02-01', 1500),
        _expense('Gym Membership', '2024-03-01', 1500),
    ]

    recurring = detect_recurring(rows, today=TODAY)

    assert len(recurring) == 1
    charge = recurring[0]
    assert charge.frequency == 'monthly'
    assert charge.occurrence_count == 2
    assert charge.last_date == '2024-03-01'


def test_undated_charges_alone_are_not_recurring():
    rows = [_expense('Gym Membership', date, 1500) for date in ('garbage', 'soon', '2024-03-01')]
    assert detect_recurring(rows, today=TODAY) == []
