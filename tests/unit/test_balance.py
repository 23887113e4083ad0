"""Unit tests for the balance engine"""

import pytest
from datetime import date
from cashflow_core.domain.balance import (
    calculate_daily_balances,
    compute_balance_from_transactions,
    effective_amount,
    generate_reconciliation_report,
    get_balance_status,
    signed_amount,
)
from cashflow_core.domain.models import UserProfile


def test_signed_amount_by_type(make_transaction):
    assert signed_amount(make_transaction(type="income", projected_amount=50)) == 50
    assert signed_amount(make_transaction(type="bill", projected_amount=50)) == -50
    assert signed_amount(make_transaction(type="loan", projected_amount=50)) == -50


def test_effective_amount_prefers_actual_once_realized(make_transaction):
    realized = make_transaction(status="partial", projected_amount=100, actual_amount=40)
    projected = make_transaction(status="projected", projected_amount=100)

    assert effective_amount(realized) == 40
    assert effective_amount(projected) == 100


def test_computed_balance_counts_only_realized(make_transaction):
    """initial + sum of completed/partial signed effects; everything else is ignored"""
    transactions = [
        make_transaction(type="income", status="completed", projected_amount=500, actual_amount=520),
        make_transaction(type="expense", status="partial", projected_amount=100, actual_amount=30),
        make_transaction(type="expense", status="projected", projected_amount=900),
        make_transaction(type="expense", status="pending", projected_amount=900),
        make_transaction(type="expense", status="skipped", projected_amount=900),
    ]

    assert compute_balance_from_transactions(1000, transactions) == pytest.approx(1000 + 520 - 30)


def test_balance_status_bands():
    assert get_balance_status(-0.01, 500) == "danger"
    assert get_balance_status(499, 500) == "warning"
    assert get_balance_status(500, 500) == "safe"


def test_daily_balances_undo_then_replay(make_transaction):
    """Realized transactions inside the window are undone for the opening balance, then replayed"""
    transactions = [
        make_transaction(
            type="income",
            status="completed",
            projected_amount=1000,
            actual_amount=1000,
            scheduled_date=date(2024, 1, 2),
            actual_date=date(2024, 1, 2),
        ),
        make_transaction(type="bill", status="projected", projected_amount=300, scheduled_date=date(2024, 1, 3)),
        make_transaction(type="bill", status="skipped", projected_amount=999, scheduled_date=date(2024, 1, 3)),
    ]

    # Cached balance already contains the completed $1000 deposit
    balances = calculate_daily_balances(1500, transactions, date(2024, 1, 1), date(2024, 1, 4))

    assert list(balances) == [date(2024, 1, d) for d in range(1, 5)]
    assert balances[date(2024, 1, 1)].opening_balance == 500
    assert balances[date(2024, 1, 1)].status == "safe"
    assert balances[date(2024, 1, 2)].total_income == 1000
    assert balances[date(2024, 1, 2)].closing_balance == 1500
    assert balances[date(2024, 1, 3)].total_expenses == 300
    assert balances[date(2024, 1, 3)].closing_balance == 1200
    assert balances[date(2024, 1, 4)].opening_balance == 1200


def test_daily_balances_keep_pre_window_history_folded_in(make_transaction):
    transactions = [
        make_transaction(
            type="expense",
            status="completed",
            projected_amount=200,
            actual_amount=200,
            scheduled_date=date(2023, 12, 20),
        ),
    ]

    balances = calculate_daily_balances(800, transactions, date(2024, 1, 1), date(2024, 1, 1))

    assert balances[date(2024, 1, 1)].opening_balance == 800


def test_daily_balances_flag_danger(make_transaction):
    transactions = [make_transaction(type="bill", projected_amount=150, scheduled_date=date(2024, 1, 1))]

    day = calculate_daily_balances(100, transactions, date(2024, 1, 1), date(2024, 1, 1))[date(2024, 1, 1)]

    assert day.closing_balance == -50
    assert day.status == "danger"
    assert [t.name for t in day.transactions] == ["Rent"]


def test_reconciliation_report_detects_drift(make_transaction):
    profile = UserProfile(user_id="user_1", initial_balance=1000, current_balance=1100)
    transactions = [make_transaction(type="expense", status="completed", projected_amount=50, actual_amount=50)]

    report = generate_reconciliation_report(profile, transactions)

    assert report.computed_balance == 950
    assert report.difference == 150
    assert report.has_drift is True
    assert len(report.affected_transactions) == 1
