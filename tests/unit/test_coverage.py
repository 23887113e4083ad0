"""Unit tests for bill coverage, runway, crunch and forecast"""

import pytest
from datetime import date, timedelta
from cashflow_core.domain.coverage import (
    calculate_forecast,
    get_bill_coverage_report,
    get_next_crunch,
    get_runway,
)

TODAY = date(2024, 6, 1)


def test_bill_coverage_shortfall(make_transaction):
    """$100 cannot cover a $150 bill due tomorrow"""
    bill = make_transaction(
        type="expense", projected_amount=150, scheduled_date=TODAY + timedelta(days=1), status="pending"
    )

    report = get_bill_coverage_report(100, [bill], as_of=TODAY)

    assert report.can_cover_all is False
    assert len(report.bills_at_risk) == 1
    assert report.bills_at_risk[0].shortfall == pytest.approx(50)
    assert report.bills_at_risk[0].days_until_due == 1
    assert report.first_shortfall.amount == pytest.approx(50)
    assert report.first_shortfall.bill_name == "Rent"
    assert report.projected_balance == pytest.approx(-50)


def test_bill_coverage_income_lands_before_bill(make_transaction):
    transactions = [
        make_transaction(name="Paycheck", type="income", projected_amount=500, scheduled_date=TODAY + timedelta(days=2)),
        make_transaction(name="Phone", type="bill", projected_amount=80, scheduled_date=TODAY + timedelta(days=1)),
        make_transaction(name="Rent", type="bill", projected_amount=400, scheduled_date=TODAY + timedelta(days=3)),
    ]

    report = get_bill_coverage_report(100, transactions, as_of=TODAY)

    assert report.can_cover_all is True
    assert [b.transaction.name for b in report.upcoming_bills] == ["Phone", "Rent"]
    assert report.total_upcoming == pytest.approx(480)
    assert report.projected_balance == pytest.approx(120)
    assert report.first_shortfall is None


def test_bill_coverage_ignores_realized_skipped_and_out_of_window(make_transaction):
    transactions = [
        make_transaction(status="completed", actual_amount=100, scheduled_date=TODAY + timedelta(days=1)),
        make_transaction(status="skipped", scheduled_date=TODAY + timedelta(days=1)),
        make_transaction(scheduled_date=TODAY + timedelta(days=30)),
    ]

    report = get_bill_coverage_report(0, transactions, days_ahead=14, as_of=TODAY)

    assert report.upcoming_bills == []
    assert report.can_cover_all is True


def test_runway_boundary(make_transaction):
    """$1000 against a single $1000 expense 10 days out runs out on day 10"""
    expense = make_transaction(projected_amount=1000, scheduled_date=TODAY + timedelta(days=10))

    runway = get_runway(1000, [expense], as_of=TODAY)

    assert runway.days == 10
    assert runway.run_out_date == TODAY + timedelta(days=10)


def test_runway_lasts_whole_horizon(make_transaction):
    expense = make_transaction(projected_amount=10, scheduled_date=TODAY + timedelta(days=3))

    runway = get_runway(1000, [expense], max_days=30, as_of=TODAY)

    assert runway.days == 30
    assert runway.run_out_date is None


def test_runway_skips_skipped_transactions(make_transaction):
    expense = make_transaction(projected_amount=5000, scheduled_date=TODAY + timedelta(days=2), status="skipped")

    assert get_runway(100, [expense], max_days=10, as_of=TODAY).days == 10


def test_next_crunch_requires_expense_activity(make_transaction):
    transactions = [
        make_transaction(projected_amount=300, scheduled_date=TODAY + timedelta(days=4)),
        make_transaction(projected_amount=50, scheduled_date=TODAY + timedelta(days=6)),
    ]

    crunch = get_next_crunch(200, transactions, as_of=TODAY)

    assert crunch.date == TODAY + timedelta(days=4)
    assert crunch.shortfall == pytest.approx(100)


def test_next_crunch_none_when_balance_holds(make_transaction):
    transactions = [make_transaction(projected_amount=50, scheduled_date=TODAY + timedelta(days=1))]

    assert get_next_crunch(200, transactions, as_of=TODAY) is None


def test_forecast_running_balance(make_transaction):
    transactions = [
        make_transaction(type="income", projected_amount=200, scheduled_date=TODAY + timedelta(days=1)),
        make_transaction(projected_amount=50, scheduled_date=TODAY + timedelta(days=2)),
    ]

    forecast = calculate_forecast(100, transactions, start_date=TODAY, days_to_forecast=3)

    assert [point.balance for point in forecast] == [100, 300, 250]
    assert forecast[0].date == TODAY
