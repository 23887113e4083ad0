"""Unit tests for loan amortization and credit card projections"""

import pytest
from datetime import date
from cashflow_core.domain.amortization import (
    annuity_payment,
    calculate_amortization_schedule,
    calculate_credit_card_projection,
    minimum_payment,
)
from cashflow_core.domain.models import CreditCardProjectionConfig


def test_schedule_converges_in_term():
    """10,000 at 6% over 60 months pays off in exactly 60 steps"""
    schedule = calculate_amortization_schedule(10000, 6, term_months=60, start_date=date(2024, 1, 15))

    assert len(schedule) == 60
    assert schedule[-1].remaining_balance == pytest.approx(0, abs=0.01)
    assert schedule[0].payment == pytest.approx(193.33, abs=0.01)
    assert schedule[0].interest == pytest.approx(50.0)
    assert sum(step.principal for step in schedule) == pytest.approx(10000, abs=0.01)


def test_schedule_dates_advance_by_calendar_month():
    schedule = calculate_amortization_schedule(1000, 12, term_months=3, start_date=date(2024, 1, 31))

    assert [step.date for step in schedule] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]


def test_zero_rate_splits_principal_evenly():
    schedule = calculate_amortization_schedule(1200, 0, term_months=12, start_date=date(2024, 1, 1))

    assert len(schedule) == 12
    assert all(step.payment == pytest.approx(100) for step in schedule)
    assert all(step.interest == 0 for step in schedule)


def test_final_payment_is_clamped_to_remaining_balance():
    schedule = calculate_amortization_schedule(250, 0, monthly_payment=100, start_date=date(2024, 1, 1))

    assert [step.payment for step in schedule] == [100, 100, 50]
    assert schedule[-1].remaining_balance == 0


def test_payment_below_interest_floors_principal_and_stops():
    """A payment that never covers interest ends after a short stall instead of 360 months"""
    schedule = calculate_amortization_schedule(10000, 24, monthly_payment=50, start_date=date(2024, 1, 1))

    assert 0 < len(schedule) < 12
    assert all(step.principal == 0 for step in schedule)
    assert schedule[-1].remaining_balance == 10000


def test_non_positive_principal_yields_empty_schedule():
    assert calculate_amortization_schedule(0, 5, term_months=12) == []


def test_annuity_payment_zero_rate():
    assert annuity_payment(600, 0, 6) == 100


def test_minimum_payment_methods():
    assert minimum_payment(1000, 20, 2, 25) == 25  # 2% of 1000 is below the floor
    assert minimum_payment(5000, 100, 2, 25) == 100
    assert minimum_payment(5000, 100, 2, 25, "percent_plus_interest") == 200


def test_credit_card_projection_pins_due_day():
    config = CreditCardProjectionConfig(
        current_balance=2000,
        apr=18,
        min_payment_percentage=3,
        start_date=date(2024, 1, 20),
        months_to_project=3,
        due_day=31,
    )
    schedule = calculate_credit_card_projection(config)

    assert [step.date for step in schedule] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
    assert schedule[0].payment == pytest.approx(60)
    assert schedule[0].interest == pytest.approx(30)


def test_credit_card_projection_due_day_already_passed():
    config = CreditCardProjectionConfig(
        current_balance=500,
        apr=12,
        min_payment_percentage=5,
        start_date=date(2024, 3, 20),
        months_to_project=1,
        due_day=5,
    )

    assert calculate_credit_card_projection(config)[0].date == date(2024, 4, 5)


def test_credit_card_projection_caps_payment_at_balance_plus_interest():
    config = CreditCardProjectionConfig(
        current_balance=20,
        apr=12,
        min_payment_percentage=2,
        start_date=date(2024, 1, 1),
    )
    schedule = calculate_credit_card_projection(config)

    assert schedule[0].payment == pytest.approx(20.2)
    assert schedule[0].remaining_balance == pytest.approx(0, abs=1e-9)
