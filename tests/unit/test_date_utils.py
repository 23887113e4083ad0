"""Unit tests for date helpers and frequency math"""

import pytest
from datetime import date
from cashflow_core.utils.date_utils import (
    add_months,
    format_date,
    generate_date_range,
    month_bounds,
    parse_date,
)
from cashflow_core.domain.frequency import get_monthly_multiplier, monthly_equivalent, prorate_to_date_range
from cashflow_core.domain.models import ExpenseRule, IncomeSource


def test_parse_and_format_keep_zero_padding():
    parsed = parse_date("2024-03-05")

    assert parsed == date(2024, 3, 5)
    assert format_date(parsed) == "2024-03-05"
    assert parse_date(parsed) is parsed


def test_parse_date_rejects_malformed_input():
    with pytest.raises(ValueError):
        parse_date("03/05/2024")


def test_add_months_clamps_to_short_month():
    """Jan 31 + 1 month lands on the last day of February"""
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)


def test_add_months_is_computed_from_the_base_date():
    """Clamping in February does not drag later months to the 29th"""
    assert add_months(date(2024, 1, 31), 2) == date(2024, 3, 31)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_add_months_pins_requested_day():
    assert add_months(date(2024, 1, 10), 1, day=31) == date(2024, 2, 29)
    assert add_months(date(2024, 1, 10), 2, day=31) == date(2024, 3, 31)


def test_month_bounds_leap_february():
    assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))


def test_generate_date_range_is_inclusive():
    days = generate_date_range(date(2024, 1, 30), date(2024, 2, 2))

    assert days == [date(2024, 1, 30), date(2024, 1, 31), date(2024, 2, 1), date(2024, 2, 2)]


def test_monthly_multipliers():
    assert get_monthly_multiplier("monthly") == 1.0
    assert get_monthly_multiplier("semi-monthly") == 2.0
    assert get_monthly_multiplier("one-time") == 0.0
    assert get_monthly_multiplier("fortnightly") == 0.0


def test_monthly_equivalent_of_sources_and_rules():
    paycheck = IncomeSource(id="s1", user_id="u", name="Job", category="salary", amount=1200, frequency="weekly")
    insurance = ExpenseRule(id="r1", user_id="u", name="Insurance", category="auto", amount=1200, frequency="yearly")

    assert monthly_equivalent(paycheck) == pytest.approx(5200)
    assert monthly_equivalent(insurance) == pytest.approx(100)


def test_prorate_uses_thirty_day_month():
    # 15 inclusive days of a $3000 month
    assert prorate_to_date_range(3000, "2024-01-01", "2024-01-15") == pytest.approx(1500)
