"""Unit tests for variance, category and chart aggregations"""

import pytest
from datetime import date
from cashflow_core.domain.reports import (
    calculate_monthly_totals,
    calculate_variance_report,
    get_best_bucket_type,
    get_category_breakdown,
    get_income_expense_chart_data,
    get_period_stats,
)


@pytest.fixture
def january(make_transaction):
    return [
        make_transaction(
            name="Salary", type="income", category="salary", projected_amount=2000,
            scheduled_date=date(2024, 1, 5), status="completed", actual_amount=2100,
        ),
        make_transaction(
            name="Groceries", type="expense", category="food", projected_amount=300,
            scheduled_date=date(2024, 1, 7), status="completed", actual_amount=360,
        ),
        make_transaction(
            name="Rent", type="bill", category="housing", projected_amount=900,
            scheduled_date=date(2024, 1, 15), status="completed", actual_amount=900,
        ),
        make_transaction(
            name="Gym", type="expense", category="health", projected_amount=40,
            scheduled_date=date(2024, 1, 20), status="skipped",
        ),
        make_transaction(
            name="Dinner", type="expense", category="food", projected_amount=60,
            scheduled_date=date(2024, 1, 28),
        ),
    ]


def test_variance_report(january):
    report = calculate_variance_report(january, date(2024, 1, 1), date(2024, 1, 31))

    assert report.income.variance == pytest.approx(100)
    assert report.income.variance_percent == pytest.approx(5)
    assert report.expenses.projected == pytest.approx(1200)
    assert report.expenses.actual == pytest.approx(1260)
    assert report.expenses.variance_percent == pytest.approx(5)
    food = next(c for c in report.by_category if c.category == "food")
    assert food.variance == pytest.approx(60)


def test_variance_report_empty_period_has_zero_percentages(january):
    report = calculate_variance_report(january, date(2024, 2, 1), date(2024, 2, 29))

    assert report.income.variance_percent == 0
    assert report.expenses.variance_percent == 0
    assert report.by_category == []


def test_category_breakdown_sorted_with_percentages(january):
    breakdown = get_category_breakdown(january, flow="expense")

    assert [c.category for c in breakdown] == ["housing", "food"]
    assert breakdown[1].total == pytest.approx(420)
    assert sum(c.percentage for c in breakdown) == pytest.approx(100)


def test_monthly_totals(january):
    totals = calculate_monthly_totals(january, 2024, 1)

    assert totals.income == pytest.approx(2100)
    assert totals.expenses == pytest.approx(360 + 900 + 60)
    assert totals.net == pytest.approx(2100 - 1320)


def test_period_stats_counts(january):
    stats = get_period_stats(january, date(2024, 1, 1), date(2024, 1, 31))

    assert stats.transaction_count == 5
    assert stats.completed_count == 3
    assert stats.skipped_count == 1


def test_best_bucket_type():
    assert get_best_bucket_type(date(2024, 1, 1), date(2024, 1, 15)) == "daily"
    assert get_best_bucket_type(date(2024, 1, 1), date(2024, 3, 1)) == "weekly"
    assert get_best_bucket_type(date(2024, 1, 1), date(2024, 6, 1)) == "monthly"


def test_weekly_chart_buckets_start_on_sunday(january):
    points = get_income_expense_chart_data(january, date(2024, 1, 1), date(2024, 1, 31), "weekly")

    # 2024-01-05 is a Friday; its week starts Sunday 2023-12-31
    assert points[0].key == "2023-12-31"
    assert points[0].label == "Week of Dec 31"
    assert points[0].income == pytest.approx(2100)
    assert points[1].key == "2024-01-07"
    assert points[1].expenses == pytest.approx(360)


def test_monthly_chart_label(january):
    points = get_income_expense_chart_data(january, date(2024, 1, 1), date(2024, 1, 31), "monthly")

    assert len(points) == 1
    assert points[0].label == "Jan 2024"
    assert points[0].net == pytest.approx(2100 - 1320)
