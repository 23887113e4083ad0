"""Aggregations over transactions: variance, categories, period totals, chart buckets"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, List, Optional

from cashflow_core.domain.balance import effective_amount
from cashflow_core.domain.models import (
    CategoryTotal,
    CategoryVariance,
    ChartDataPoint,
    PeriodStats,
    PeriodTotals,
    Transaction,
    VarianceLine,
    VarianceReport,
)
from cashflow_core.utils.date_utils import format_date, month_bounds


def _percent(part: float, whole: float) -> float:
    return (part / whole) * 100 if whole > 0 else 0.0


def _matches_flow(transaction: Transaction, flow: Optional[str]) -> bool:
    """flow is "income", "expense" (any outflow) or None for both"""
    if flow is None:
        return True
    if flow == "income":
        return transaction.is_income
    return not transaction.is_income


def _in_range(transaction: Transaction, start: date, end: date) -> bool:
    return start <= transaction.effective_date <= end


def calculate_variance_report(transactions: List[Transaction], start: date, end: date) -> VarianceReport:
    """
    Projected vs actual for completed transactions scheduled in [start, end].

    Expense-side variance is also broken down by category.
    """
    projected_income = actual_income = 0.0
    projected_expenses = actual_expenses = 0.0
    by_category: Dict[str, List[float]] = {}

    for txn in transactions:
        if txn.status != "completed" or not (start <= txn.scheduled_date <= end):
            continue

        actual = effective_amount(txn)
        if txn.is_income:
            projected_income += txn.projected_amount
            actual_income += actual
        else:
            projected_expenses += txn.projected_amount
            actual_expenses += actual
            totals = by_category.setdefault(txn.category, [0.0, 0.0])
            totals[0] += txn.projected_amount
            totals[1] += actual

    income_variance = actual_income - projected_income
    expense_variance = actual_expenses - projected_expenses

    return VarianceReport(
        start=start,
        end=end,
        income=VarianceLine(
            projected=projected_income,
            actual=actual_income,
            variance=income_variance,
            variance_percent=_percent(income_variance, projected_income),
        ),
        expenses=VarianceLine(
            projected=projected_expenses,
            actual=actual_expenses,
            variance=expense_variance,
            variance_percent=_percent(expense_variance, projected_expenses),
        ),
        by_category=[
            CategoryVariance(category=category, projected=projected, actual=actual, variance=actual - projected)
            for category, (projected, actual) in by_category.items()
        ],
    )


def get_category_breakdown(transactions: List[Transaction], flow: Optional[str] = None) -> List[CategoryTotal]:
    """Totals per category with share of the grand total, largest first"""
    totals: Dict[str, float] = defaultdict(float)
    grand_total = 0.0

    for txn in transactions:
        if txn.status == "skipped" or not _matches_flow(txn, flow):
            continue
        amount = effective_amount(txn)
        totals[txn.category] += amount
        grand_total += amount

    breakdown = [
        CategoryTotal(category=category, total=total, percentage=_percent(total, grand_total))
        for category, total in totals.items()
    ]
    return sorted(breakdown, key=lambda c: c.total, reverse=True)


def calculate_period_totals(transactions: List[Transaction], start: date, end: date) -> PeriodTotals:
    income = 0.0
    expenses = 0.0
    for txn in transactions:
        if txn.status == "skipped" or not _in_range(txn, start, end):
            continue
        if txn.is_income:
            income += effective_amount(txn)
        else:
            expenses += effective_amount(txn)
    return PeriodTotals(income=income, expenses=expenses, net=income - expenses)


def calculate_monthly_totals(transactions: List[Transaction], year: int, month: int) -> PeriodTotals:
    """Income, expenses and net for a calendar month (month is 1-12)"""
    start, end = month_bounds(year, month)
    return calculate_period_totals(transactions, start, end)


def get_period_stats(transactions: List[Transaction], start: date, end: date) -> PeriodStats:
    transaction_count = completed_count = skipped_count = 0
    income = expenses = 0.0

    for txn in transactions:
        if not _in_range(txn, start, end):
            continue
        transaction_count += 1
        if txn.status == "skipped":
            skipped_count += 1
            continue
        if txn.status == "completed":
            completed_count += 1
        if txn.is_income:
            income += effective_amount(txn)
        else:
            expenses += effective_amount(txn)

    return PeriodStats(
        income=income,
        expenses=expenses,
        net=income - expenses,
        transaction_count=transaction_count,
        completed_count=completed_count,
        skipped_count=skipped_count,
    )


def get_best_bucket_type(start: date, end: date) -> str:
    span = (end - start).days
    if span <= 14:
        return "daily"
    if span <= 90:
        return "weekly"
    return "monthly"


def _bucket(day: date, bucket_type: str) -> tuple[str, str]:
    """(sort key, label) for the bucket a day falls in"""
    if bucket_type == "daily":
        return format_date(day), f"{day:%b} {day.day}"
    if bucket_type == "weekly":
        # Weeks start on Sunday
        week_start = day - timedelta(days=(day.weekday() + 1) % 7)
        return format_date(week_start), f"Week of {week_start:%b} {week_start.day}"
    return f"{day:%Y-%m}", f"{day:%b %Y}"


def get_income_expense_chart_data(
    transactions: List[Transaction],
    start: date,
    end: date,
    bucket_type: str = "daily",
) -> List[ChartDataPoint]:
    """Income/expense/net per daily, weekly or monthly bucket, in date order"""
    buckets: Dict[str, List] = {}

    for txn in transactions:
        if txn.status == "skipped" or not _in_range(txn, start, end):
            continue
        key, label = _bucket(txn.effective_date, bucket_type)
        bucket = buckets.setdefault(key, [label, 0.0, 0.0])
        if txn.is_income:
            bucket[1] += effective_amount(txn)
        else:
            bucket[2] += effective_amount(txn)

    return [
        ChartDataPoint(label=label, key=key, income=income, expenses=expenses, net=income - expenses)
        for key, (label, income, expenses) in sorted(buckets.items())
    ]
