"""Forward-looking cash analysis: bill coverage, runway, next crunch, forecast"""

from datetime import date
from typing import Dict, Iterable, List

from cashflow_core.domain.balance import effective_amount, group_by_date, signed_amount
from cashflow_core.domain.models import (
    UNREALIZED_STATUSES,
    BillCoverageReport,
    Crunch,
    ForecastPoint,
    Runway,
    Shortfall,
    Transaction,
    UpcomingBill,
)
from cashflow_core.utils.date_utils import add_days, today


def _upcoming_by_date(transactions: Iterable[Transaction]) -> Dict[date, List[Transaction]]:
    # Realized transactions are already inside the current balance and
    # skipped ones never happen, so only projected/pending move it forward.
    return group_by_date(t for t in transactions if t.status in UNREALIZED_STATUSES)


def get_bill_coverage_report(
    current_balance: float,
    transactions: List[Transaction],
    days_ahead: int = 14,
    as_of: date | None = None,
) -> BillCoverageReport:
    """
    Check whether the balance covers each upcoming bill in order.

    Walks projected/pending transactions in [as_of, as_of + days_ahead]
    chronologically. Income raises the running balance; a bill that would
    push it below zero cannot be covered and records the deficit as its
    shortfall.
    """
    start = as_of or today()
    end = add_days(start, days_ahead)

    upcoming = sorted(
        (
            t
            for t in transactions
            if t.status in UNREALIZED_STATUSES and start <= t.effective_date <= end
        ),
        key=lambda t: t.effective_date,
    )

    upcoming_bills: List[UpcomingBill] = []
    bills_at_risk: List[UpcomingBill] = []
    running_balance = current_balance
    total_upcoming = 0.0

    for txn in upcoming:
        amount = effective_amount(txn)
        if txn.is_income:
            running_balance += amount
            continue

        total_upcoming += amount
        balance_after = running_balance - amount
        can_cover = balance_after >= 0

        bill = UpcomingBill(
            transaction=txn,
            days_until_due=(txn.scheduled_date - start).days,
            can_cover=can_cover,
            shortfall=None if can_cover else abs(balance_after),
        )
        upcoming_bills.append(bill)
        if not can_cover:
            bills_at_risk.append(bill)

        running_balance = balance_after

    first_shortfall = None
    if bills_at_risk:
        first = bills_at_risk[0]
        first_shortfall = Shortfall(
            date=first.transaction.scheduled_date,
            amount=first.shortfall or 0.0,
            bill_name=first.transaction.name,
        )

    return BillCoverageReport(
        current_balance=current_balance,
        upcoming_bills=upcoming_bills,
        bills_at_risk=bills_at_risk,
        total_upcoming=total_upcoming,
        projected_balance=running_balance,
        can_cover_all=not bills_at_risk,
        first_shortfall=first_shortfall,
    )


def get_runway(
    current_balance: float,
    transactions: List[Transaction],
    max_days: int = 365,
    as_of: date | None = None,
) -> Runway:
    """
    Days until the balance is exhausted.

    Simulates forward from ``as_of`` (day 0) and stops on the first day the
    balance drops to zero or below. Returns ``max_days`` with no run-out
    date when the money lasts the whole horizon.
    """
    start = as_of or today()
    by_date = _upcoming_by_date(transactions)
    balance = current_balance

    for i in range(max_days):
        day = add_days(start, i)
        for txn in by_date.get(day, []):
            balance += signed_amount(txn)

        if balance <= 0:
            return Runway(days=i, run_out_date=day)

    return Runway(days=max_days, run_out_date=None)


def get_next_crunch(
    current_balance: float,
    transactions: List[Transaction],
    max_days: int = 90,
    as_of: date | None = None,
) -> Crunch | None:
    """
    First day an expense drives the balance negative.

    A day only counts when it has outgoing activity, so a balance that is
    merely carried negative from an earlier day is not reported again.
    """
    start = as_of or today()
    by_date = _upcoming_by_date(transactions)
    balance = current_balance

    for i in range(max_days):
        day = add_days(start, i)
        day_income = 0.0
        day_expenses = 0.0
        for txn in by_date.get(day, []):
            if txn.is_income:
                day_income += effective_amount(txn)
            else:
                day_expenses += effective_amount(txn)

        balance = balance + day_income - day_expenses

        if day_expenses > 0 and balance < 0:
            return Crunch(date=day, shortfall=abs(balance))

    return None


def calculate_forecast(
    current_balance: float,
    transactions: List[Transaction],
    start_date: date | None = None,
    days_to_forecast: int = 90,
) -> List[ForecastPoint]:
    """Running end-of-day balance from ``start_date`` over projected/pending transactions"""
    start = start_date or today()
    by_date = _upcoming_by_date(t for t in transactions if t.scheduled_date >= start)
    balance = current_balance

    forecast: List[ForecastPoint] = []
    for i in range(days_to_forecast):
        day = add_days(start, i)
        for txn in by_date.get(day, []):
            balance += signed_amount(txn)
        forecast.append(ForecastPoint(date=day, balance=balance))

    return forecast
