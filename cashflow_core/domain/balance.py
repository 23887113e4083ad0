"""Balance engine - signed effects, daily balance walk, reconciliation"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List

from cashflow_core.domain.models import DayBalance, ReconciliationReport, Transaction, UserProfile
from cashflow_core.utils.date_utils import generate_date_range

DEFAULT_WARNING_THRESHOLD = 500.0


def effective_amount(transaction: Transaction) -> float:
    """Actual amount once realized (completed/partial), projected amount otherwise"""
    if transaction.is_realized and transaction.actual_amount is not None:
        return transaction.actual_amount
    return transaction.projected_amount


def signed_delta(transaction_type: str, amount: float) -> float:
    """Income adds to the balance; every other type (expense, bill, loan) subtracts"""
    return amount if transaction_type == "income" else -amount


def signed_amount(transaction: Transaction) -> float:
    return signed_delta(transaction.type, effective_amount(transaction))


def get_balance_status(balance: float, warning_threshold: float) -> str:
    if balance < 0:
        return "danger"
    if balance < warning_threshold:
        return "warning"
    return "safe"


def group_by_date(transactions: Iterable[Transaction]) -> Dict[date, List[Transaction]]:
    """Bucket transactions by the date they land on"""
    grouped: Dict[date, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        grouped[txn.effective_date].append(txn)
    return grouped


def compute_balance_from_transactions(initial_balance: float, transactions: Iterable[Transaction]) -> float:
    """
    Authoritative balance: initial balance plus the signed effect of every
    completed or partial transaction. Everything else has not touched the
    account yet.
    """
    return initial_balance + sum(signed_amount(t) for t in transactions if t.is_realized)


def calculate_daily_balances(
    current_balance: float,
    transactions: List[Transaction],
    start_date: date,
    end_date: date,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> Dict[date, DayBalance]:
    """
    Walk the window day by day and produce opening/closing balances.

    ``current_balance`` already contains every realized transaction, so
    the opening balance of the window is found by undoing the realized
    effects that land on or after ``start_date``; the walk then replays
    every non-skipped transaction in date order. Realized transactions
    from before the window stay folded into the opening balance.

    Returns an insertion-ordered dict keyed by date.
    """
    opening_balance = current_balance
    for txn in transactions:
        if txn.is_realized and txn.effective_date >= start_date:
            opening_balance -= signed_amount(txn)

    transactions_by_date = group_by_date(transactions)

    balances: Dict[date, DayBalance] = {}
    running_balance = opening_balance

    for day in generate_date_range(start_date, end_date):
        day_transactions = transactions_by_date.get(day, [])

        income = 0.0
        expenses = 0.0
        for txn in day_transactions:
            if txn.status == "skipped":
                continue
            if txn.is_income:
                income += effective_amount(txn)
            else:
                expenses += effective_amount(txn)

        closing_balance = running_balance + income - expenses
        balances[day] = DayBalance(
            date=day,
            opening_balance=running_balance,
            closing_balance=closing_balance,
            total_income=income,
            total_expenses=expenses,
            transactions=day_transactions,
            status=get_balance_status(closing_balance, warning_threshold),
        )
        running_balance = closing_balance

    return balances


def generate_reconciliation_report(profile: UserProfile, transactions: List[Transaction]) -> ReconciliationReport:
    """Compare the cached balance on the profile against the computed one"""
    computed_balance = compute_balance_from_transactions(profile.initial_balance, transactions)
    return ReconciliationReport(
        current_balance=profile.current_balance,
        computed_balance=computed_balance,
        difference=profile.current_balance - computed_balance,
        affected_transactions=[t for t in transactions if t.is_realized],
        can_auto_fix=True,
    )
