"""Plain-text summaries handed to the external budget analysis service"""

from typing import List

from cashflow_core.domain.balance import effective_amount
from cashflow_core.domain.frequency import monthly_equivalent
from cashflow_core.domain.models import (
    UNREALIZED_STATUSES,
    BillCoverageReport,
    ExpenseRule,
    IncomeSource,
    Transaction,
)
from cashflow_core.utils.date_utils import format_date


def _money(amount: float) -> str:
    return f"${amount:,.2f}"


def _sign(transaction: Transaction) -> str:
    return "+" if transaction.is_income else "-"


def format_transactions(transactions: List[Transaction]) -> str:
    lines = ["## Completed Transactions"]
    for txn in transactions:
        if txn.is_realized:
            lines.append(
                f"- {txn.name}: {_sign(txn)}{_money(effective_amount(txn))} ({txn.category})"
            )

    lines.extend(["", "## Upcoming Transactions"])
    for txn in transactions:
        if txn.status in UNREALIZED_STATUSES:
            lines.append(
                f"- {txn.name}: {_sign(txn)}{_money(txn.projected_amount)} "
                f"on {format_date(txn.scheduled_date)} ({txn.category})"
            )
    return "\n".join(lines) + "\n"


def format_income_sources(sources: List[IncomeSource]) -> str:
    active = [source for source in sources if source.is_active]
    lines = ["## Income Sources"]
    for source in active:
        lines.append(
            f"- {source.name}: {_money(source.amount)} ({source.frequency}, "
            f"{_money(monthly_equivalent(source))}/month)"
        )
        if source.is_variable_amount:
            lines.append("  Note: Amount varies")
    lines.append(f"Total monthly income: {_money(sum(monthly_equivalent(s) for s in active))}")
    return "\n".join(lines) + "\n"


def format_expense_rules(rules: List[ExpenseRule]) -> str:
    active = [rule for rule in rules if rule.is_active]
    lines = ["## Expense Rules"]
    for rule in active:
        lines.append(
            f"- {rule.name}: {_money(rule.amount)} ({rule.frequency}, "
            f"{_money(monthly_equivalent(rule))}/month)"
        )
        if rule.loan_config:
            lines.append(
                f"  Loan: {_money(rule.loan_config.current_balance)} remaining, "
                f"{rule.loan_config.annual_rate}% APR"
            )
        if rule.credit_config:
            lines.append(
                f"  Credit Card: {_money(rule.credit_config.current_balance)} balance, "
                f"{rule.credit_config.apr}% APR"
            )
    lines.append(f"Total monthly expenses: {_money(sum(monthly_equivalent(r) for r in active))}")
    return "\n".join(lines) + "\n"


def format_bill_coverage(report: BillCoverageReport) -> str:
    lines = [
        "## Bill Coverage",
        f"- Current balance: {_money(report.current_balance)}",
        f"- Upcoming bills: {_money(report.total_upcoming)}",
        f"- Projected balance: {_money(report.projected_balance)}",
    ]
    for bill in report.bills_at_risk:
        lines.append(
            f"- AT RISK: {bill.transaction.name} due {format_date(bill.transaction.scheduled_date)}, "
            f"short {_money(bill.shortfall or 0.0)}"
        )
    if report.can_cover_all:
        lines.append("- All upcoming bills are covered")
    return "\n".join(lines) + "\n"


def build_analysis_summary(
    current_balance: float,
    transactions: List[Transaction],
    income_sources: List[IncomeSource],
    expense_rules: List[ExpenseRule],
    coverage: BillCoverageReport,
) -> str:
    """Full context document: balance, rules, transactions and bill coverage"""
    sections = [
        f"Current Balance: {_money(current_balance)}\n",
        format_income_sources(income_sources),
        format_expense_rules(expense_rules),
        format_transactions(transactions),
        format_bill_coverage(coverage),
    ]
    return "\n".join(sections)
