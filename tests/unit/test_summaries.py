"""Unit tests for analysis summaries"""

from datetime import date
from cashflow_core.domain.coverage import get_bill_coverage_report
from cashflow_core.domain.models import CreditConfig, ExpenseRule, IncomeSource, LoanConfig
from cashflow_core.domain.summaries import (
    build_analysis_summary,
    format_bill_coverage,
    format_expense_rules,
    format_income_sources,
    format_transactions,
)


def test_format_transactions_splits_completed_and_upcoming(make_transaction):
    transactions = [
        make_transaction(name="Salary", type="income", category="salary", projected_amount=2000,
                         status="completed", actual_amount=2050),
        make_transaction(name="Rent", type="bill", projected_amount=1200, scheduled_date=date(2024, 2, 1)),
        make_transaction(name="Gym", status="skipped"),
    ]

    text = format_transactions(transactions)

    assert "## Completed Transactions\n- Salary: +$2,050.00 (salary)" in text
    assert "## Upcoming Transactions\n- Rent: -$1,200.00 on 2024-02-01 (housing)" in text
    assert "Gym" not in text


def test_format_income_sources_only_active():
    sources = [
        IncomeSource(id="s1", user_id="u", name="Job", category="salary", amount=2500, frequency="bi-weekly",
                     is_variable_amount=True),
        IncomeSource(id="s2", user_id="u", name="Old gig", category="salary", amount=100, frequency="weekly",
                     is_active=False),
    ]

    text = format_income_sources(sources)

    assert "- Job: $2,500.00 (bi-weekly, $5,416.67/month)\n  Note: Amount varies" in text
    assert "Total monthly income: $5,416.67" in text
    assert "Old gig" not in text


def test_format_expense_rules_with_loan_and_credit_detail():
    rules = [
        ExpenseRule(
            id="r1", user_id="u", name="Car loan", category="auto", amount=350, frequency="monthly",
            loan_config=LoanConfig(principal=15000, annual_rate=5.5, term_months=48, monthly_payment=350,
                                   current_balance=9000),
        ),
        ExpenseRule(
            id="r2", user_id="u", name="Visa", category="credit", amount=75, frequency="monthly",
            credit_config=CreditConfig(current_balance=2400, credit_limit=5000, apr=22.9,
                                       minimum_payment_percent=2),
        ),
    ]

    text = format_expense_rules(rules)

    assert "  Loan: $9,000.00 remaining, 5.5% APR" in text
    assert "  Credit Card: $2,400.00 balance, 22.9% APR" in text
    assert "- Car loan: $350.00 (monthly, $350.00/month)" in text
    assert "Total monthly expenses: $425.00" in text


def test_bill_coverage_section_lists_risk(make_transaction):
    bill = make_transaction(name="Rent", projected_amount=150, scheduled_date=date(2024, 6, 2), status="pending")
    report = get_bill_coverage_report(100, [bill], as_of=date(2024, 6, 1))

    text = format_bill_coverage(report)

    assert "- AT RISK: Rent due 2024-06-02, short $50.00" in text
    assert "All upcoming bills are covered" not in text


def test_full_summary_starts_with_balance(make_transaction):
    report = get_bill_coverage_report(1234.5, [], as_of=date(2024, 6, 1))

    text = build_analysis_summary(1234.5, [], [], [], report)

    assert text.startswith("Current Balance: $1,234.50")
    assert "## Income Sources" in text
    assert "## Expense Rules" in text
    assert "- All upcoming bills are covered" in text
