"""Frequency multipliers for converting recurring amounts to monthly figures"""

from datetime import date
from typing import Union

from cashflow_core.domain.models import ExpenseRule, IncomeSource
from cashflow_core.utils.date_utils import parse_date

MONTHLY_MULTIPLIERS = {
    "daily": 30.0,
    "weekly": 52 / 12,
    "bi-weekly": 26 / 12,
    "semi-monthly": 2.0,
    "monthly": 1.0,
    "quarterly": 1 / 3,
    "yearly": 1 / 12,
    "one-time": 0.0,
}

DAYS_PER_MONTH = 30  # flat month


def get_monthly_multiplier(frequency: str) -> float:
    """Multiplier converting one occurrence to its monthly equivalent (unknown → 0)"""
    return MONTHLY_MULTIPLIERS.get(frequency, 0.0)


def monthly_equivalent(rule: Union[IncomeSource, ExpenseRule]) -> float:
    """Monthly figure for a recurring income source or expense rule"""
    return rule.amount * get_monthly_multiplier(rule.frequency)


def prorate_to_date_range(monthly_amount: float, start: str | date, end: str | date) -> float:
    """Prorate a monthly amount over an inclusive date range"""
    days = (parse_date(end) - parse_date(start)).days + 1
    return (monthly_amount / DAYS_PER_MONTH) * days
