"""Loan amortization schedules and credit card minimum-payment projections"""

import logging
from datetime import date
from typing import List, Optional

from cashflow_core.domain.models import AmortizationStep, CreditCardProjectionConfig
from cashflow_core.utils.date_utils import add_months, clamp_day_to_month, today

logger = logging.getLogger(__name__)

DEFAULT_MAX_MONTHS = 360
PAYOFF_EPSILON = 0.01
# Consecutive months without principal reduction before a schedule is abandoned
STALL_LIMIT = 3


def monthly_rate(annual_rate: float) -> float:
    """Annual percentage rate (e.g. 6 for 6%) → periodic monthly rate"""
    return annual_rate / 100 / 12


def annuity_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """
    Fixed payment that amortizes ``principal`` over ``term_months``.

    PMT = P * r * (1+r)^n / ((1+r)^n - 1), or P / n when the rate is zero.
    """
    r = monthly_rate(annual_rate)
    if r == 0:
        return principal / term_months
    growth = (1 + r) ** term_months
    return principal * r * growth / (growth - 1)


def minimum_payment(
    balance: float,
    monthly_interest: float,
    percent: float,
    floor: float,
    method: str = "percent_only",
) -> float:
    """
    Card issuer minimum payment.

    - percent_only: max(floor, balance * pct)
    - percent_plus_interest: max(floor, balance * pct + interest)
    """
    percent_portion = balance * (percent / 100)
    if method == "percent_plus_interest":
        return max(floor, percent_portion + monthly_interest)
    return max(floor, percent_portion)


def calculate_amortization_schedule(
    principal: float,
    annual_rate: float,
    term_months: Optional[int] = None,
    monthly_payment: Optional[float] = None,
    start_date: date | None = None,
) -> List[AmortizationStep]:
    """
    Build a month-by-month schedule for a fixed-payment loan.

    Requirements:
    - Payment derived from the annuity formula when not supplied
    - Final step clamps principal to the remaining balance
    - Principal portion floored at 0 when the payment does not cover interest
    - Stops at balance <= 0.01, after term_months (default 360) steps, or
      after STALL_LIMIT consecutive steps with no principal reduction

    Example:
        10,000 at 6% over 60 months → 60 payments of ~193.33, ending at 0
    """
    if principal <= 0:
        return []

    if start_date is None:
        start_date = today()

    if term_months is not None and term_months <= 0:
        term_months = None

    payment = monthly_payment or 0.0
    if not payment and term_months:
        payment = annuity_payment(principal, annual_rate, term_months)

    rate = monthly_rate(annual_rate)
    max_months = term_months or DEFAULT_MAX_MONTHS

    schedule: List[AmortizationStep] = []
    balance = principal
    stalled_months = 0

    for i in range(max_months):
        if balance <= PAYOFF_EPSILON:
            break

        interest = balance * rate
        principal_paid = payment - interest

        # Final payment
        if principal_paid > balance:
            principal_paid = balance
            payment = principal_paid + interest

        # Payment below interest: the debt cannot shrink this month
        if principal_paid < 0:
            principal_paid = 0.0

        balance -= principal_paid

        schedule.append(
            AmortizationStep(
                date=add_months(start_date, i),
                payment=payment,
                principal=principal_paid,
                interest=interest,
                remaining_balance=balance,
            )
        )

        if principal_paid <= 0:
            stalled_months += 1
            if stalled_months >= STALL_LIMIT:
                logger.warning(
                    "Amortization stalled: payment does not cover interest",
                    extra={"payment": payment, "balance": balance, "months": len(schedule)},
                )
                break
        else:
            stalled_months = 0

    return schedule


def calculate_credit_card_projection(config: CreditCardProjectionConfig) -> List[AmortizationStep]:
    """
    Project a card balance paid down by the issuer minimum each month.

    The minimum is recomputed from the current balance each month and
    capped at balance + interest. With a due day, the first payment lands
    on that day of the start month (or the next month if it already
    passed) and every later payment is re-pinned to it, clamped to short
    months.
    """
    rate = monthly_rate(config.apr)
    balance = config.current_balance

    first_date = config.start_date
    if config.due_day:
        first_date = config.start_date.replace(
            day=clamp_day_to_month(config.due_day, config.start_date.year, config.start_date.month)
        )
        if first_date < config.start_date:
            first_date = add_months(first_date, 1, day=config.due_day)

    schedule: List[AmortizationStep] = []
    for i in range(config.months_to_project):
        if balance <= 0:
            break

        interest = balance * rate
        payment = minimum_payment(
            balance,
            interest,
            config.min_payment_percentage,
            config.min_payment_floor,
            config.min_payment_method,
        )
        if payment > balance + interest:
            payment = balance + interest

        principal = payment - interest
        balance -= principal

        schedule.append(
            AmortizationStep(
                date=add_months(first_date, i, day=config.due_day),
                payment=payment,
                principal=principal,
                interest=interest,
                remaining_balance=max(0.0, balance),
            )
        )

    return schedule
