"""Credit card payoff analysis - payoff dates, minimum-payment trap, scenarios"""

import logging
import math
from datetime import date
from typing import Callable, List

from cashflow_core.domain.amortization import PAYOFF_EPSILON, minimum_payment, monthly_rate
from cashflow_core.domain.models import (
    CreditCardPayoffSummary,
    CreditConfig,
    MonthlyBreakdown,
    PayoffScenario,
)
from cashflow_core.utils.date_utils import add_months, today

logger = logging.getLogger(__name__)

DEFAULT_MAX_MONTHS = 600  # 50 years
TRAP_GRACE_MONTHS = 12
# Payment within 10% of the monthly interest counts as a trap
TRAP_INTEREST_MARGIN = 1.1


def calculate_minimum_payment(config: CreditConfig) -> float:
    """Minimum payment on the config's current balance"""
    monthly_interest = config.current_balance * monthly_rate(config.apr)
    return minimum_payment(
        config.current_balance,
        monthly_interest,
        config.minimum_payment_percent,
        config.minimum_payment_floor,
        config.minimum_payment_method,
    )


def get_effective_payment(config: CreditConfig) -> float:
    """Payment actually made each month under the configured strategy"""
    if config.payment_strategy == "fixed":
        return config.fixed_payment_amount or calculate_minimum_payment(config)
    if config.payment_strategy == "full_balance":
        return config.current_balance
    return calculate_minimum_payment(config)


def calculate_payment_for_months(balance: float, apr: float, months: int) -> float:
    """
    Monthly payment that clears ``balance`` in ``months``.

    Rounded up to the cent so the schedule never under-amortizes.
    """
    if months <= 0 or balance <= 0:
        return 0.0

    rate = monthly_rate(apr)
    if rate == 0:
        payment = balance / months
    else:
        growth = (1 + rate) ** months
        payment = balance * rate * growth / (growth - 1)

    # round() first so 100.00000000001 does not become 100.01
    return math.ceil(round(payment * 100, 6)) / 100


def format_payoff_time(months: float) -> str:
    """Human-readable payoff time, e.g. '2 years, 3 months'"""
    if not math.isfinite(months):
        return "Never (payment too low)"

    months = int(months)
    years, remaining = divmod(months, 12)

    def plural(count: int, unit: str) -> str:
        return f"{count} {unit}{'' if count == 1 else 's'}"

    if years == 0:
        return plural(remaining, "month")
    if remaining == 0:
        return plural(years, "year")
    return f"{plural(years, 'year')}, {plural(remaining, 'month')}"


def _run_payoff(
    balance: float,
    apr: float,
    payment_for: Callable[[float, float], float],
    start_date: date,
    max_months: int,
) -> List[MonthlyBreakdown]:
    rate = monthly_rate(apr)
    cumulative_interest = 0.0
    cumulative_principal = 0.0
    schedule: List[MonthlyBreakdown] = []

    for month in range(1, max_months + 1):
        if balance <= PAYOFF_EPSILON:
            break

        interest = balance * rate
        payment = payment_for(balance, interest)

        # Final payment
        if payment > balance + interest:
            payment = balance + interest

        # Negative amortization: payment doesn't cover interest
        principal = max(0.0, payment - interest)
        balance = max(0.0, balance - principal)

        cumulative_interest += interest
        cumulative_principal += principal

        schedule.append(
            MonthlyBreakdown(
                month=month,
                date=add_months(start_date, month - 1),
                payment=payment,
                principal=principal,
                interest=interest,
                remaining_balance=balance,
                cumulative_interest=cumulative_interest,
                cumulative_principal=cumulative_principal,
            )
        )

        # Debt is not shrinking: minimum payment trap
        if month > TRAP_GRACE_MONTHS and principal < 0.01:
            break

    return schedule


def calculate_credit_card_payoff(
    current_balance: float,
    apr: float,
    monthly_payment: float,
    start_date: date | None = None,
    max_months: int = DEFAULT_MAX_MONTHS,
) -> List[MonthlyBreakdown]:
    """
    Fixed-payment payoff schedule.

    Terminates early once past month 12 if a payment retires less than a
    cent of principal, so a schedule that never reaches zero ends with a
    non-zero remaining balance instead of running to ``max_months``.
    """
    return _run_payoff(
        current_balance,
        apr,
        lambda balance, interest: monthly_payment,
        start_date or today(),
        max_months,
    )


def calculate_declining_minimum_payoff(
    config: CreditConfig,
    start_date: date | None = None,
    max_months: int = DEFAULT_MAX_MONTHS,
) -> List[MonthlyBreakdown]:
    """Payoff schedule paying the issuer minimum recomputed from each month's balance"""
    return _run_payoff(
        config.current_balance,
        config.apr,
        lambda balance, interest: minimum_payment(
            balance,
            interest,
            config.minimum_payment_percent,
            config.minimum_payment_floor,
            config.minimum_payment_method,
        ),
        start_date or today(),
        max_months,
    )


def _is_paid_off(schedule: List[MonthlyBreakdown]) -> bool:
    return bool(schedule) and schedule[-1].remaining_balance < PAYOFF_EPSILON


def _scenario(
    name: str,
    monthly_payment: float,
    schedule: List[MonthlyBreakdown],
    current_interest: float,
    current_months: int,
) -> PayoffScenario:
    total_interest = schedule[-1].cumulative_interest
    return PayoffScenario(
        name=name,
        monthly_payment=monthly_payment,
        months_to_payoff=len(schedule),
        total_interest=total_interest,
        total_amount=sum(m.payment for m in schedule),
        interest_savings=current_interest - total_interest,
        time_savings_months=current_months - len(schedule),
    )


def calculate_payoff_scenarios(
    config: CreditConfig,
    current_schedule: List[MonthlyBreakdown],
    start_date: date | None = None,
) -> List[PayoffScenario]:
    """
    Compare the current strategy against faster payoffs.

    Scenarios: double payment, pay off in 1 year, pay off in 2 years.
    Only scenarios that save interest are returned, cheapest monthly
    payment first.
    """
    start_date = start_date or today()
    current_months = len(current_schedule)
    current_interest = current_schedule[-1].cumulative_interest if current_schedule else 0.0

    scenarios: List[PayoffScenario] = []

    double_payment = get_effective_payment(config) * 2
    double_schedule = calculate_credit_card_payoff(
        config.current_balance, config.apr, double_payment, start_date
    )
    if _is_paid_off(double_schedule):
        scenarios.append(
            _scenario("Double Payment", double_payment, double_schedule, current_interest, current_months)
        )

    twelve_month_payment = calculate_payment_for_months(config.current_balance, config.apr, 12)
    if twelve_month_payment > 0:
        twelve_schedule = calculate_credit_card_payoff(
            config.current_balance, config.apr, twelve_month_payment, start_date
        )
        if twelve_schedule:
            scenarios.append(
                _scenario(
                    "Pay Off in 1 Year", twelve_month_payment, twelve_schedule, current_interest, current_months
                )
            )

    two_year_payment = calculate_payment_for_months(config.current_balance, config.apr, 24)
    if 0 < two_year_payment < double_payment:
        two_year_schedule = calculate_credit_card_payoff(
            config.current_balance, config.apr, two_year_payment, start_date
        )
        if two_year_schedule:
            scenarios.append(
                _scenario(
                    "Pay Off in 2 Years", two_year_payment, two_year_schedule, current_interest, current_months
                )
            )

    return sorted(
        (s for s in scenarios if s.interest_savings > 0),
        key=lambda s: s.monthly_payment,
    )


def calculate_payoff_summary(
    config: CreditConfig,
    principal_paid_so_far: float = 0.0,
    interest_paid_so_far: float = 0.0,
    start_date: date | None = None,
) -> CreditCardPayoffSummary:
    """
    Payoff outlook for a card under its configured payment strategy.

    The minimum strategy uses a declining minimum; fixed and full-balance
    strategies use a fixed payment. A schedule that never reaches zero
    reports ``payoff_date=None`` and infinite months/totals. The trap flag
    is evaluated independently of loop termination: effective payment
    <= 1.1 x current monthly interest.
    """
    start_date = start_date or today()
    effective_payment = get_effective_payment(config)
    current_monthly_interest = config.current_balance * monthly_rate(config.apr)
    is_trap = effective_payment <= current_monthly_interest * TRAP_INTEREST_MARGIN

    if config.current_balance <= PAYOFF_EPSILON:
        return CreditCardPayoffSummary(
            payoff_date=start_date,
            months_to_payoff=0,
            years_to_payoff=0.0,
            total_amount_to_pay=0.0,
            total_interest_to_pay=0.0,
            current_monthly_interest=current_monthly_interest,
            effective_monthly_payment=effective_payment,
            principal_paid_so_far=principal_paid_so_far,
            interest_paid_so_far=interest_paid_so_far,
            is_minimum_payment_trap=False,
        )

    if config.payment_strategy == "minimum":
        schedule = calculate_declining_minimum_payoff(config, start_date)
    else:
        schedule = calculate_credit_card_payoff(
            config.current_balance, config.apr, effective_payment, start_date
        )

    will_pay_off = _is_paid_off(schedule)
    if not will_pay_off:
        logger.warning(
            "Credit balance never reaches zero under current payment",
            extra={"effective_payment": effective_payment, "monthly_interest": current_monthly_interest},
        )

    scenarios = calculate_payoff_scenarios(config, schedule, start_date)

    return CreditCardPayoffSummary(
        payoff_date=schedule[-1].date if will_pay_off else None,
        months_to_payoff=len(schedule) if will_pay_off else math.inf,
        years_to_payoff=len(schedule) / 12 if will_pay_off else math.inf,
        total_amount_to_pay=sum(m.payment for m in schedule) if will_pay_off else math.inf,
        total_interest_to_pay=schedule[-1].cumulative_interest if will_pay_off else math.inf,
        current_monthly_interest=current_monthly_interest,
        effective_monthly_payment=effective_payment,
        principal_paid_so_far=principal_paid_so_far,
        interest_paid_so_far=interest_paid_so_far,
        is_minimum_payment_trap=is_trap,
        scenarios=scenarios,
    )
