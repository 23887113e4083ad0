"""POST /v1/credit/payoff and /v1/loans/schedule - stateless payoff calculators"""

from fastapi import APIRouter

from cashflow_core.api.v1.schemas import (
    AmortizationStepSchema,
    CreditPayoffRequest,
    CreditPayoffResponse,
    LoanScheduleRequest,
    LoanScheduleResponse,
    PayoffScenarioSchema,
    finite_or_none,
)
from cashflow_core.domain.amortization import calculate_amortization_schedule
from cashflow_core.domain.credit_payoff import calculate_payoff_summary, format_payoff_time
from cashflow_core.domain.models import CreditConfig

router = APIRouter()


@router.post("/credit/payoff", response_model=CreditPayoffResponse)
def get_credit_payoff(request_body: CreditPayoffRequest):
    """
    Payoff outlook for a credit card under its payment strategy.

    Returns payoff date/time, totals, the minimum-payment-trap flag and
    cheaper alternative scenarios (double payment, 1 year, 2 years).
    """
    config = CreditConfig(
        current_balance=request_body.current_balance,
        credit_limit=request_body.credit_limit,
        apr=request_body.apr,
        minimum_payment_percent=request_body.minimum_payment_percent,
        minimum_payment_floor=request_body.minimum_payment_floor,
        minimum_payment_method=request_body.minimum_payment_method,
        payment_strategy=request_body.payment_strategy,
        fixed_payment_amount=request_body.fixed_payment_amount,
        due_day=request_body.due_day,
    )
    summary = calculate_payoff_summary(
        config,
        principal_paid_so_far=request_body.principal_paid_so_far,
        interest_paid_so_far=request_body.interest_paid_so_far,
        start_date=request_body.start_date,
    )

    return CreditPayoffResponse(
        payoff_date=summary.payoff_date,
        payoff_time=format_payoff_time(summary.months_to_payoff),
        months_to_payoff=finite_or_none(summary.months_to_payoff),
        years_to_payoff=finite_or_none(summary.years_to_payoff),
        total_amount_to_pay=finite_or_none(summary.total_amount_to_pay),
        total_interest_to_pay=finite_or_none(summary.total_interest_to_pay),
        current_monthly_interest=round(summary.current_monthly_interest, 2),
        effective_monthly_payment=round(summary.effective_monthly_payment, 2),
        principal_paid_so_far=summary.principal_paid_so_far,
        interest_paid_so_far=summary.interest_paid_so_far,
        is_minimum_payment_trap=summary.is_minimum_payment_trap,
        scenarios=[PayoffScenarioSchema.model_validate(s) for s in summary.scenarios],
    )


@router.post("/loans/schedule", response_model=LoanScheduleResponse)
def get_loan_schedule(request_body: LoanScheduleRequest):
    """Month-by-month amortization for a fixed-payment loan"""
    steps = calculate_amortization_schedule(
        request_body.principal,
        request_body.annual_rate,
        term_months=request_body.term_months,
        monthly_payment=request_body.monthly_payment,
        start_date=request_body.start_date,
    )
    return LoanScheduleResponse(
        payment_count=len(steps),
        total_paid=round(sum(s.payment for s in steps), 2),
        total_interest=round(sum(s.interest for s in steps), 2),
        steps=[AmortizationStepSchema.model_validate(s) for s in steps],
    )
