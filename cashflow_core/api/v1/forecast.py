"""GET /v1/forecast/* - balance timeline, bill coverage, runway, health and reports"""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cashflow_core.api.dependencies import load_user_state
from cashflow_core.api.v1.schemas import (
    CategoryBreakdownResponse,
    CategoryTotalSchema,
    ChartPointSchema,
    ChartResponse,
    CoverageResponse,
    CrunchResponse,
    DailyBalancesResponse,
    DayBalanceSchema,
    ForecastPointSchema,
    ForecastResponse,
    HealthResponse,
    RunwayResponse,
    ShortfallSchema,
    UpcomingBillSchema,
    VarianceResponse,
)
from cashflow_core.config import settings
from cashflow_core.domain.balance import calculate_daily_balances, effective_amount
from cashflow_core.domain.coverage import (
    calculate_forecast,
    get_bill_coverage_report,
    get_next_crunch,
    get_runway,
)
from cashflow_core.domain.exceptions import ValidationError
from cashflow_core.domain.health_score import calculate_health_score
from cashflow_core.domain.models import UpcomingBill
from cashflow_core.domain.reports import (
    calculate_variance_report,
    get_best_bucket_type,
    get_category_breakdown,
    get_income_expense_chart_data,
    get_period_stats,
)
from cashflow_core.infrastructure.database.session import get_db
from cashflow_core.infrastructure.observability.metrics import record_health_score
from cashflow_core.utils.date_utils import add_days, today

router = APIRouter()

DEFAULT_WINDOW_DAYS = 30


def _window(start: Optional[date], end: Optional[date], backwards: bool = False) -> tuple[date, date]:
    """Resolve an optional [start, end] window around today"""
    if backwards:
        end = end or today()
        start = start or add_days(end, -DEFAULT_WINDOW_DAYS)
    else:
        start = start or today()
        end = end or add_days(start, DEFAULT_WINDOW_DAYS)
    if end < start:
        raise ValidationError("end must not be before start")
    return start, end


def _bill_schema(bill: UpcomingBill) -> UpcomingBillSchema:
    txn = bill.transaction
    return UpcomingBillSchema(
        transaction_id=txn.id,
        name=txn.name,
        type=txn.type,
        amount=effective_amount(txn),
        scheduled_date=txn.scheduled_date,
        days_until_due=bill.days_until_due,
        can_cover=bill.can_cover,
        shortfall=bill.shortfall,
    )


@router.get("/forecast/daily", response_model=DailyBalancesResponse)
def get_daily_balances(
    user_id: str = Query(...),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Day-by-day opening/closing balances with safe/warning/danger status"""
    start, end = _window(start, end)
    profile, transactions = load_user_state(db, user_id)
    balances = calculate_daily_balances(
        profile.current_balance, transactions, start, end, profile.warning_threshold
    )
    return DailyBalancesResponse(
        user_id=user_id,
        start=start,
        end=end,
        days=[
            DayBalanceSchema(
                date=day.date,
                opening_balance=day.opening_balance,
                closing_balance=day.closing_balance,
                total_income=day.total_income,
                total_expenses=day.total_expenses,
                status=day.status,
                transaction_ids=[t.id for t in day.transactions],
            )
            for day in balances.values()
        ],
    )


@router.get("/forecast/projection", response_model=ForecastResponse)
def get_projection(
    user_id: str = Query(...),
    days: int = Query(90, ge=1, le=730),
    db: Session = Depends(get_db),
):
    """End-of-day balance from today over upcoming projected/pending transactions"""
    profile, transactions = load_user_state(db, user_id)
    points = calculate_forecast(profile.current_balance, transactions, days_to_forecast=days)
    return ForecastResponse(user_id=user_id, points=[ForecastPointSchema.model_validate(p) for p in points])


@router.get("/forecast/coverage", response_model=CoverageResponse)
def get_coverage(
    user_id: str = Query(...),
    days_ahead: int = Query(settings.bill_coverage_days, ge=1, le=365),
    db: Session = Depends(get_db),
):
    """Can the current balance cover each upcoming bill in order?"""
    profile, transactions = load_user_state(db, user_id)
    report = get_bill_coverage_report(profile.current_balance, transactions, days_ahead)
    shortfall = report.first_shortfall
    return CoverageResponse(
        user_id=user_id,
        current_balance=report.current_balance,
        total_upcoming=report.total_upcoming,
        projected_balance=report.projected_balance,
        can_cover_all=report.can_cover_all,
        upcoming_bills=[_bill_schema(b) for b in report.upcoming_bills],
        bills_at_risk=[_bill_schema(b) for b in report.bills_at_risk],
        first_shortfall=(
            ShortfallSchema(date=shortfall.date, amount=shortfall.amount, bill_name=shortfall.bill_name)
            if shortfall
            else None
        ),
    )


@router.get("/forecast/runway", response_model=RunwayResponse)
def get_cash_runway(
    user_id: str = Query(...),
    max_days: int = Query(settings.runway_max_days, ge=1, le=3650),
    db: Session = Depends(get_db),
):
    profile, transactions = load_user_state(db, user_id)
    runway = get_runway(profile.current_balance, transactions, max_days)
    return RunwayResponse(user_id=user_id, days=runway.days, run_out_date=runway.run_out_date)


@router.get("/forecast/crunch", response_model=CrunchResponse)
def get_crunch(
    user_id: str = Query(...),
    max_days: int = Query(settings.crunch_max_days, ge=1, le=3650),
    db: Session = Depends(get_db),
):
    """First upcoming day where an expense drives the balance negative"""
    profile, transactions = load_user_state(db, user_id)
    crunch = get_next_crunch(profile.current_balance, transactions, max_days)
    if crunch is None:
        return CrunchResponse(user_id=user_id)
    return CrunchResponse(user_id=user_id, crunch_date=crunch.date, shortfall=crunch.shortfall)


@router.get("/forecast/health", response_model=HealthResponse)
def get_health_score(
    user_id: str = Query(...),
    start: Optional[date] = Query(None, description="Defaults to 30 days before end"),
    end: Optional[date] = Query(None, description="Defaults to today"),
    db: Session = Depends(get_db),
):
    """
    Weighted financial health score over the period.

    Returns:
        Score 0-100 with grade, color, component scores and up to 3 insights
    """
    start, end = _window(start, end, backwards=True)
    profile, transactions = load_user_state(db, user_id)
    daily = calculate_daily_balances(profile.current_balance, transactions, start, end, profile.warning_threshold)
    health = calculate_health_score(profile.current_balance, transactions, daily, start, end)
    record_health_score(health.score)

    return HealthResponse(
        user_id=user_id,
        score=health.score,
        grade=health.grade,
        color=health.color,
        components=health.components,
        insights=health.insights,
        savings_rate=round(health.savings_rate, 2),
        runway_days=health.runway_days,
        bill_payment_rate=round(health.bill_payment_rate, 2),
        trend=health.trend,
    )


@router.get("/forecast/variance", response_model=VarianceResponse)
def get_variance(
    user_id: str = Query(...),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    """Projected vs actual for completed transactions in the period"""
    start, end = _window(start, end, backwards=True)
    _, transactions = load_user_state(db, user_id)
    return VarianceResponse.model_validate(calculate_variance_report(transactions, start, end))


@router.get("/forecast/categories", response_model=CategoryBreakdownResponse)
def get_categories(
    user_id: str = Query(...),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    flow: Optional[Literal["income", "expense"]] = Query(None),
    db: Session = Depends(get_db),
):
    start, end = _window(start, end, backwards=True)
    _, transactions = load_user_state(db, user_id)
    in_period = [t for t in transactions if start <= t.effective_date <= end]
    return CategoryBreakdownResponse(
        user_id=user_id,
        flow=flow,
        categories=[CategoryTotalSchema.model_validate(c) for c in get_category_breakdown(in_period, flow)],
    )


@router.get("/forecast/chart", response_model=ChartResponse)
def get_chart(
    user_id: str = Query(...),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    bucket_type: Optional[Literal["daily", "weekly", "monthly"]] = Query(None),
    db: Session = Depends(get_db),
):
    """Income vs expenses per bucket; bucket size follows the period length unless given"""
    start, end = _window(start, end, backwards=True)
    _, transactions = load_user_state(db, user_id)
    bucket_type = bucket_type or get_best_bucket_type(start, end)
    stats = get_period_stats(transactions, start, end)
    points = get_income_expense_chart_data(transactions, start, end, bucket_type)

    return ChartResponse(
        user_id=user_id,
        bucket_type=bucket_type,
        income=stats.income,
        expenses=stats.expenses,
        net=stats.net,
        transaction_count=stats.transaction_count,
        completed_count=stats.completed_count,
        skipped_count=stats.skipped_count,
        points=[ChartPointSchema.model_validate(p) for p in points],
    )
