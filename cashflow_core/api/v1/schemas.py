"""Pydantic schemas for API request/response validation"""

import math
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from cashflow_core.config import settings


def finite_or_none(value: float) -> Optional[float]:
    """JSON has no Infinity; a payoff that never happens is reported as null"""
    return None if math.isinf(value) else value


class ProfileCreate(BaseModel):
    """Request body for POST /v1/profiles"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    initial_balance: float = Field(0.0, description="Immutable baseline balance")
    warning_threshold: float = Field(settings.warning_threshold, ge=0)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    initial_balance: float
    current_balance: float
    balance_last_updated_at: Optional[date] = None
    warning_threshold: float


class PaymentBreakdownSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_number: int
    principal_paid: float
    interest_paid: float


class TransactionCreate(BaseModel):
    """Request body for POST /v1/transactions"""

    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: Literal["income", "expense", "bill", "loan"]
    category: str = "other"
    projected_amount: float = Field(..., ge=0)
    scheduled_date: date
    status: Literal["projected", "pending"] = "projected"
    source_type: Literal["manual", "income_source", "expense_rule"] = "manual"
    source_id: Optional[str] = None
    notes: Optional[str] = None
    payment_breakdown: Optional[PaymentBreakdownSchema] = None


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: str
    type: str
    category: str
    projected_amount: float
    scheduled_date: date
    status: str
    source_type: str
    source_id: Optional[str] = None
    actual_amount: Optional[float] = None
    actual_date: Optional[date] = None
    variance: Optional[float] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    parent_transaction_id: Optional[str] = None
    payment_breakdown: Optional[PaymentBreakdownSchema] = None


class TransactionListResponse(BaseModel):
    user_id: str
    transactions: List[TransactionResponse]


class CompleteRequest(BaseModel):
    """Request body for POST /v1/transactions/{id}/complete"""

    actual_amount: float = Field(..., ge=0)
    actual_date: Optional[date] = None
    notes: Optional[str] = None
    new_credit_balance: Optional[float] = Field(None, ge=0, description="Statement balance for credit-card rules")


class SkipRequest(BaseModel):
    notes: Optional[str] = None


class PartialRequest(BaseModel):
    """Request body for POST /v1/transactions/{id}/partial"""

    partial_amount: float = Field(..., gt=0)
    notes: Optional[str] = None


class LedgerResponse(BaseModel):
    """Result of a ledger mutation"""

    transaction: TransactionResponse
    balance_delta: float
    current_balance: Optional[float] = None
    remainder: Optional[TransactionResponse] = None


class DeleteResponse(BaseModel):
    transaction_id: str
    balance_delta: float
    current_balance: Optional[float] = None


class DayBalanceSchema(BaseModel):
    date: date
    opening_balance: float
    closing_balance: float
    total_income: float
    total_expenses: float
    status: Literal["safe", "warning", "danger"]
    transaction_ids: List[str]


class DailyBalancesResponse(BaseModel):
    user_id: str
    start: date
    end: date
    days: List[DayBalanceSchema]


class UpcomingBillSchema(BaseModel):
    transaction_id: str
    name: str
    type: str
    amount: float
    scheduled_date: date
    days_until_due: int
    can_cover: bool
    shortfall: Optional[float] = None


class ShortfallSchema(BaseModel):
    date: date
    amount: float
    bill_name: str


class CoverageResponse(BaseModel):
    user_id: str
    current_balance: float
    total_upcoming: float
    projected_balance: float
    can_cover_all: bool
    upcoming_bills: List[UpcomingBillSchema]
    bills_at_risk: List[UpcomingBillSchema]
    first_shortfall: Optional[ShortfallSchema] = None


class RunwayResponse(BaseModel):
    user_id: str
    days: int
    run_out_date: Optional[date] = None


class CrunchResponse(BaseModel):
    """Both fields are null when no crunch falls inside the horizon"""

    user_id: str
    crunch_date: Optional[date] = None
    shortfall: Optional[float] = None


class HealthResponse(BaseModel):
    user_id: str
    score: int
    grade: str
    color: str
    components: Dict[str, int]
    insights: List[str]
    savings_rate: float
    runway_days: int
    bill_payment_rate: float
    trend: Literal["improving", "stable", "declining"]


class VarianceLineSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    projected: float
    actual: float
    variance: float
    variance_percent: float


class CategoryVarianceSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    projected: float
    actual: float
    variance: float


class VarianceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: date
    end: date
    income: VarianceLineSchema
    expenses: VarianceLineSchema
    by_category: List[CategoryVarianceSchema]


class CategoryTotalSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    total: float
    percentage: float


class CategoryBreakdownResponse(BaseModel):
    user_id: str
    flow: Optional[str] = None
    categories: List[CategoryTotalSchema]


class ForecastPointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    balance: float


class ForecastResponse(BaseModel):
    user_id: str
    points: List[ForecastPointSchema]


class ChartPointSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    key: str
    income: float
    expenses: float
    net: float


class ChartResponse(BaseModel):
    user_id: str
    bucket_type: Literal["daily", "weekly", "monthly"]
    income: float
    expenses: float
    net: float
    transaction_count: int
    completed_count: int
    skipped_count: int
    points: List[ChartPointSchema]


class CreditPayoffRequest(BaseModel):
    """Request body for POST /v1/credit/payoff"""

    current_balance: float = Field(..., ge=0)
    credit_limit: float = Field(0.0, ge=0)
    apr: float = Field(..., ge=0, description="Annual percentage rate, e.g. 24 for 24%")
    minimum_payment_percent: float = Field(..., gt=0, le=100)
    minimum_payment_floor: float = Field(25.0, ge=0)
    minimum_payment_method: Literal["percent_only", "percent_plus_interest"] = "percent_only"
    payment_strategy: Literal["minimum", "fixed", "full_balance"] = "minimum"
    fixed_payment_amount: Optional[float] = Field(None, gt=0)
    due_day: Optional[int] = Field(None, ge=1, le=31)
    principal_paid_so_far: float = 0.0
    interest_paid_so_far: float = 0.0
    start_date: Optional[date] = None


class PayoffScenarioSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    monthly_payment: float
    months_to_payoff: int
    total_interest: float
    total_amount: float
    interest_savings: float
    time_savings_months: int


class CreditPayoffResponse(BaseModel):
    """Null months/totals mean the balance never reaches zero"""

    payoff_date: Optional[date] = None
    payoff_time: str
    months_to_payoff: Optional[float] = None
    years_to_payoff: Optional[float] = None
    total_amount_to_pay: Optional[float] = None
    total_interest_to_pay: Optional[float] = None
    current_monthly_interest: float
    effective_monthly_payment: float
    principal_paid_so_far: float
    interest_paid_so_far: float
    is_minimum_payment_trap: bool
    scenarios: List[PayoffScenarioSchema]


class LoanScheduleRequest(BaseModel):
    """Request body for POST /v1/loans/schedule"""

    principal: float = Field(..., ge=0)
    annual_rate: float = Field(..., ge=0)
    term_months: Optional[int] = Field(None, gt=0, le=600)
    monthly_payment: Optional[float] = Field(None, gt=0)
    start_date: Optional[date] = None


class AmortizationStepSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    payment: float
    principal: float
    interest: float
    remaining_balance: float


class LoanScheduleResponse(BaseModel):
    payment_count: int
    total_paid: float
    total_interest: float
    steps: List[AmortizationStepSchema]


class ReconciliationResponse(BaseModel):
    user_id: str
    current_balance: float
    computed_balance: float
    difference: float
    has_drift: bool
    affected_transaction_count: int
    can_auto_fix: bool


class SummaryResponse(BaseModel):
    user_id: str
    summary: str
