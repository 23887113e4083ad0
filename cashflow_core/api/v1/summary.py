"""GET /v1/summary - formatted context for the external budget analysis service"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cashflow_core.api.dependencies import load_user_state
from cashflow_core.api.v1.schemas import SummaryResponse
from cashflow_core.config import settings
from cashflow_core.domain.coverage import get_bill_coverage_report
from cashflow_core.domain.summaries import build_analysis_summary
from cashflow_core.infrastructure.database.repositories import ExpenseRuleRepository, IncomeSourceRepository
from cashflow_core.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    user_id: str = Query(..., description="User identifier"),
    days_ahead: int = Query(settings.bill_coverage_days, ge=1, le=365),
    db: Session = Depends(get_db),
):
    profile, transactions = load_user_state(db, user_id)
    coverage = get_bill_coverage_report(profile.current_balance, transactions, days_ahead)
    summary = build_analysis_summary(
        profile.current_balance,
        transactions,
        IncomeSourceRepository(db).list_by_user(user_id),
        ExpenseRuleRepository(db).list_by_user(user_id),
        coverage,
    )
    return SummaryResponse(user_id=user_id, summary=summary)
