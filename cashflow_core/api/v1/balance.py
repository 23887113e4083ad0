"""GET /v1/balance/reconciliation and POST /v1/balance/sync"""

from fastapi import APIRouter, Depends, Query

from cashflow_core.api.dependencies import get_reconciler
from cashflow_core.api.v1.schemas import ProfileResponse, ReconciliationResponse
from cashflow_core.domain.ledger import BalanceReconciler

router = APIRouter()


@router.get("/balance/reconciliation", response_model=ReconciliationResponse)
def get_reconciliation(
    user_id: str = Query(..., description="User identifier"),
    reconciler: BalanceReconciler = Depends(get_reconciler),
):
    """Compare the cached balance with initial balance + realized transactions"""
    report = reconciler.generate_report(user_id)
    return ReconciliationResponse(
        user_id=user_id,
        current_balance=report.current_balance,
        computed_balance=round(report.computed_balance, 2),
        difference=round(report.difference, 2),
        has_drift=report.has_drift,
        affected_transaction_count=len(report.affected_transactions),
        can_auto_fix=report.can_auto_fix,
    )


@router.post("/balance/sync", response_model=ProfileResponse)
def sync_balance(
    user_id: str = Query(..., description="User identifier"),
    reconciler: BalanceReconciler = Depends(get_reconciler),
):
    """Recompute and store the authoritative balance, fixing any drift"""
    try:
        profile = reconciler.sync(user_id)
    except Exception:
        reconciler.db.rollback()
        raise
    return ProfileResponse.model_validate(profile)
