"""/v1/transactions - manual entry, listing and ledger state transitions"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from cashflow_core.api.dependencies import get_balance_event_client, get_ledger, get_request_id
from cashflow_core.api.v1.schemas import (
    CompleteRequest,
    DeleteResponse,
    LedgerResponse,
    PartialRequest,
    SkipRequest,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
)
from cashflow_core.domain.ledger import LedgerResult, TransactionLedger
from cashflow_core.domain.models import PaymentBreakdown, Transaction
from cashflow_core.infrastructure.clients.balance_events import BalanceEventClient

router = APIRouter()


def _schedule_balance_event(
    background_tasks: BackgroundTasks,
    client: BalanceEventClient,
    result: LedgerResult,
    operation: str,
    request_id: str,
) -> None:
    """Publish the balance delta after the response is sent, if a webhook is configured"""
    if not client.enabled:
        return
    background_tasks.add_task(
        client.deliver,
        {
            "event": "BALANCE_DELTA",
            "request_id": request_id,
            "transaction_id": result.transaction.id,
            "user_id": result.transaction.user_id,
            "operation": operation,
            "balance_delta": round(result.balance_delta, 2),
            "current_balance": result.current_balance,
        },
    )


def _ledger_response(result: LedgerResult) -> LedgerResponse:
    return LedgerResponse(
        transaction=TransactionResponse.model_validate(result.transaction),
        balance_delta=round(result.balance_delta, 2),
        current_balance=result.current_balance,
        remainder=TransactionResponse.model_validate(result.remainder) if result.remainder else None,
    )


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(request_body: TransactionCreate, ledger: TransactionLedger = Depends(get_ledger)):
    """Manually add a projected or pending transaction"""
    breakdown = request_body.payment_breakdown
    created = ledger.add_transaction(
        Transaction(
            id="",
            user_id=request_body.user_id,
            name=request_body.name,
            type=request_body.type,
            category=request_body.category,
            projected_amount=request_body.projected_amount,
            scheduled_date=request_body.scheduled_date,
            status=request_body.status,
            source_type=request_body.source_type,
            source_id=request_body.source_id,
            notes=request_body.notes,
            payment_breakdown=PaymentBreakdown(**breakdown.model_dump()) if breakdown else None,
        )
    )
    return TransactionResponse.model_validate(created)


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    user_id: str = Query(..., description="User identifier"),
    start: Optional[date] = Query(None, description="Earliest scheduled date (inclusive)"),
    end: Optional[date] = Query(None, description="Latest scheduled date (inclusive)"),
    status: Optional[List[str]] = Query(None, description="Repeatable status filter"),
    type: Optional[str] = Query(None, description="income | expense | bill | loan"),
    source_id: Optional[str] = Query(None),
    ledger: TransactionLedger = Depends(get_ledger),
):
    transactions = ledger.list_transactions(
        user_id,
        start=start,
        end=end,
        statuses=status,
        transaction_type=type,
        source_id=source_id,
    )
    return TransactionListResponse(
        user_id=user_id,
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
    )


@router.post("/transactions/{transaction_id}/complete", response_model=LedgerResponse)
def complete_transaction(
    transaction_id: str,
    request_body: CompleteRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    ledger: TransactionLedger = Depends(get_ledger),
    event_client: BalanceEventClient = Depends(get_balance_event_client),
):
    """
    Mark a transaction completed with its actual amount.

    Resubmitting an already completed/partial transaction only moves the
    balance by the difference from the previous amount.
    """
    result = ledger.complete(
        transaction_id,
        request_body.actual_amount,
        actual_date=request_body.actual_date,
        notes=request_body.notes,
        new_credit_balance=request_body.new_credit_balance,
    )
    _schedule_balance_event(background_tasks, event_client, result, "complete", get_request_id(request))
    return _ledger_response(result)


@router.post("/transactions/{transaction_id}/skip", response_model=LedgerResponse)
def skip_transaction(
    transaction_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    request_body: Optional[SkipRequest] = None,
    ledger: TransactionLedger = Depends(get_ledger),
    event_client: BalanceEventClient = Depends(get_balance_event_client),
):
    result = ledger.skip(transaction_id, notes=request_body.notes if request_body else None)
    _schedule_balance_event(background_tasks, event_client, result, "skip", get_request_id(request))
    return _ledger_response(result)


@router.post("/transactions/{transaction_id}/partial", response_model=LedgerResponse)
def partial_pay_transaction(
    transaction_id: str,
    request_body: PartialRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    ledger: TransactionLedger = Depends(get_ledger),
    event_client: BalanceEventClient = Depends(get_balance_event_client),
):
    """
    Record a partial payment.

    Returns the updated transaction and the pending remainder spawned for
    the unpaid portion.
    """
    result = ledger.partial_pay(transaction_id, request_body.partial_amount, notes=request_body.notes)
    _schedule_balance_event(background_tasks, event_client, result, "partial", get_request_id(request))
    return _ledger_response(result)


@router.delete("/transactions/{transaction_id}", response_model=DeleteResponse)
def delete_transaction(
    transaction_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    ledger: TransactionLedger = Depends(get_ledger),
    event_client: BalanceEventClient = Depends(get_balance_event_client),
):
    result = ledger.delete_transaction(transaction_id)
    if result.balance_delta:
        _schedule_balance_event(background_tasks, event_client, result, "delete", get_request_id(request))
    return DeleteResponse(
        transaction_id=transaction_id,
        balance_delta=round(result.balance_delta, 2),
        current_balance=result.current_balance,
    )
