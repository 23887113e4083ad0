"""Dependency injection for FastAPI endpoints"""

from typing import List, Tuple

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cashflow_core.domain.ledger import BalanceReconciler, TransactionLedger
from cashflow_core.domain.models import Transaction, UserProfile
from cashflow_core.infrastructure.clients.balance_events import BalanceEventClient
from cashflow_core.infrastructure.database.repositories import ProfileRepository, TransactionRepository
from cashflow_core.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_balance_event_client() -> BalanceEventClient:
    """Provide balance webhook client instance"""
    return BalanceEventClient()


def get_ledger(db: Session = Depends(get_db)) -> TransactionLedger:
    return TransactionLedger(db)


def get_reconciler(db: Session = Depends(get_db)) -> BalanceReconciler:
    return BalanceReconciler(db)


def load_user_state(db: Session, user_id: str) -> Tuple[UserProfile, List[Transaction]]:
    """Profile plus the user's full transaction set; raises NotFoundError for an unknown user"""
    profile = ProfileRepository(db).get(user_id)
    return profile, TransactionRepository(db).list(user_id=user_id)
