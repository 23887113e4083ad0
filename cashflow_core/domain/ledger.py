"""Transaction ledger - state transitions with balance effects, and the balance reconciler

State machine: projected → pending → completed | partial | skipped.
completed and partial are re-enterable: resubmitting reverses the old
effect before applying the new one, so the balance only ever moves by
the difference. There is no path back to projected/pending.

Every mutation is one unit of work against the session (commit on
success, rollback on any error), serialized per transaction id, and
finishes by recomputing the cached balance through BalanceReconciler,
which is the only writer of ``current_balance``.
"""

import logging
import math
import threading
import time
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.orm import Session

from cashflow_core.config import settings
from cashflow_core.domain.balance import generate_reconciliation_report, signed_delta
from cashflow_core.domain.exceptions import InvalidStateError, NotFoundError, ValidationError
from cashflow_core.domain.models import (
    TRANSACTION_TYPES,
    UNREALIZED_STATUSES,
    ExpenseRule,
    ReconciliationReport,
    Transaction,
    UserProfile,
)
from cashflow_core.infrastructure.database.repositories import (
    ExpenseRuleRepository,
    ProfileRepository,
    TransactionRepository,
)
from cashflow_core.infrastructure.observability.logging import log_balance_drift, log_ledger_mutation
from cashflow_core.infrastructure.observability.metrics import balance_drift_counter, record_ledger_mutation
from cashflow_core.utils.date_utils import add_days, parse_date, today

logger = logging.getLogger(__name__)

# Per-transaction-id mutexes, alive only while some caller holds one;
# the registry itself is guarded by _registry_lock
_transaction_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_registry_lock = threading.Lock()


def _lock_for(transaction_id: str) -> threading.Lock:
    with _registry_lock:
        lock = _transaction_locks.get(transaction_id)
        if lock is None:
            lock = threading.Lock()
            _transaction_locks[transaction_id] = lock
        return lock


@dataclass
class LedgerResult:
    """Outcome of a ledger mutation"""

    transaction: Transaction
    balance_delta: float
    current_balance: Optional[float] = None
    remainder: Optional[Transaction] = None


def _validate_amount(value: float, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(f"{field_name} must be a finite number")
    if value < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return float(value)


def _validate_date(value: str | date | None, field_name: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return parse_date(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date, got {value!r}")


def _realized_effect(transaction: Transaction) -> float:
    """Signed effect a transaction currently has on the balance"""
    if transaction.is_realized and transaction.actual_amount is not None:
        return signed_delta(transaction.type, transaction.actual_amount)
    return 0.0


class BalanceReconciler:
    """Recomputes the cached balance from initial balance + realized transactions"""

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.transactions = TransactionRepository(db)

    def generate_report(self, user_id: str) -> ReconciliationReport:
        profile = self.profiles.get(user_id)
        return generate_reconciliation_report(profile, self.transactions.list(user_id=user_id))

    def sync(self, user_id: str, commit: bool = True) -> UserProfile:
        """
        Store the authoritative balance on the profile.

        Disagreement with the previously cached value is counted and
        logged as drift, then overwritten. Pass ``commit=False`` to join
        the caller's unit of work.
        """
        report = self.generate_report(user_id)
        if report.has_drift:
            balance_drift_counter.inc()
            log_balance_drift(user_id, report.current_balance, report.computed_balance)

        profile = self.profiles.store_current_balance(user_id, round(report.computed_balance, 2), today())
        if commit:
            self.db.commit()
        return profile


class TransactionLedger:
    """CRUD with business rules over transaction records"""

    def __init__(self, db: Session, remainder_offset_days: int | None = None):
        self.db = db
        self.transactions = TransactionRepository(db)
        self.rules = ExpenseRuleRepository(db)
        self.reconciler = BalanceReconciler(db)
        self.remainder_offset_days = (
            settings.remainder_offset_days if remainder_offset_days is None else remainder_offset_days
        )

    @contextmanager
    def _unit_of_work(self, transaction_id: str) -> Iterator[None]:
        """Serialize on the transaction id and commit or roll back as one unit"""
        lock = _lock_for(transaction_id)
        with lock:
            try:
                yield
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

    def _finish(
        self,
        operation: str,
        transaction: Transaction,
        balance_delta: float,
        started: float,
        sync_balance: bool = True,
    ) -> Optional[float]:
        current_balance = None
        if sync_balance:
            current_balance = self.reconciler.sync(transaction.user_id, commit=False).current_balance
        record_ledger_mutation(operation)
        log_ledger_mutation(
            transaction_id=transaction.id,
            user_id=transaction.user_id,
            operation=operation,
            balance_delta=balance_delta,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return current_balance

    def _delete_pending_remainders(self, transaction_id: str) -> int:
        remainders = self.transactions.list(parent_transaction_id=transaction_id, statuses=["pending"])
        return self.transactions.delete_many(t.id for t in remainders)

    def _source_rule(self, transaction: Transaction) -> Optional[ExpenseRule]:
        if transaction.source_type != "expense_rule" or not transaction.source_id:
            return None
        try:
            return self.rules.get(transaction.source_id)
        except NotFoundError:
            logger.warning(
                "Source rule missing, payoff progress not updated",
                extra={"transaction_id": transaction.id, "rule_id": transaction.source_id},
            )
            return None

    def _apply_rule_progress(
        self,
        transaction: Transaction,
        progress_recorded: bool,
        new_credit_balance: Optional[float],
    ) -> None:
        rule = self._source_rule(transaction)
        if rule is None:
            return

        # Loan/installment progress counts a completed payment once, not per resubmission
        if not progress_recorded:
            if rule.loan_config and transaction.payment_breakdown:
                self.rules.update_loan_balance(rule.id, transaction.payment_breakdown.principal_paid)
            elif rule.installment_config:
                self.rules.update_installment_progress(rule.id)

        if new_credit_balance is not None:
            if not rule.credit_config:
                raise InvalidStateError(f"Expense rule {rule.id} has no credit configuration")
            self.rules.update_credit_balance(rule.id, _validate_amount(new_credit_balance, "new_credit_balance"))

    def _revert_rule_progress(self, transaction: Transaction) -> None:
        """Withdraw the loan/installment progress a completed transaction recorded"""
        if transaction.status != "completed":
            return
        rule = self._source_rule(transaction)
        if rule is None:
            return

        if rule.loan_config and transaction.payment_breakdown:
            self.rules.revert_loan_payment(rule.id, transaction.payment_breakdown.principal_paid)
        elif rule.installment_config:
            self.rules.revert_installment_progress(rule.id)

    def complete(
        self,
        transaction_id: str,
        actual_amount: float,
        actual_date: str | date | None = None,
        notes: Optional[str] = None,
        new_credit_balance: Optional[float] = None,
    ) -> LedgerResult:
        """
        Mark a transaction completed with its realized amount.

        Requirements:
        - Resubmitting a completed/partial transaction moves the balance by
          (new - old) signed by type, never by the full new amount
        - variance = actual_amount - projected_amount
        - actual_date defaults to the scheduled date
        - Completing a partial transaction drops its pending remainder
        - The first completion of a loan-rule transaction decrements the loan
          balance by the principal paid; installment rules count one payment

        Raises:
            NotFoundError: unknown transaction id
            ValidationError: negative/non-finite amount or malformed date
        """
        amount = _validate_amount(actual_amount, "actual_amount")
        parsed_date = _validate_date(actual_date, "actual_date")
        started = time.perf_counter()

        with self._unit_of_work(transaction_id):
            txn = self.transactions.get_for_update(transaction_id)
            progress_recorded = txn.status == "completed"

            if txn.status == "partial":
                self._delete_pending_remainders(txn.id)

            balance_delta = signed_delta(txn.type, amount) - _realized_effect(txn)

            updated = self.transactions.update(
                txn.id,
                status="completed",
                actual_amount=amount,
                actual_date=parsed_date or txn.scheduled_date,
                variance=round(amount - txn.projected_amount, 2),
                completed_at=datetime.now(timezone.utc),
                notes=notes or txn.notes,
            )
            self._apply_rule_progress(updated, progress_recorded, new_credit_balance)
            current_balance = self._finish("complete", updated, balance_delta, started)

        return LedgerResult(transaction=updated, balance_delta=balance_delta, current_balance=current_balance)

    def skip(self, transaction_id: str, notes: Optional[str] = None) -> LedgerResult:
        """
        Mark a transaction skipped.

        Skipping a projected/pending transaction has no balance effect.
        Skipping a previously realized one withdraws its effect along with
        the realized fields, any pending remainder and the loan/installment
        progress a completion recorded.
        """
        started = time.perf_counter()

        with self._unit_of_work(transaction_id):
            txn = self.transactions.get_for_update(transaction_id)
            balance_delta = -_realized_effect(txn)

            self._revert_rule_progress(txn)
            if txn.status == "partial":
                self._delete_pending_remainders(txn.id)

            updated = self.transactions.update(
                txn.id,
                status="skipped",
                actual_amount=None,
                actual_date=None,
                variance=None,
                completed_at=None,
                notes=notes or txn.notes,
            )
            current_balance = self._finish(
                "skip", updated, balance_delta, started, sync_balance=balance_delta != 0
            )

        return LedgerResult(transaction=updated, balance_delta=balance_delta, current_balance=current_balance)

    def partial_pay(self, transaction_id: str, partial_amount: float, notes: Optional[str] = None) -> LedgerResult:
        """
        Record a partial payment and spawn a pending remainder.

        Requirements:
        - 0 < partial_amount < projected_amount
        - Resubmission reverses the previous effect and deletes the
          previously spawned pending remainder before reapplying
        - Remainder: projected_amount - partial_amount, scheduled
          ``remainder_offset_days`` after the original date, status
          pending, linked through parent_transaction_id

        Example:
            projected 100 on 2024-01-01, partial_pay(id, 40)
            → remainder of 60 pending on 2024-01-08

        Returns: LedgerResult whose ``remainder`` is the new remainder transaction
        """
        amount = _validate_amount(partial_amount, "partial_amount")
        started = time.perf_counter()

        with self._unit_of_work(transaction_id):
            txn = self.transactions.get_for_update(transaction_id)
            if txn.status == "skipped":
                raise InvalidStateError(f"Transaction {txn.id} was skipped and cannot be partially paid")
            if not 0 < amount < txn.projected_amount:
                raise ValidationError(
                    f"partial_amount must be between 0 and {txn.projected_amount:.2f} (exclusive)"
                )

            self._delete_pending_remainders(txn.id)
            balance_delta = signed_delta(txn.type, amount) - _realized_effect(txn)

            updated = self.transactions.update(
                txn.id,
                status="partial",
                actual_amount=amount,
                variance=round(amount - txn.projected_amount, 2),
                completed_at=datetime.now(timezone.utc),
                notes=notes or txn.notes,
            )
            remainder = self.transactions.create(
                Transaction(
                    id="",
                    user_id=txn.user_id,
                    name=f"{txn.name} (Remainder)",
                    type=txn.type,
                    category=txn.category,
                    projected_amount=round(txn.projected_amount - amount, 2),
                    scheduled_date=add_days(txn.scheduled_date, self.remainder_offset_days),
                    status="pending",
                    source_type=txn.source_type,
                    source_id=txn.source_id,
                    parent_transaction_id=txn.id,
                )
            )
            current_balance = self._finish("partial", updated, balance_delta, started)

        return LedgerResult(
            transaction=updated,
            balance_delta=balance_delta,
            current_balance=current_balance,
            remainder=remainder,
        )

    def add_transaction(self, transaction: Transaction) -> Transaction:
        """Manual entry of a not-yet-realized transaction for an existing profile"""
        if transaction.type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type: {transaction.type}")
        if transaction.status not in UNREALIZED_STATUSES:
            raise ValidationError("New transactions must start as projected or pending")
        amount = _validate_amount(transaction.projected_amount, "projected_amount")
        scheduled = _validate_date(transaction.scheduled_date, "scheduled_date")
        if not self.reconciler.profiles.exists(transaction.user_id):
            raise NotFoundError("Profile", transaction.user_id)
        started = time.perf_counter()

        try:
            created = self.transactions.create(
                replace(transaction, projected_amount=amount, scheduled_date=scheduled)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self._finish("create", created, 0.0, started, sync_balance=False)
        return created

    def delete_transaction(self, transaction_id: str) -> LedgerResult:
        """Explicit user delete; removes pending remainders, any realized effect and rule progress"""
        started = time.perf_counter()

        with self._unit_of_work(transaction_id):
            txn = self.transactions.get_for_update(transaction_id)
            balance_delta = -_realized_effect(txn)
            self._delete_pending_remainders(txn.id)
            self._revert_rule_progress(txn)
            self.transactions.delete(txn.id)
            current_balance = self._finish(
                "delete", txn, balance_delta, started, sync_balance=balance_delta != 0
            )

        return LedgerResult(transaction=txn, balance_delta=balance_delta, current_balance=current_balance)

    def delete_by_source(self, source_id: str, statuses: Iterable[str] = UNREALIZED_STATUSES) -> int:
        """
        Cascade for a deleted income source / expense rule; returns the number removed.

        Only not-yet-realized transactions go by default, so completed and
        partial history (and the balance built on it) survives the rule.
        """
        try:
            doomed = self.transactions.list(source_id=source_id, statuses=list(statuses))
            realized_users = {t.user_id for t in doomed if t.is_realized}
            count = self.transactions.delete_many(t.id for t in doomed)
            for user_id in realized_users:
                if self.reconciler.profiles.exists(user_id):
                    self.reconciler.sync(user_id, commit=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        record_ledger_mutation("delete")
        logger.info("Deleted transactions for source", extra={"source_id": source_id, "count": count})
        return count

    def list_transactions(
        self,
        user_id: str,
        start: str | date | None = None,
        end: str | date | None = None,
        statuses: Optional[List[str]] = None,
        transaction_type: Optional[str] = None,
        source_id: Optional[str] = None,
    ) -> List[Transaction]:
        return self.transactions.list(
            user_id=user_id,
            start=_validate_date(start, "start"),
            end=_validate_date(end, "end"),
            statuses=statuses,
            transaction_type=transaction_type,
            source_id=source_id,
        )
