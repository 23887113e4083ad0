"""Data access layer translating ORM rows to and from domain dataclasses"""

from dataclasses import asdict
from datetime import date
from typing import Any, Iterable, List, Optional
from sqlalchemy.orm import Session
from cashflow_core.domain.exceptions import InvalidStateError, NotFoundError
from cashflow_core.domain.models import (
    CreditConfig,
    ExpenseRule,
    IncomeSource,
    InstallmentConfig,
    LoanConfig,
    PaymentBreakdown,
    Transaction,
    UserProfile,
)
from cashflow_core.infrastructure.database.models import (
    ExpenseRuleRecord,
    IncomeSourceRecord,
    Profile,
    TransactionRecord,
    new_id,
)

# Transaction fields the ledger may change after creation
TRANSACTION_MUTABLE_FIELDS = frozenset(
    {
        "status",
        "actual_amount",
        "actual_date",
        "variance",
        "completed_at",
        "notes",
        "projected_amount",
    }
)

LOAN_PAID_OFF_EPSILON = 0.01


def _transaction_to_domain(row: TransactionRecord) -> Transaction:
    breakdown = row.payment_breakdown
    return Transaction(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        type=row.type,
        category=row.category,
        projected_amount=row.projected_amount,
        scheduled_date=row.scheduled_date,
        status=row.status,
        source_type=row.source_type,
        source_id=row.source_id,
        actual_amount=row.actual_amount,
        actual_date=row.actual_date,
        variance=row.variance,
        completed_at=row.completed_at,
        notes=row.notes,
        parent_transaction_id=row.parent_transaction_id,
        payment_breakdown=PaymentBreakdown(**breakdown) if breakdown else None,
    )


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, transaction_id: str, for_update: bool = False) -> TransactionRecord:
        query = self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id)
        if for_update:
            # SELECT ... FOR UPDATE; dialects without row locks (SQLite) omit the clause
            query = query.with_for_update()
        row = query.first()
        if row is None:
            raise NotFoundError("Transaction", transaction_id)
        return row

    def get(self, transaction_id: str) -> Transaction:
        return _transaction_to_domain(self._row(transaction_id))

    def get_for_update(self, transaction_id: str) -> Transaction:
        """Fetch and row-lock a transaction for a read-modify-write"""
        return _transaction_to_domain(self._row(transaction_id, for_update=True))

    def create(self, transaction: Transaction) -> Transaction:
        """Insert a transaction; a blank id gets a fresh UUID"""
        row = TransactionRecord(
            id=transaction.id or new_id(),
            user_id=transaction.user_id,
            name=transaction.name,
            type=transaction.type,
            category=transaction.category,
            projected_amount=transaction.projected_amount,
            scheduled_date=transaction.scheduled_date,
            status=transaction.status,
            source_type=transaction.source_type,
            source_id=transaction.source_id,
            actual_amount=transaction.actual_amount,
            actual_date=transaction.actual_date,
            variance=transaction.variance,
            completed_at=transaction.completed_at,
            notes=transaction.notes,
            parent_transaction_id=transaction.parent_transaction_id,
            payment_breakdown=asdict(transaction.payment_breakdown) if transaction.payment_breakdown else None,
        )
        self.db.add(row)
        self.db.flush()  # Get ID without committing
        return _transaction_to_domain(row)

    def update(self, transaction_id: str, **changes: Any) -> Transaction:
        """Apply field changes to an existing transaction"""
        unknown = set(changes) - TRANSACTION_MUTABLE_FIELDS
        if unknown:
            raise InvalidStateError(f"Cannot update transaction fields: {', '.join(sorted(unknown))}")

        row = self._row(transaction_id)
        for field_name, value in changes.items():
            setattr(row, field_name, value)
        self.db.flush()
        return _transaction_to_domain(row)

    def delete(self, transaction_id: str) -> None:
        self.db.delete(self._row(transaction_id))
        self.db.flush()

    def delete_many(self, transaction_ids: Iterable[str]) -> int:
        ids = list(transaction_ids)
        if not ids:
            return 0
        count = (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.id.in_(ids))
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count

    def list(
        self,
        user_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        statuses: Optional[Iterable[str]] = None,
        transaction_type: Optional[str] = None,
        source_id: Optional[str] = None,
        parent_transaction_id: Optional[str] = None,
    ) -> List[Transaction]:
        """Filtered listing ordered by scheduled date"""
        query = self.db.query(TransactionRecord)
        if user_id is not None:
            query = query.filter(TransactionRecord.user_id == user_id)
        if start is not None:
            query = query.filter(TransactionRecord.scheduled_date >= start)
        if end is not None:
            query = query.filter(TransactionRecord.scheduled_date <= end)
        if statuses is not None:
            query = query.filter(TransactionRecord.status.in_(list(statuses)))
        if transaction_type is not None:
            query = query.filter(TransactionRecord.type == transaction_type)
        if source_id is not None:
            query = query.filter(TransactionRecord.source_id == source_id)
        if parent_transaction_id is not None:
            query = query.filter(TransactionRecord.parent_transaction_id == parent_transaction_id)

        rows = query.order_by(TransactionRecord.scheduled_date, TransactionRecord.created_at).all()
        return [_transaction_to_domain(row) for row in rows]


def _rule_to_domain(row: ExpenseRuleRecord) -> ExpenseRule:
    return ExpenseRule(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        category=row.category,
        amount=row.amount,
        frequency=row.frequency,
        is_active=row.is_active,
        loan_config=LoanConfig(**row.loan_config) if row.loan_config else None,
        credit_config=CreditConfig(**row.credit_config) if row.credit_config else None,
        installment_config=InstallmentConfig(**row.installment_config) if row.installment_config else None,
    )


class ExpenseRuleRepository:
    """Repository for recurring expense rules and their payoff progress"""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, rule_id: str) -> ExpenseRuleRecord:
        row = self.db.query(ExpenseRuleRecord).filter(ExpenseRuleRecord.id == rule_id).first()
        if row is None:
            raise NotFoundError("Expense rule", rule_id)
        return row

    def get(self, rule_id: str) -> ExpenseRule:
        return _rule_to_domain(self._row(rule_id))

    def create(self, rule: ExpenseRule) -> ExpenseRule:
        row = ExpenseRuleRecord(
            id=rule.id or new_id(),
            user_id=rule.user_id,
            name=rule.name,
            category=rule.category,
            amount=rule.amount,
            frequency=rule.frequency,
            is_active=rule.is_active,
            loan_config=asdict(rule.loan_config) if rule.loan_config else None,
            credit_config=asdict(rule.credit_config) if rule.credit_config else None,
            installment_config=asdict(rule.installment_config) if rule.installment_config else None,
        )
        self.db.add(row)
        self.db.flush()
        return _rule_to_domain(row)

    def list_by_user(self, user_id: str, active_only: bool = False) -> List[ExpenseRule]:
        query = self.db.query(ExpenseRuleRecord).filter(ExpenseRuleRecord.user_id == user_id)
        if active_only:
            query = query.filter(ExpenseRuleRecord.is_active.is_(True))
        return [_rule_to_domain(row) for row in query.order_by(ExpenseRuleRecord.name).all()]

    def update_loan_balance(self, rule_id: str, principal_paid: float) -> ExpenseRule:
        """
        Record a loan payment against the rule.

        Decrements current_balance by the principal portion (floored at 0),
        increments payments_made, and deactivates the rule once paid off.
        """
        row = self._row(rule_id)
        if not row.loan_config:
            raise InvalidStateError(f"Expense rule {rule_id} has no loan configuration")

        loan = dict(row.loan_config)
        loan["current_balance"] = max(0.0, loan["current_balance"] - principal_paid)
        loan["payments_made"] = loan.get("payments_made", 0) + 1
        # Reassign so the JSON column is marked dirty
        row.loan_config = loan
        if loan["current_balance"] <= LOAN_PAID_OFF_EPSILON:
            row.is_active = False

        self.db.flush()
        return _rule_to_domain(row)

    def revert_loan_payment(self, rule_id: str, principal_paid: float) -> ExpenseRule:
        """Undo update_loan_balance: restore the principal (capped at the original) and reactivate"""
        row = self._row(rule_id)
        if not row.loan_config:
            raise InvalidStateError(f"Expense rule {rule_id} has no loan configuration")

        loan = dict(row.loan_config)
        loan["current_balance"] = min(loan["principal"], loan["current_balance"] + principal_paid)
        loan["payments_made"] = max(0, loan.get("payments_made", 0) - 1)
        row.loan_config = loan
        if loan["current_balance"] > LOAN_PAID_OFF_EPSILON:
            row.is_active = True

        self.db.flush()
        return _rule_to_domain(row)

    def update_credit_balance(self, rule_id: str, new_balance: float) -> ExpenseRule:
        """Store the caller-supplied statement balance on a credit rule"""
        row = self._row(rule_id)
        if not row.credit_config:
            raise InvalidStateError(f"Expense rule {rule_id} has no credit configuration")

        credit = dict(row.credit_config)
        credit["current_balance"] = new_balance
        row.credit_config = credit
        self.db.flush()
        return _rule_to_domain(row)

    def update_installment_progress(self, rule_id: str) -> ExpenseRule:
        """Count one more installment paid; deactivate after the last one"""
        row = self._row(rule_id)
        if not row.installment_config:
            raise InvalidStateError(f"Expense rule {rule_id} has no installment configuration")

        installment = dict(row.installment_config)
        installment["installments_paid"] = installment.get("installments_paid", 0) + 1
        row.installment_config = installment
        if installment["installments_paid"] >= installment["installment_count"]:
            row.is_active = False

        self.db.flush()
        return _rule_to_domain(row)

    def revert_installment_progress(self, rule_id: str) -> ExpenseRule:
        row = self._row(rule_id)
        if not row.installment_config:
            raise InvalidStateError(f"Expense rule {rule_id} has no installment configuration")

        installment = dict(row.installment_config)
        installment["installments_paid"] = max(0, installment.get("installments_paid", 0) - 1)
        row.installment_config = installment
        if installment["installments_paid"] < installment["installment_count"]:
            row.is_active = True

        self.db.flush()
        return _rule_to_domain(row)


def _source_to_domain(row: IncomeSourceRecord) -> IncomeSource:
    return IncomeSource(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        category=row.category,
        amount=row.amount,
        frequency=row.frequency,
        is_active=row.is_active,
        is_variable_amount=row.is_variable_amount,
    )


class IncomeSourceRepository:
    """Repository for recurring income sources"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, source_id: str) -> IncomeSource:
        row = self.db.query(IncomeSourceRecord).filter(IncomeSourceRecord.id == source_id).first()
        if row is None:
            raise NotFoundError("Income source", source_id)
        return _source_to_domain(row)

    def create(self, source: IncomeSource) -> IncomeSource:
        row = IncomeSourceRecord(
            id=source.id or new_id(),
            user_id=source.user_id,
            name=source.name,
            category=source.category,
            amount=source.amount,
            frequency=source.frequency,
            is_active=source.is_active,
            is_variable_amount=source.is_variable_amount,
        )
        self.db.add(row)
        self.db.flush()
        return _source_to_domain(row)

    def list_by_user(self, user_id: str, active_only: bool = False) -> List[IncomeSource]:
        query = self.db.query(IncomeSourceRecord).filter(IncomeSourceRecord.user_id == user_id)
        if active_only:
            query = query.filter(IncomeSourceRecord.is_active.is_(True))
        return [_source_to_domain(row) for row in query.order_by(IncomeSourceRecord.name).all()]


def _profile_to_domain(row: Profile) -> UserProfile:
    return UserProfile(
        user_id=row.user_id,
        initial_balance=row.initial_balance,
        current_balance=row.current_balance,
        balance_last_updated_at=row.balance_last_updated_at,
        warning_threshold=row.warning_threshold,
    )


class ProfileRepository:
    """Repository for user profiles (balance aspect)"""

    def __init__(self, db: Session):
        self.db = db

    def _row(self, user_id: str, for_update: bool = False) -> Profile:
        query = self.db.query(Profile).filter(Profile.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        row = query.first()
        if row is None:
            raise NotFoundError("Profile", user_id)
        return row

    def get(self, user_id: str) -> UserProfile:
        return _profile_to_domain(self._row(user_id))

    def exists(self, user_id: str) -> bool:
        return self.db.query(Profile.user_id).filter(Profile.user_id == user_id).first() is not None

    def create(self, user_id: str, initial_balance: float, warning_threshold: float = 500.0) -> UserProfile:
        """New profile: the cached balance starts at the initial balance"""
        if self.exists(user_id):
            raise InvalidStateError(f"Profile {user_id} already exists")

        row = Profile(
            user_id=user_id,
            initial_balance=initial_balance,
            current_balance=initial_balance,
            warning_threshold=warning_threshold,
        )
        self.db.add(row)
        self.db.flush()
        return _profile_to_domain(row)

    def store_current_balance(self, user_id: str, balance: float, as_of: date) -> UserProfile:
        """Persist a recomputed balance; only the reconciler calls this"""
        row = self._row(user_id, for_update=True)
        row.current_balance = balance
        row.balance_last_updated_at = as_of
        self.db.flush()
        return _profile_to_domain(row)