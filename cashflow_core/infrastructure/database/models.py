"""SQLAlchemy ORM models for profiles, transactions and recurring rules"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Date, Integer, Text, JSON
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """Balance aspect of a user profile; current_balance is a cached view"""

    __tablename__ = "profile"

    user_id = Column(Text, primary_key=True)
    initial_balance = Column(Float, nullable=False, default=0.0)
    current_balance = Column(Float, nullable=False, default=0.0)
    balance_last_updated_at = Column(Date, nullable=True)
    warning_threshold = Column(Float, nullable=False, default=500.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TransactionRecord(Base):
    """Scheduled or realized cash movement"""

    __tablename__ = "transaction"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(String(16), nullable=False)
    category = Column(Text, nullable=False, default="other")
    projected_amount = Column(Float, nullable=False)
    scheduled_date = Column(Date, nullable=False, index=True)
    status = Column(String(16), nullable=False, default="projected", index=True)
    source_type = Column(String(16), nullable=False, default="manual")
    source_id = Column(String(36), nullable=True, index=True)
    actual_amount = Column(Float, nullable=True)
    actual_date = Column(Date, nullable=True)
    variance = Column(Float, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    parent_transaction_id = Column(String(36), nullable=True, index=True)
    payment_breakdown = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ExpenseRuleRecord(Base):
    """Recurring expense template with optional loan/credit/installment config"""

    __tablename__ = "expense_rule"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="other")
    amount = Column(Float, nullable=False)
    frequency = Column(String(16), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    loan_config = Column(JSON, nullable=True)
    credit_config = Column(JSON, nullable=True)
    installment_config = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class IncomeSourceRecord(Base):
    """Recurring income template"""

    __tablename__ = "income_source"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False, default="salary")
    amount = Column(Float, nullable=False)
    frequency = Column(String(16), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_variable_amount = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
