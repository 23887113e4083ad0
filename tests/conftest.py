"""Pytest fixtures for testing"""

import pytest
from datetime import date, timedelta
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from cashflow_core.api.main import create_app
from cashflow_core.infrastructure.database.models import Base
from cashflow_core.infrastructure.database.session import get_db
from cashflow_core.infrastructure.database.repositories import ProfileRepository
from cashflow_core.domain.models import Transaction, UserProfile


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db: Session) -> sessionmaker:
    """Independent sessions on the test database, for work on other threads"""
    return TestingSessionLocal


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def profile(db: Session) -> UserProfile:
    """Persisted profile starting at $1000"""
    created = ProfileRepository(db).create("user_1", initial_balance=1000.0)
    db.commit()
    return created


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for in-memory transactions with sensible defaults"""
    counter = {"n": 0}

    def _make(**overrides) -> Transaction:
        counter["n"] += 1
        fields = {
            "id": f"txn_{counter['n']}",
            "user_id": "user_1",
            "name": "Rent",
            "type": "expense",
            "category": "housing",
            "projected_amount": 100.0,
            "scheduled_date": date(2024, 1, 1),
        }
        fields.update(overrides)
        return Transaction(**fields)

    return _make


@pytest.fixture
def sample_transactions(make_transaction) -> list[Transaction]:
    """A month of salary, rent and groceries around today"""
    base_date = date.today()
    return [
        make_transaction(
            name="Salary",
            type="income",
            category="salary",
            projected_amount=3000.0,
            scheduled_date=base_date - timedelta(days=14),
            status="completed",
            actual_amount=3000.0,
            actual_date=base_date - timedelta(days=14),
        ),
        make_transaction(
            name="Rent",
            type="bill",
            category="housing",
            projected_amount=1200.0,
            scheduled_date=base_date - timedelta(days=10),
            status="completed",
            actual_amount=1200.0,
            actual_date=base_date - timedelta(days=10),
        ),
        make_transaction(
            name="Groceries",
            type="expense",
            category="food",
            projected_amount=150.0,
            scheduled_date=base_date - timedelta(days=3),
            status="completed",
            actual_amount=180.0,
            actual_date=base_date - timedelta(days=3),
        ),
        make_transaction(
            name="Salary",
            type="income",
            category="salary",
            projected_amount=3000.0,
            scheduled_date=base_date + timedelta(days=14),
        ),
        make_transaction(
            name="Electric",
            type="bill",
            category="utilities",
            projected_amount=90.0,
            scheduled_date=base_date + timedelta(days=5),
            status="pending",
        ),
    ]
