"""Pytest fixtures for testing"""

import os
from datetime import datetime
from typing import Generator

# Keep the default PostgreSQL URL away from test runs
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from bank_api.api.dependencies import get_clock
from bank_api.api.main import create_app
from bank_api.domain.models import Account
from bank_api.infrastructure.database.models import Base
from bank_api.infrastructure.database.session import get_db

from fakes import DAYTIME, FakeAccountStore, FakeTransactionStore, make_account


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def account() -> Account:
    return make_account()


@pytest.fixture
def account_store(account: Account) -> FakeAccountStore:
    return FakeAccountStore([account])


@pytest.fixture
def transaction_store() -> FakeTransactionStore:
    return FakeTransactionStore()


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
def clock_time() -> datetime:
    """Instant returned by the API clock; override in a test module to change it"""
    return DAYTIME


@pytest.fixture
def client(db: Session, clock_time: datetime) -> TestClient:
    """Create FastAPI test client with test database and a fixed clock"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: (lambda: clock_time)
    return TestClient(app)


@pytest.fixture
def session_factory() -> sessionmaker:
    """Factory for extra sessions against the test database"""
    return TestingSessionLocal
