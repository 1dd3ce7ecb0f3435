"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from credit_ledger.core import database as db_module
from credit_ledger.core.database import Base, get_db
from credit_ledger.models.credit import Credit
from credit_ledger.schemas.actor import Actor
from credit_ledger.schemas.credit import CreditCreate
from credit_ledger.services.credit_service import CreditService

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known default store ID used across all tests
DEFAULT_STORE_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OTHER_STORE_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

CASHIER = Actor(user_id="u-1", user_name="Ana Cajera")
MANAGER = Actor(user_id="u-2", user_name="Luis Gerente")


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct service and repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def default_store_id():
    """Return the default store ID for tests."""
    return DEFAULT_STORE_ID


@pytest.fixture
def actor():
    return CASHIER


@pytest.fixture
def make_credit(db_session):
    """Factory creating a committed credit in the default store."""
    counter = {"n": 0}

    def _make(
        total: str = "100000",
        client_id: str = "client-1",
        client_name: str = "Maria Lopez",
        sale_id: str | None = None,
        due_date: date | None = None,
        store_id: uuid.UUID = DEFAULT_STORE_ID,
        invoice_number: str | None = None,
    ) -> Credit:
        counter["n"] += 1
        data = CreditCreate(
            sale_id=sale_id,
            client_id=client_id,
            client_name=client_name,
            invoice_number=invoice_number or f"FAC-{counter['n']:05d}",
            total_amount=Decimal(total),
            due_date=due_date,
        )
        return CreditService(db_session).create_credit(store_id, data, CASHIER)

    return _make
