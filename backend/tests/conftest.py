"""Shared test fixtures for all test modules."""

import contextlib

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import storefront.models  # noqa: F401
from storefront.core import database as db_module
from storefront.core.config import settings
from storefront.core.database import Base, get_db
from storefront.core.rate_limiter import validation_rate_limiter
from storefront.core.tenancy import StoreScope
from storefront.models.shared import DEFAULT_STORE_ID
from storefront.models.store import Store
from storefront.repositories.admin_token_repository import AdminTokenRepository

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

TEST_ASSET_SECRET = "test-asset-signing-secret"


def _seed_default_store(session: Session) -> None:
    """Insert the default store used by all tests."""
    store = session.query(Store).filter(Store.id == DEFAULT_STORE_ID).first()
    if store is None:
        session.add(Store(id=DEFAULT_STORE_ID, name="Default Test Store", currency="USD"))
        session.commit()


@pytest.fixture(autouse=True)
def setup_database(monkeypatch):
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database, and points the tenant fallback at the
    default store.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    monkeypatch.setattr(settings, "STORE_ID", str(DEFAULT_STORE_ID))
    monkeypatch.setattr(settings, "ASSET_SIGNING_SECRET", TEST_ASSET_SECRET)
    monkeypatch.setattr(settings, "SMTP_HOST", "")
    validation_rate_limiter.reset()

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed_default_store(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    validation_rate_limiter.reset()
    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct repository and service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def default_store_id():
    return DEFAULT_STORE_ID


@pytest.fixture
def scope(db_session: Session) -> StoreScope:
    """Store scope bound to the default store."""
    return StoreScope(db_session, DEFAULT_STORE_ID)


@pytest.fixture
def second_store(db_session: Session) -> Store:
    store = Store(name="Second Store", currency="EUR")
    db_session.add(store)
    db_session.commit()
    db_session.refresh(store)
    return store


@pytest.fixture
def admin_token(scope: StoreScope) -> str:
    """Raw admin bearer token for the default store."""
    _, raw_token = AdminTokenRepository(scope).create(name="Test Admin")
    return raw_token


@pytest.fixture
def client() -> TestClient:
    from storefront.main import app

    return TestClient(app)


@pytest.fixture
def admin_client(client: TestClient, admin_token: str) -> TestClient:
    client.headers["Authorization"] = f"Bearer {admin_token}"
    return client
