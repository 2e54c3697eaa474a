"""Pytest configuration and fixtures."""

import os

# Must be set before festbar modules read their settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("MASTER_PASSWORD", "test-master-password")
os.environ.setdefault("FIREBASE_CREDENTIALS_PATH", "")

import pytest
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from festbar.db.base import Base
from festbar.db.session import get_db
import festbar.main as festbar_main
from festbar.main import app
# Import all models to ensure they're registered with Base.metadata
from festbar.models import *
from festbar.services.cart_session_service import cart_sessions
from festbar.services.menu_service import MenuService
from festbar.services.settings_service import SettingsService

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_PIN = "4711"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a test database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session, session_factory, monkeypatch) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    # WebSockets and lifespan tasks open their own short-lived sessions
    monkeypatch.setattr(festbar_main, "SessionLocal", session_factory)

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiter during tests to avoid flaky failures
    from festbar.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def clear_cart_sessions():
    """Cart sessions live in process memory; start every test empty."""
    cart_sessions.clear()
    yield
    cart_sessions.clear()


@pytest.fixture
def menu(db_session: Session) -> dict:
    """A small drinks menu plus the empty glasses."""
    MenuService(db_session).seed_glasses()
    items = [
        MenuItem(item_id="pils", name="Pils", unit_price=Decimal("3.00"), category="bier"),
        MenuItem(item_id="cola", name="Cola", unit_price=Decimal("2.50"), category="softdrinks"),
        MenuItem(
            item_id="flasche-wein-blanc",
            name="Flasche Blanc de noir",
            unit_price=Decimal("20.00"),
            category="wein",
            glass_type="wine",
            requires_glass_prompt=True,
        ),
        MenuItem(
            item_id="flasche-sekt",
            name="Flasche Sekt",
            unit_price=Decimal("22.00"),
            category="wein",
            glass_type="sekt",
            requires_glass_prompt=True,
        ),
        MenuItem(
            item_id="radler",
            name="Radler",
            unit_price=Decimal("3.50"),
            category="bier",
            is_sold_out=True,
        ),
    ]
    db_session.add_all(items)
    db_session.commit()
    return {item.item_id: item for item in items}


@pytest.fixture
def admin_pin(db_session: Session) -> str:
    """Configure the admin PIN."""
    SettingsService(db_session).set_admin_pin(TEST_PIN)
    return TEST_PIN


@pytest.fixture
def pin_headers(admin_pin: str) -> dict:
    return {"X-Admin-Pin": admin_pin}
