import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from garmin_mcp.core.config import settings
from garmin_mcp.core.db import Base, get_db
from garmin_mcp.main import app
from garmin_mcp.rate_limiters.webhook_rate_limiter import (
    WebhookRateLimiter,
    get_webhook_rate_limiter,
)

TEST_TOKEN = "test-token"


# --- Fixtures ---


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def limiter():
    return WebhookRateLimiter(max_requests=1000, window_seconds=60)


@pytest.fixture
def _wired_app(session_factory, limiter, monkeypatch):
    monkeypatch.setattr(settings, "MCP_API_TOKEN", TEST_TOKEN)
    monkeypatch.setattr(settings, "GARMIN_WEBHOOK_SECRET", None)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_webhook_rate_limiter] = lambda: limiter
    try:
        yield app
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def client(_wired_app):
    """Authenticated client; the lifespan is not run so no file database is touched."""
    return TestClient(_wired_app, headers={"Authorization": f"Bearer {TEST_TOKEN}"})


@pytest.fixture
def anon_client(_wired_app):
    return TestClient(_wired_app)
