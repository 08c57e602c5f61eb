"""
Pytest configuration and shared fixtures for the Virtual Armory backend.
"""
import os
import sys
from datetime import timedelta
from pathlib import Path

# Test mode must be set before settings are imported
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("STRIPE_SECRET_KEY", "")
os.environ.setdefault("RESEND_API_KEY", "")

# Ensure backend package is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
sys.path.insert(0, str(Path(__file__).resolve().parent))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from armory.core.database import Base, get_db, utcnow
from armory.core.metrics import error_metrics
from armory.core.rate_limit import limiter, webhook_limiter
from armory.core.templates import get_renderer
from armory.core.webhook_monitor import webhook_monitor
from armory.main import app
from armory.services import tier_policy
from armory.services.catalog_seed import seed_catalogs
from armory.services.mail_service import get_mailer

from support import RecordingMailer, RecordingRenderer, make_user


@pytest.fixture(autouse=True)
def reset_process_state():
    """Limiters and in-process counters are module globals"""
    limiter.reset()
    webhook_limiter.reset()
    webhook_monitor.reset()
    error_metrics.reset()
    yield
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db():
    """
    Fresh in-memory SQLite database for each test, with the catalogs seeded.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    seed_catalogs(session)

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def client(db, mailer, renderer):
    """TestClient wired to the test database, a recording mailer and renderer.

    Not entered as a context manager, so the application lifespan (file
    database, startup seed) never runs.
    """

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_renderer] = lambda: renderer

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def free_user(db):
    return make_user(db, email="free@example.com")


@pytest.fixture
def monthly_user(db):
    return make_user(
        db, email="monthly@example.com", tier=tier_policy.MONTHLY, expires_at=utcnow() + timedelta(days=20)
    )


@pytest.fixture
def admin_user(db):
    return make_user(db, email="admin@example.com", is_admin=True)
