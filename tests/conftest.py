"""pytest configuration: in-memory database, recorded notifications."""
import os

# Must be set before any agenda module reads the settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["SLOT_CACHE_ENABLED"] = "false"

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agenda.models import Base
from agenda.tasks import notification_tasks
from tests.helpers import seed_establishment


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def world(db):
    return seed_establishment(db)


@pytest.fixture(autouse=True)
def sent_notifications(monkeypatch):
    """Every queued notification payload, in order; nothing reaches a broker."""
    sent = []

    def fake_apply_async(args=None, kwargs=None, **options):
        sent.append(kwargs)

    monkeypatch.setattr(notification_tasks.send_appointment_notification, "apply_async", fake_apply_async)
    return sent


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient

    from agenda.config.database import get_db
    from agenda.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
