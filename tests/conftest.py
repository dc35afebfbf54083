import os

os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-secret")

from datetime import date, datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import vein.models  # noqa: F401
from vein.core.clock import today
from vein.db.base import Base
from vein.db.session import get_db, get_session_factory
from vein.main import app
from vein.models import DonationRequest, Notification, User
from vein.services import auth_service


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(email: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth_service.issue_session({'email': email})}"}


@pytest.fixture
def make_user(db):
    def _make(email, role="donor", status="active", blood_group=None, district=None, upazila=None, name=None):
        row = User(
            email=email,
            name=name or email.split("@")[0],
            role=role,
            status=status,
            blood_group=blood_group,
            district=district,
            upazila=upazila,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def make_request(db):
    """Insert a request directly (bypasses the past-date check on create)."""

    def _make(requester_email, days_from_today=1, status="pending", blood_group="O+", district="Dhaka"):
        row = DonationRequest(
            requester_email=requester_email,
            requester_name="Requester",
            recipient_name="Patient",
            recipient_district=district,
            blood_group=blood_group,
            donation_date=today() + timedelta(days=days_from_today),
            donation_status=status,
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


@pytest.fixture
def make_notification(db):
    def _make(email, message="hello", is_read=False, age_days=0):
        row = Notification(
            email=email,
            message=message,
            is_read=is_read,
            created_at=datetime.now(timezone.utc) - timedelta(days=age_days),
        )
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    return _make


def iso(d: date) -> str:
    return d.isoformat()
