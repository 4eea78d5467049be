from __future__ import annotations

import os

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timezone  # noqa: E402
from typing import Any, Dict, List, Tuple  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import app.models  # noqa: E402,F401
from app.api.deps import get_notification_dispatcher  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.db import get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Event, User  # noqa: E402
from app.services.notifications import NotificationDispatcher, NotificationKind  # noqa: E402


class RecordingDispatcher(NotificationDispatcher):
    """Collects dispatch calls instead of queueing Celery tasks."""

    def __init__(self) -> None:
        self.calls: List[Tuple[NotificationKind, str, Dict[str, Any]]] = []

    def dispatch(self, kind, recipient, context) -> None:
        self.calls.append((kind, recipient, context))

    def of_kind(self, kind: NotificationKind) -> list:
        return [call for call in self.calls if call[0] is kind]


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


def make_user(session: Session, email: str, first_name: str = "", last_name: str = "") -> User:
    user = User(email=email, first_name=first_name or None, last_name=last_name or None)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def organizer(session) -> User:
    return make_user(session, "organizer@example.com", "Olga", "Organizer")


@pytest.fixture
def attendee(session) -> User:
    return make_user(session, "attendee@example.com", "Alex", "Attendee")


@pytest.fixture
def event(session, organizer) -> Event:
    event = Event(
        organizer_id=organizer.id,
        title="Python Meetup",
        description="Monthly meetup",
        location="Nairobi Garage",
        starts_at=datetime(2026, 11, 5, 17, 30, tzinfo=timezone.utc),
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture
def client(session, dispatcher):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_notification_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}
