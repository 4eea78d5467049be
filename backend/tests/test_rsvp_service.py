from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import event as sa_event
from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine, select

from app.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StoreError,
    ValidationError,
)
from app.models import RSVP, Event
from app.services.notifications import NotificationKind
from app.services.rsvp import RSVPCoordinator
from app.services.rsvp_store import RSVPStore
from conftest import RecordingDispatcher, make_user


@pytest.fixture
def coordinator(session, dispatcher) -> RSVPCoordinator:
    return RSVPCoordinator(session, dispatcher)


def _rows(session) -> list[RSVP]:
    return session.exec(select(RSVP)).all()


def test_sequential_submissions_leave_last_status(coordinator, session, event, attendee):
    for status in ["going", "maybe", "not_going", "going", "maybe"]:
        coordinator.submit(event.id, attendee.id, status)

    rows = _rows(session)
    assert len(rows) == 1
    assert rows[0].status == "maybe"


def test_resubmitting_same_status_notifies_once(coordinator, dispatcher, event, attendee):
    coordinator.submit(event.id, attendee.id, "going")
    coordinator.submit(event.id, attendee.id, "going")

    assert len(dispatcher.of_kind(NotificationKind.ATTENDEE)) == 1
    assert len(dispatcher.of_kind(NotificationKind.ORGANIZER)) == 1


def test_each_transition_notifies(coordinator, dispatcher, event, attendee):
    coordinator.submit(event.id, attendee.id, "going")
    coordinator.submit(event.id, attendee.id, "maybe")
    coordinator.submit(event.id, attendee.id, "maybe")

    attendee_calls = dispatcher.of_kind(NotificationKind.ATTENDEE)
    assert len(attendee_calls) == 2
    assert attendee_calls[1][2]["previous_status"] == "going"
    assert attendee_calls[1][2]["status"] == "maybe"


def test_notification_recipients_and_context(coordinator, dispatcher, event, organizer, attendee):
    coordinator.submit(event.id, attendee.id, "going")

    organizer_call = dispatcher.of_kind(NotificationKind.ORGANIZER)[0]
    attendee_call = dispatcher.of_kind(NotificationKind.ATTENDEE)[0]
    assert organizer_call[1] == organizer.email
    assert attendee_call[1] == attendee.email

    context = attendee_call[2]
    assert context["event_title"] == "Python Meetup"
    assert context["attendee_name"] == "Alex Attendee"
    assert context["organizer_name"] == "Olga Organizer"
    assert context["event_url"].endswith(f"/event/{event.id}")
    assert context["event_starts_at"] == "2026-11-05T17:30:00+00:00"


def test_organizer_responding_to_own_event_gets_confirmation_only(
    coordinator, dispatcher, event, organizer
):
    coordinator.submit(event.id, organizer.id, "going")

    assert dispatcher.of_kind(NotificationKind.ORGANIZER) == []
    assert len(dispatcher.of_kind(NotificationKind.ATTENDEE)) == 1


def test_invalid_status_rejected_before_store_access(
    coordinator, dispatcher, session, event, attendee, monkeypatch
):
    coordinator.submit(event.id, attendee.id, "going")

    def _fail(*args, **kwargs):
        raise AssertionError("store must not be touched")

    monkeypatch.setattr(RSVPStore, "get", _fail)
    monkeypatch.setattr(RSVPStore, "upsert", _fail)

    with pytest.raises(ValidationError):
        coordinator.submit(event.id, attendee.id, "yes")
    with pytest.raises(ValidationError):
        coordinator.submit(event.id, attendee.id, "Going")

    monkeypatch.undo()
    rows = _rows(session)
    assert [row.status for row in rows] == ["going"]
    assert len(dispatcher.calls) == 2


def test_unknown_event_is_not_found(coordinator, session, attendee):
    with pytest.raises(NotFoundError):
        coordinator.submit(uuid.uuid4(), attendee.id, "going")
    assert _rows(session) == []


def test_store_failure_aborts_submission(coordinator, dispatcher, session, event, attendee, monkeypatch):
    def _broken_get(self, event_id, user_id):
        raise StoreError("Failed to read RSVP")

    monkeypatch.setattr(RSVPStore, "get", _broken_get)

    with pytest.raises(StoreError):
        coordinator.submit(event.id, attendee.id, "going")

    monkeypatch.undo()
    assert _rows(session) == []
    assert dispatcher.calls == []


def _failing_get(session, should_fail):
    original_get = session.get

    def _get(entity, ident, *args, **kwargs):
        if should_fail(entity, ident):
            raise OperationalError("SELECT", {}, Exception("server closed the connection"))
        return original_get(entity, ident, *args, **kwargs)

    return _get


def test_event_lookup_database_error_becomes_store_error(
    coordinator, dispatcher, session, event, attendee, monkeypatch
):
    monkeypatch.setattr(session, "get", _failing_get(session, lambda entity, ident: entity is Event))

    with pytest.raises(StoreError):
        coordinator.submit(event.id, attendee.id, "going")
    with pytest.raises(StoreError):
        coordinator.list(event.id, attendee.id)

    monkeypatch.undo()
    assert _rows(session) == []
    assert dispatcher.calls == []


def test_organizer_lookup_failure_leaves_no_partial_write(
    coordinator, dispatcher, session, event, organizer, attendee, monkeypatch
):
    monkeypatch.setattr(
        session, "get", _failing_get(session, lambda entity, ident: ident == organizer.id)
    )

    with pytest.raises(StoreError):
        coordinator.submit(event.id, attendee.id, "going")

    monkeypatch.undo()
    assert _rows(session) == []
    assert dispatcher.calls == []


class ExplodingDispatcher(RecordingDispatcher):
    def dispatch(self, kind, recipient, context) -> None:
        raise RuntimeError("dispatcher unavailable")


def test_notification_failure_does_not_fail_committed_submit(session, event, attendee):
    coordinator = RSVPCoordinator(session, ExplodingDispatcher())

    rsvp = coordinator.submit(event.id, attendee.id, "going")

    assert rsvp.status == "going"
    assert [row.status for row in _rows(session)] == ["going"]


def test_upsert_database_error_becomes_store_error(coordinator, session, event, attendee, monkeypatch):
    def _broken_exec(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(coordinator.store.session, "exec", _broken_exec)

    with pytest.raises(StoreError):
        coordinator.store.upsert(event.id, attendee.id, "going")


def test_withdraw_missing_rsvp_succeeds(coordinator, event, attendee):
    coordinator.withdraw(event.id, attendee.id)
    assert coordinator.get(event.id, attendee.id) is None


def test_withdraw_removes_rsvp(coordinator, event, attendee):
    coordinator.submit(event.id, attendee.id, "going")
    coordinator.withdraw(event.id, attendee.id)
    assert coordinator.get(event.id, attendee.id) is None


def test_count_for_four_users(coordinator, session, event):
    for index, status in enumerate(["going", "going", "maybe", "not_going"]):
        user = make_user(session, f"guest{index}@example.com")
        coordinator.submit(event.id, user.id, status)

    count = coordinator.get_count(event.id)
    assert count.model_dump() == {"going": 2, "maybe": 1, "not_going": 1}


def test_list_restricted_to_organizer(coordinator, event, organizer, attendee):
    coordinator.submit(event.id, attendee.id, "maybe")

    rows = coordinator.list(event.id, organizer.id)
    assert [(row.email, row.status) for row in rows] == [("attendee@example.com", "maybe")]

    with pytest.raises(PermissionDeniedError):
        coordinator.list(event.id, attendee.id)
    with pytest.raises(NotFoundError):
        coordinator.list(uuid.uuid4(), organizer.id)


def test_concurrent_submissions_leave_one_row(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'rsvp.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        organizer = make_user(session, "host@example.com")
        guest = make_user(session, "guest@example.com")
        event = Event(
            organizer_id=organizer.id,
            title="Launch party",
            starts_at=datetime(2026, 12, 1, 18, 0, tzinfo=timezone.utc),
        )
        session.add(event)
        session.commit()
        event_id, guest_id = event.id, guest.id

    statuses = ["going", "maybe", "not_going"] * 4
    errors: list[Exception] = []
    dispatcher = RecordingDispatcher()
    status_by_thread: dict[int, str] = {}
    committed: list[str] = []

    # SQLite holds the write lock until the commit completes, so the order of
    # commit events is the order in which the upserts became durable
    @sa_event.listens_for(engine, "commit")
    def _record_commit(conn) -> None:
        committed.append(status_by_thread[threading.get_ident()])

    def _submit(status: str) -> None:
        status_by_thread[threading.get_ident()] = status
        try:
            with Session(engine) as session:
                RSVPCoordinator(session, dispatcher).submit(event_id, guest_id, status)
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=_submit, args=(status,)) for status in statuses]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    with Session(engine) as session:
        total = session.exec(select(func.count()).select_from(RSVP)).one()
        row = session.exec(select(RSVP)).one()
    assert total == 1
    assert len(committed) == len(statuses)
    assert row.status == committed[-1]
    engine.dispose()
