"""Tests for event and attendee lifecycle operations."""

from datetime import datetime, UTC
from unittest.mock import MagicMock

import pytest

from gatherease.exceptions import DataUnavailable, NotFoundException, ValidationException
from gatherease.models.attendee import Attendee, AttendeeStatus
from gatherease.models.event import Event, EventStatus
from gatherease.services import events as event_service
from gatherease.services.messages import REGISTRATION_CONFIRMATION


class TestEventLifecycle:

    def test_create_event_validates_dates(self, db_session):
        with pytest.raises(ValidationException):
            event_service.create_event(
                db_session, "Backwards", datetime(2025, 1, 2, tzinfo=UTC), datetime(2025, 1, 1, tzinfo=UTC), "org-1"
            )

    def test_create_event_defaults_to_draft(self, db_session):
        event = event_service.create_event(
            db_session, "Meetup", datetime(2025, 1, 1, 8, tzinfo=UTC), datetime(2025, 1, 1, 10, tzinfo=UTC), "org-1"
        )
        assert event.status == EventStatus.draft
        assert event.start_date == datetime(2025, 1, 1, 8)

    def test_publish_then_complete(self, db_session, make_event):
        event = make_event(status=EventStatus.draft)
        event_service.set_event_status(db_session, event.id, EventStatus.published, actor_id="org-1")
        updated = event_service.set_event_status(db_session, event.id, EventStatus.completed)
        assert updated.status == EventStatus.completed

    def test_cancelled_event_cannot_be_reopened(self, db_session, make_event):
        event = make_event(status=EventStatus.cancelled)
        with pytest.raises(ValidationException):
            event_service.set_event_status(db_session, event.id, EventStatus.published)

    def test_unknown_event(self, db_session):
        with pytest.raises(NotFoundException):
            event_service.set_event_status(db_session, "missing", EventStatus.published)

    def test_remove_event_without_attendees_deletes(self, db_session, make_event, make_template):
        event = make_event()
        make_template(event)
        event_id = event.id

        assert event_service.remove_event(db_session, event_id) == "deleted"
        assert db_session.query(Event).filter(Event.id == event_id).first() is None

    def test_remove_event_with_attendees_soft_cancels(self, db_session, make_event, make_attendee):
        event = make_event()
        attendee = make_attendee(event)

        assert event_service.remove_event(db_session, event.id, actor_id="org-1") == "cancelled"
        db_session.expire_all()
        assert db_session.query(Event).filter(Event.id == event.id).one().status == EventStatus.cancelled
        assert db_session.query(Attendee).filter(Attendee.id == attendee.id).one() is not None


class TestAttendeeLifecycle:

    def test_register_sends_confirmation(self, db_session, make_event):
        event = make_event()
        dispatcher = MagicMock()

        attendee = event_service.register_attendee(
            db_session, event.id, "user-7", "Ana", "ana@example.com", phone="+15551234567", dispatcher=dispatcher
        )

        assert attendee.status == AttendeeStatus.registered
        dispatcher.dispatch.assert_called_once()
        recipient, message = dispatcher.dispatch.call_args.args
        assert recipient.id == attendee.id
        assert message.action == REGISTRATION_CONFIRMATION
        assert message.email is not None

    def test_failed_confirmation_keeps_registration(self, db_session, make_event):
        event = make_event()
        dispatcher = MagicMock()
        dispatcher.dispatch.side_effect = DataUnavailable("notifications table unavailable")

        attendee = event_service.register_attendee(
            db_session, event.id, "user-7", "Ana", "ana@example.com", dispatcher=dispatcher
        )

        assert db_session.query(Attendee).filter(Attendee.id == attendee.id).one().status == AttendeeStatus.registered

    def test_registration_requires_published_event(self, db_session, make_event):
        event = make_event(status=EventStatus.draft)
        with pytest.raises(ValidationException):
            event_service.register_attendee(db_session, event.id, "user-7", "Ana", "ana@example.com")

    def test_duplicate_registration_rejected(self, db_session, make_event):
        event = make_event()
        event_service.register_attendee(db_session, event.id, "user-7", "Ana", "ana@example.com")
        with pytest.raises(ValidationException):
            event_service.register_attendee(db_session, event.id, "user-7", "Ana", "ana@example.com")

    def test_cancelled_registration_is_reactivated(self, db_session, make_event):
        event = make_event()
        first = event_service.register_attendee(db_session, event.id, "user-7", "Ana", "ana@example.com")
        event_service.cancel_attendee(db_session, first.id)

        again = event_service.register_attendee(db_session, event.id, "user-7", "Ana B", "ana.b@example.com")

        assert again.id == first.id
        assert again.status == AttendeeStatus.registered
        assert again.email == "ana.b@example.com"

    def test_check_in(self, db_session, make_event, make_attendee):
        attendee = make_attendee(make_event())

        checked = event_service.check_in_attendee(db_session, attendee.id)

        assert checked.status == AttendeeStatus.checked_in
        assert checked.checked_in_at is not None

    def test_check_in_cancelled_attendee_rejected(self, db_session, make_event, make_attendee):
        attendee = make_attendee(make_event(), AttendeeStatus.cancelled)
        with pytest.raises(ValidationException):
            event_service.check_in_attendee(db_session, attendee.id)

    def test_checked_in_status_round_trips_through_store(self, db_session, make_event, make_attendee):
        attendee = make_attendee(make_event())
        event_service.check_in_attendee(db_session, attendee.id)

        db_session.expire_all()
        stored = db_session.query(Attendee).filter(Attendee.status == AttendeeStatus.checked_in).one()
        assert stored.id == attendee.id
