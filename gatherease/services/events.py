"""Event and attendee lifecycle operations."""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from gatherease.exceptions import DispatchError, NotFoundException, ValidationException
from gatherease.models.attendee import Attendee, AttendeeStatus
from gatherease.models.event import Event, EventStatus
from gatherease.services import audit, messages
from gatherease.services.dispatcher import NotificationDispatcher
from gatherease.utils.datetime import ensure_aware_utc, to_naive_utc, utc_now

logger = logging.getLogger("gatherease.events")

# Allowed status moves; anything else is rejected
EVENT_TRANSITIONS = {
    EventStatus.draft: {EventStatus.published, EventStatus.cancelled},
    EventStatus.published: {EventStatus.draft, EventStatus.cancelled, EventStatus.completed},
    EventStatus.cancelled: set(),
    EventStatus.completed: set(),
}


def _get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundException("Event not found")
    return event


def _get_attendee(db: Session, attendee_id: str) -> Attendee:
    attendee = db.query(Attendee).filter(Attendee.id == attendee_id).first()
    if not attendee:
        raise NotFoundException("Attendee not found")
    return attendee


def create_event(db: Session, name: str, start_date: datetime, end_date: datetime, created_by_id: str,
                 location: Optional[str] = None, description: Optional[str] = None,
                 status: EventStatus = EventStatus.draft) -> Event:
    if ensure_aware_utc(end_date) <= ensure_aware_utc(start_date):
        raise ValidationException("Event end must be after its start")
    event = Event(
        name=name,
        description=description,
        location=location,
        start_date=to_naive_utc(start_date),
        end_date=to_naive_utc(end_date),
        status=status,
        created_by_id=created_by_id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info(f"Event {event.id} created by {created_by_id}")
    return event


def set_event_status(db: Session, event_id: str, new_status: EventStatus, actor_id: Optional[str] = None) -> Event:
    """Move an event to ``new_status`` if the transition is allowed."""
    event = _get_event(db, event_id)
    old_status = event.status
    if new_status == old_status:
        return event
    if new_status not in EVENT_TRANSITIONS.get(old_status, set()):
        raise ValidationException(f"Cannot change event from {old_status.value} to {new_status.value}")

    event.status = new_status
    db.commit()
    db.refresh(event)
    audit.log_event_status_change(event.id, old_status.value, new_status.value, actor_id)
    return event


def remove_event(db: Session, event_id: str, actor_id: Optional[str] = None) -> str:
    """Delete an event, or cancel it when attendees are attached.

    Returns "deleted" or "cancelled".
    """
    event = _get_event(db, event_id)
    has_attendees = db.query(Attendee).filter(Attendee.event_id == event.id).count() > 0
    if has_attendees:
        if event.status != EventStatus.cancelled:
            old_status = event.status
            event.status = EventStatus.cancelled
            db.commit()
            audit.log_event_status_change(event.id, old_status.value, EventStatus.cancelled.value, actor_id)
        logger.info(f"Event {event.id} has attendees; soft-cancelled instead of deleted")
        return "cancelled"

    for template in list(event.survey_templates):
        db.delete(template)
    db.delete(event)
    db.commit()
    logger.info(f"Event {event_id} deleted by {actor_id}")
    return "deleted"


def register_attendee(db: Session, event_id: str, user_id: str, name: str, email: str,
                      phone: Optional[str] = None,
                      dispatcher: Optional[NotificationDispatcher] = None) -> Attendee:
    """Register a user for a published event.

    A previously cancelled registration is reactivated. When a dispatcher is
    given, a registration confirmation is sent; a failed confirmation does
    not undo the registration.
    """
    event = _get_event(db, event_id)
    if event.status != EventStatus.published:
        raise ValidationException("Registration is only open for published events")

    attendee = db.query(Attendee).filter(
        Attendee.event_id == event_id,
        Attendee.user_id == user_id
    ).first()
    if attendee and attendee.status != AttendeeStatus.cancelled:
        raise ValidationException("User is already registered for this event")

    if attendee:
        attendee.status = AttendeeStatus.registered
        attendee.name = name
        attendee.email = email
        attendee.phone = phone
        attendee.registered_at = to_naive_utc(utc_now())
    else:
        attendee = Attendee(
            event_id=event_id,
            user_id=user_id,
            name=name,
            email=email,
            phone=phone,
            status=AttendeeStatus.registered,
        )
        db.add(attendee)
    db.commit()
    db.refresh(attendee)
    audit.log_attendee_status_change(attendee.id, event_id, attendee.status.value)

    if dispatcher is not None:
        try:
            dispatcher.dispatch(attendee, messages.registration_confirmation_message(attendee, event))
        except DispatchError as e:
            logger.error(f"Registration confirmation for attendee {attendee.id} failed: {e}")
    return attendee


def check_in_attendee(db: Session, attendee_id: str) -> Attendee:
    attendee = _get_attendee(db, attendee_id)
    if attendee.status == AttendeeStatus.cancelled:
        raise ValidationException("Cancelled registrations cannot be checked in")
    if attendee.status in (AttendeeStatus.checked_in, AttendeeStatus.attended):
        return attendee

    attendee.status = AttendeeStatus.checked_in
    attendee.checked_in_at = to_naive_utc(utc_now())
    db.commit()
    db.refresh(attendee)
    audit.log_attendee_status_change(attendee.id, attendee.event_id, attendee.status.value)
    return attendee


def cancel_attendee(db: Session, attendee_id: str) -> Attendee:
    attendee = _get_attendee(db, attendee_id)
    if attendee.status == AttendeeStatus.cancelled:
        return attendee
    attendee.status = AttendeeStatus.cancelled
    db.commit()
    db.refresh(attendee)
    audit.log_attendee_status_change(attendee.id, attendee.event_id, attendee.status.value)
    return attendee
