"""Recipient lookup for scheduled dispatch."""

import logging
from typing import Iterable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gatherease.exceptions import DataUnavailable
from gatherease.models.attendee import Attendee, AttendeeStatus
from gatherease.models.survey_response import SurveyResponse

logger = logging.getLogger("gatherease.recipients")


class RecipientResolver:
    """Finds the attendees an action should reach.

    Any store error surfaces as DataUnavailable so the driver can skip
    the entity it was working on.
    """

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, event_id: str, statuses: Iterable[AttendeeStatus]) -> List[Attendee]:
        """Return attendees of ``event_id`` whose status is in ``statuses``."""
        allowed = list(statuses)
        if not allowed:
            return []
        try:
            return (
                self.db.query(Attendee)
                .filter(Attendee.event_id == event_id, Attendee.status.in_(allowed))
                .order_by(Attendee.registered_at, Attendee.id)
                .all()
            )
        except SQLAlchemyError as e:
            logger.error(f"Attendee lookup failed for event {event_id}: {e}")
            raise DataUnavailable(f"attendees for event {event_id}") from e

    def has_responded(self, template_id: str, user_id: str) -> bool:
        try:
            count = (
                self.db.query(SurveyResponse)
                .filter(SurveyResponse.template_id == template_id, SurveyResponse.user_id == user_id)
                .count()
            )
        except SQLAlchemyError as e:
            logger.error(f"Survey response lookup failed for template {template_id}: {e}")
            raise DataUnavailable(f"survey responses for template {template_id}") from e
        return count > 0

    def resolve_for_reminder(
        self,
        event_id: str,
        statuses: Iterable[AttendeeStatus],
        template_id: str,
    ) -> List[Attendee]:
        """Like resolve(), minus attendees who already answered the survey."""
        pending = []
        for attendee in self.resolve(event_id, statuses):
            if self.has_responded(template_id, attendee.user_id):
                logger.info(f"Attendee {attendee.id} already completed survey {template_id}, skipping reminder")
                continue
            pending.append(attendee)
        return pending
