"""Scheduled notification pass.

One call scans survey templates and/or published events, classifies each
against ``now`` and dispatches to the resolved recipients. Every entity is
handled in isolation: a failure is logged and counted and the scan moves
on. Apart from DispatchRecord rows nothing survives between passes.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gatherease.core.settings import settings
from gatherease.exceptions import ConfigurationError, DataUnavailable, DispatchError
from gatherease.models.attendee import EXPECTED_STATUSES, PRESENT_STATUSES
from gatherease.models.dispatch_record import DispatchRecord
from gatherease.models.event import Event, EventStatus
from gatherease.models.survey_template import SurveyTemplate
from gatherease.schemas.dispatch import DispatchSummary, JobType
from gatherease.services import audit, messages
from gatherease.services.dispatcher import NotificationDispatcher, build_dispatcher
from gatherease.services.recipients import RecipientResolver
from gatherease.services.survey_tokens import build_survey_url
from gatherease.services.time_windows import (
    DispatchAction,
    classify_event_reminder,
    classify_template,
)
from gatherease.utils.datetime import ensure_aware_utc, to_naive_utc, utc_now

logger = logging.getLogger("gatherease.scheduler")


def _window() -> timedelta:
    return timedelta(minutes=settings.dispatch_window_minutes)


class _DedupLedger:
    """Reads and writes DispatchRecord rows; a no-op when dedup is disabled."""

    def __init__(self, db: Session, enabled: bool):
        self.db = db
        self.enabled = enabled

    def seen(self, action: str, entity_id: str, recipient_id: str, window_start: datetime) -> bool:
        if not self.enabled:
            return False
        try:
            return self.db.query(DispatchRecord).filter(
                DispatchRecord.action == action,
                DispatchRecord.entity_id == entity_id,
                DispatchRecord.recipient_id == recipient_id,
                DispatchRecord.window_start == to_naive_utc(window_start),
            ).first() is not None
        except SQLAlchemyError as e:
            raise DataUnavailable(f"dispatch records for {action} {entity_id}") from e

    def record(self, action: str, entity_id: str, recipient_id: str, window_start: datetime):
        if not self.enabled:
            return
        self.db.add(DispatchRecord(
            action=action,
            entity_id=entity_id,
            recipient_id=recipient_id,
            window_start=to_naive_utc(window_start),
        ))
        try:
            self.db.commit()
        except IntegrityError:
            # Another pass recorded the same key first
            self.db.rollback()
            logger.info(f"Dispatch record already present for {action} {entity_id} recipient {recipient_id}")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Could not write dispatch record for {action} {entity_id}: {e}")


def _deliver(dispatcher: NotificationDispatcher, ledger: _DedupLedger, summary: DispatchSummary,
             action: str, entity_id: str, window_start: datetime, recipients, build_message) -> int:
    """Dispatch to each recipient not yet handled in this window; return how many were notified."""
    delivered = 0
    db = ledger.db
    for attendee in recipients:
        try:
            if ledger.seen(action, entity_id, attendee.id, window_start):
                summary.duplicates_skipped += 1
                continue
            outcome = dispatcher.dispatch(attendee, build_message(attendee))
        except DispatchError as e:
            db.rollback()
            logger.error(f"{action} for attendee {attendee.id} ({entity_id}) failed: {e}")
            summary.entity_errors += 1
            continue
        except Exception as e:
            db.rollback()
            logger.exception(f"Unexpected error sending {action} to attendee {attendee.id} ({entity_id}): {e}")
            summary.entity_errors += 1
            continue
        summary.notifications_created += 1
        summary.channel_failures += outcome.failures
        delivered += 1
        ledger.record(action, entity_id, attendee.id, window_start)
    return delivered


def process_survey_schedules(db: Session, now: datetime, dispatcher: NotificationDispatcher,
                             summary: DispatchSummary, ledger: _DedupLedger):
    resolver = RecipientResolver(db)
    window = _window()
    try:
        templates = (
            db.query(SurveyTemplate)
            .filter(SurveyTemplate.is_active.is_(True))
            .order_by(SurveyTemplate.created_at, SurveyTemplate.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Could not load survey templates: {e}")
        summary.entity_errors += 1
        return

    for template in templates:
        summary.templates_scanned += 1
        try:
            event = template.event
            if event is None:
                raise ConfigurationError(f"event {template.event_id} not found")

            decision = classify_template(template, event, now, window)
            if decision.action is DispatchAction.skip:
                continue

            if decision.action is DispatchAction.send:
                recipients = resolver.resolve(event.id, PRESENT_STATUSES)
                logger.info(f"Sending survey {template.id} for event {event.id} to {len(recipients)} attendees")
                summary.surveys_sent += _deliver(
                    dispatcher, ledger, summary, messages.SURVEY_INVITATION, template.id, decision.target,
                    recipients,
                    lambda a: messages.survey_invitation_message(a, event, build_survey_url(template.id, a.id)),
                )
            else:
                recipients = resolver.resolve_for_reminder(event.id, PRESENT_STATUSES, template.id)
                logger.info(f"Reminding {len(recipients)} attendees about survey {template.id}")
                summary.survey_reminders_sent += _deliver(
                    dispatcher, ledger, summary, messages.SURVEY_REMINDER, template.id, decision.target,
                    recipients,
                    lambda a: messages.survey_reminder_message(a, event, build_survey_url(template.id, a.id)),
                )
        except DispatchError as e:
            db.rollback()
            logger.error(f"Error processing survey template {template.id}: {e}")
            summary.entity_errors += 1
        except Exception as e:
            db.rollback()
            logger.exception(f"Unexpected error processing survey template {template.id}: {e}")
            summary.entity_errors += 1


def process_event_reminders(db: Session, now: datetime, dispatcher: NotificationDispatcher,
                            summary: DispatchSummary, ledger: _DedupLedger):
    resolver = RecipientResolver(db)
    window = _window()
    try:
        events = (
            db.query(Event)
            .filter(Event.status == EventStatus.published)
            .order_by(Event.start_date, Event.id)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Could not load events: {e}")
        summary.entity_errors += 1
        return

    for event in events:
        summary.events_scanned += 1
        try:
            decision = classify_event_reminder(event, now, settings.event_reminder_lead_hours, window)
            if decision.action is DispatchAction.skip:
                continue
            recipients = resolver.resolve(event.id, EXPECTED_STATUSES)
            logger.info(f"Sending event reminder for {event.id} to {len(recipients)} attendees")
            summary.event_reminders_sent += _deliver(
                dispatcher, ledger, summary, messages.EVENT_REMINDER, event.id, decision.target,
                recipients,
                lambda a: messages.event_reminder_message(a, event),
            )
        except DispatchError as e:
            db.rollback()
            logger.error(f"Error processing reminders for event {event.id}: {e}")
            summary.entity_errors += 1
        except Exception as e:
            db.rollback()
            logger.exception(f"Unexpected error processing reminders for event {event.id}: {e}")
            summary.entity_errors += 1


def run_scheduled_notifications(
    db: Session,
    job_type: Optional[JobType] = None,
    now: Optional[datetime] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> DispatchSummary:
    """Run one dispatch pass.

    Args:
        db: Database session
        job_type: Restrict the pass to one job; None runs both
        now: Evaluation instant, defaults to the current UTC time
        dispatcher: Injected dispatcher, defaults to build_dispatcher(db)

    Returns:
        DispatchSummary with per-pass counts
    """
    started = time.monotonic()
    now = ensure_aware_utc(now) if now is not None else utc_now()
    job_type = JobType(job_type) if job_type is not None else None
    dispatcher = dispatcher or build_dispatcher(db)
    ledger = _DedupLedger(db, settings.dispatch_dedup_enabled)
    summary = DispatchSummary(job_type=job_type)

    logger.info(f"Dispatch pass starting job_type={job_type.value if job_type else 'all'} now={now.isoformat()}")

    if job_type in (None, JobType.survey_invitations):
        process_survey_schedules(db, now, dispatcher, summary, ledger)
    if job_type in (None, JobType.event_reminders):
        process_event_reminders(db, now, dispatcher, summary, ledger)

    duration_ms = int((time.monotonic() - started) * 1000)
    audit.log_dispatch_pass(
        job_type.value if job_type else None,
        summary.model_dump(exclude={"success", "job_type"}),
        duration_ms,
    )
    logger.info(f"Dispatch pass finished in {duration_ms}ms: {summary.model_dump(exclude={'job_type'})}")
    return summary
