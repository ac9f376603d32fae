"""Builders turning (attendee, event) pairs into DispatchMessages."""

from datetime import datetime

from gatherease.core.settings import settings
from gatherease.schemas.notification import NotificationTypeEnum
from gatherease.schemas.push_notification import PushNotificationPayload
from gatherease.services import email as email_service
from gatherease.services import sms as sms_text
from gatherease.services import whatsapp
from gatherease.services.dispatcher import DispatchMessage, EmailContent, WhatsAppContent
from gatherease.utils.datetime import ensure_aware_utc

SURVEY_INVITATION = "survey_invitation"
SURVEY_REMINDER = "survey_reminder"
EVENT_REMINDER = "event_reminder"
REGISTRATION_CONFIRMATION = "registration_confirmation"


def format_event_date(dt: datetime) -> str:
    dt = ensure_aware_utc(dt)
    return f"{dt:%A, %B} {dt.day}, {dt.year}"


def format_event_time(dt: datetime) -> str:
    dt = ensure_aware_utc(dt)
    return dt.strftime("%I:%M %p UTC").lstrip("0")


def event_url(event) -> str:
    return f"{settings.app_url.rstrip('/')}/events/{event.id}"


def survey_invitation_message(attendee, event, survey_url: str) -> DispatchMessage:
    subject, html, plain = email_service.render_survey_invitation_email(attendee.name, event.name, survey_url)
    return DispatchMessage(
        action=SURVEY_INVITATION,
        type=NotificationTypeEnum.survey,
        title="Share Your Feedback",
        message=f"Thank you for attending {event.name}! Please take a moment to share your feedback.",
        event_id=event.id,
        action_url=survey_url,
        action_label="Take Survey",
        email=EmailContent(subject, html, plain),
        whatsapp=WhatsAppContent(whatsapp.SURVEY_INVITATION_TEMPLATE, [attendee.name, event.name, survey_url]),
        push=PushNotificationPayload(
            title="Share Your Feedback",
            body=f"How was {event.name}? Tell us in a quick survey.",
            data={"type": "survey", "event_id": event.id},
            click_action=survey_url,
        ),
        preference="survey_reminders",
    )


def survey_reminder_message(attendee, event, survey_url: str) -> DispatchMessage:
    subject, html, plain = email_service.render_survey_reminder_email(attendee.name, event.name, survey_url)
    return DispatchMessage(
        action=SURVEY_REMINDER,
        type=NotificationTypeEnum.reminder,
        title="Survey Reminder",
        message=f"Don't forget to share your feedback about {event.name}.",
        event_id=event.id,
        action_url=survey_url,
        action_label="Take Survey",
        email=EmailContent(subject, html, plain),
        whatsapp=WhatsAppContent(whatsapp.SURVEY_REMINDER_TEMPLATE, [attendee.name, event.name, survey_url]),
        sms=sms_text.survey_reminder_text(attendee.name, event.name, survey_url),
        push=PushNotificationPayload(
            title="Survey Reminder",
            body=f"Your feedback on {event.name} is still wanted.",
            data={"type": "survey_reminder", "event_id": event.id},
            click_action=survey_url,
        ),
        preference="survey_reminders",
    )


def event_reminder_message(attendee, event) -> DispatchMessage:
    date = format_event_date(event.start_date)
    time = format_event_time(event.start_date)
    location = event.location or "TBA"
    url = event_url(event)
    subject, html, plain = email_service.render_event_reminder_email(
        attendee.name, event.name, date, time, location, url
    )
    return DispatchMessage(
        action=EVENT_REMINDER,
        type=NotificationTypeEnum.reminder,
        title="Event Reminder",
        message=f"{event.name} starts on {date} at {time}.",
        event_id=event.id,
        action_url=url,
        action_label="View Event",
        email=EmailContent(subject, html, plain),
        whatsapp=WhatsAppContent(whatsapp.EVENT_REMINDER_TEMPLATE, [attendee.name, event.name, date, location]),
        sms=sms_text.event_reminder_text(attendee.name, event.name, date, location),
        push=PushNotificationPayload(
            title="Event Reminder",
            body=f"{event.name} is coming up on {date}.",
            data={"type": "event_reminder", "event_id": event.id},
            click_action=url,
        ),
        preference="event_reminders",
    )


def registration_confirmation_message(attendee, event) -> DispatchMessage:
    date = format_event_date(event.start_date)
    time = format_event_time(event.start_date)
    location = event.location or "TBA"
    url = event_url(event)
    subject, html, plain = email_service.render_registration_confirmation_email(
        attendee.name, event.name, date, time, location, url
    )
    # Transactional: email and in-app only, no topic switch
    return DispatchMessage(
        action=REGISTRATION_CONFIRMATION,
        type=NotificationTypeEnum.event,
        title="Registration Confirmed",
        message=f"You're registered for {event.name} on {date}.",
        event_id=event.id,
        action_url=url,
        action_label="View Event",
        email=EmailContent(subject, html, plain),
    )
