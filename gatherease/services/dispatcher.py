"""Notification dispatcher.

Delivers one message to one recipient: the in-app notification is written
first and committed on its own, then every external channel the message
carries a payload for is attempted independently. A channel failure is
logged and reported in the outcome; it never undoes the in-app row and
never stops the remaining channels.
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gatherease.exceptions import ChannelDeliveryFailure, DataUnavailable
from gatherease.models.notification_preference import NotificationPreference
from gatherease.schemas.notification import NotificationCreate, NotificationTypeEnum
from gatherease.schemas.push_notification import PushNotificationPayload
from gatherease.services import audit
from gatherease.services import email as email_service
from gatherease.services.notifications import create_notification
from gatherease.services import push_notification as push_service
from gatherease.services.sms import SmsClient
from gatherease.services.whatsapp import WhatsAppClient

logger = logging.getLogger("gatherease.dispatcher")

# Used when a user has no NotificationPreference row
DEFAULT_PREFERENCES = {
    "email_notifications": True,
    "event_reminders": True,
    "survey_reminders": True,
    "whatsapp_notifications": True,
    "sms_notifications": False,
}


class ChannelStatus(str, enum.Enum):
    sent = "sent"
    failed = "failed"
    skipped = "skipped"


@dataclass
class EmailContent:
    subject: str
    html: str
    plain: Optional[str] = None


@dataclass
class WhatsAppContent:
    template_name: str
    parameters: List[str]


@dataclass
class DispatchMessage:
    """Everything needed to notify one recipient about one thing.

    ``preference`` names the topic switch on NotificationPreference
    (``survey_reminders`` / ``event_reminders``) that gates the external
    channels; None means only the per-channel switches apply.
    """
    action: str
    type: NotificationTypeEnum
    title: str
    message: str
    event_id: Optional[str] = None
    action_url: Optional[str] = None
    action_label: Optional[str] = None
    email: Optional[EmailContent] = None
    whatsapp: Optional[WhatsAppContent] = None
    sms: Optional[str] = None
    push: Optional[PushNotificationPayload] = None
    preference: Optional[str] = None


@dataclass
class DispatchOutcome:
    notification_id: str
    channels: Dict[str, ChannelStatus] = field(default_factory=dict)

    @property
    def failures(self) -> int:
        return sum(1 for status in self.channels.values() if status is ChannelStatus.failed)


class DeliveryChannel(ABC):
    """One external delivery route (email, WhatsApp, SMS, push)."""

    name: str = "base"
    # NotificationPreference column that switches this channel off
    preference_field: Optional[str] = None

    def __init__(self):
        self._warned_unconfigured = False

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for the provider are present."""

    @abstractmethod
    def applies_to(self, recipient, message: DispatchMessage) -> bool:
        """Whether the message has content for this channel and the recipient an address."""

    @abstractmethod
    def deliver(self, recipient, message: DispatchMessage) -> None:
        """Send the message. Raises ChannelDeliveryFailure when the provider rejects it."""

    def warn_unconfigured(self):
        if not self._warned_unconfigured:
            logger.warning(f"{self.name} channel not configured; deliveries will be skipped")
            self._warned_unconfigured = True


class EmailChannel(DeliveryChannel):
    name = "email"
    preference_field = "email_notifications"

    def __init__(self, sender: Optional[Callable[..., bool]] = None,
                 configured: Optional[Callable[[], bool]] = None):
        super().__init__()
        self.sender = sender
        self._configured = configured

    def is_configured(self) -> bool:
        return (self._configured or email_service.is_email_configured)()

    def applies_to(self, recipient, message: DispatchMessage) -> bool:
        return message.email is not None and bool(recipient.email)

    def deliver(self, recipient, message: DispatchMessage) -> None:
        content = message.email
        sender = self.sender or email_service.send_email
        if not sender(recipient.email, content.subject, content.html, content.plain):
            raise ChannelDeliveryFailure(self.name, f"send to {recipient.email} was not accepted")


class WhatsAppChannel(DeliveryChannel):
    name = "whatsapp"
    preference_field = "whatsapp_notifications"

    def __init__(self, client: WhatsAppClient):
        super().__init__()
        self.client = client

    def is_configured(self) -> bool:
        return self.client.is_configured()

    def applies_to(self, recipient, message: DispatchMessage) -> bool:
        return message.whatsapp is not None and bool(recipient.phone)

    def deliver(self, recipient, message: DispatchMessage) -> None:
        self.client.send_template(recipient.phone, message.whatsapp.template_name, message.whatsapp.parameters)


class SmsChannel(DeliveryChannel):
    name = "sms"
    preference_field = "sms_notifications"

    def __init__(self, client: SmsClient):
        super().__init__()
        self.client = client

    def is_configured(self) -> bool:
        return self.client.is_configured()

    def applies_to(self, recipient, message: DispatchMessage) -> bool:
        return message.sms is not None and bool(recipient.phone)

    def deliver(self, recipient, message: DispatchMessage) -> None:
        self.client.send_sms(recipient.phone, message.sms)


class PushChannel(DeliveryChannel):
    name = "push"

    def __init__(self, db: Session):
        super().__init__()
        self.db = db

    def is_configured(self) -> bool:
        return push_service.is_fcm_available()

    def applies_to(self, recipient, message: DispatchMessage) -> bool:
        return message.push is not None and bool(push_service.active_tokens(self.db, recipient.user_id))

    def deliver(self, recipient, message: DispatchMessage) -> None:
        result = push_service.send_to_user(self.db, recipient.user_id, message.push)
        if result.success_count == 0:
            raise ChannelDeliveryFailure(self.name, result.error or "no device accepted the message")


class NotificationDispatcher:
    """Writes the in-app notification and fans out to external channels."""

    def __init__(self, db: Session, channels: Optional[List[DeliveryChannel]] = None):
        self.db = db
        self.channels = channels if channels is not None else []

    def _preference(self, pref: Optional[NotificationPreference], field_name: Optional[str]) -> bool:
        if field_name is None:
            return True
        if pref is None:
            return DEFAULT_PREFERENCES.get(field_name, True)
        return bool(getattr(pref, field_name, True))

    def dispatch(self, recipient, message: DispatchMessage) -> DispatchOutcome:
        """Notify one recipient.

        ``recipient`` needs ``user_id``, ``email`` and ``phone``; Attendee rows fit.
        DataUnavailable from the preference lookup or the in-app store
        propagates to the caller; nothing has been sent at that point.
        """
        try:
            pref = self.db.query(NotificationPreference).filter(
                NotificationPreference.user_id == recipient.user_id
            ).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DataUnavailable(f"notification preferences for user {recipient.user_id}") from e
        topic_enabled = self._preference(pref, message.preference)

        notification = create_notification(self.db, NotificationCreate(
            user_id=recipient.user_id,
            type=message.type,
            title=message.title,
            message=message.message,
            event_id=message.event_id,
            action_url=message.action_url,
            action_label=message.action_label,
        ))
        outcome = DispatchOutcome(notification_id=notification.id)

        for channel in self.channels:
            try:
                if not channel.applies_to(recipient, message):
                    continue
                if not topic_enabled or not self._preference(pref, channel.preference_field):
                    outcome.channels[channel.name] = ChannelStatus.skipped
                    continue
                if not channel.is_configured():
                    channel.warn_unconfigured()
                    outcome.channels[channel.name] = ChannelStatus.skipped
                    continue
                channel.deliver(recipient, message)
                outcome.channels[channel.name] = ChannelStatus.sent
            except ChannelDeliveryFailure as e:
                logger.error(f"{message.action} via {channel.name} failed for user {recipient.user_id}: {e}")
                outcome.channels[channel.name] = ChannelStatus.failed
            except SQLAlchemyError as e:
                # The in-app row is already committed; reset the session for the next channel
                self.db.rollback()
                logger.error(f"{channel.name} store error for user {recipient.user_id}: {e}")
                outcome.channels[channel.name] = ChannelStatus.failed
            except Exception as e:
                logger.exception(f"Unexpected {channel.name} error for user {recipient.user_id}: {e}")
                outcome.channels[channel.name] = ChannelStatus.failed

        audit.log_notification_dispatch(
            recipient.user_id,
            message.action,
            message.event_id,
            notification.id,
            {name: status.value for name, status in outcome.channels.items()},
        )
        return outcome


def build_dispatcher(db: Session) -> NotificationDispatcher:
    """Dispatcher wired to the providers configured in settings."""
    return NotificationDispatcher(db, channels=[
        EmailChannel(),
        WhatsAppChannel(WhatsAppClient.from_settings()),
        SmsChannel(SmsClient.from_settings()),
        PushChannel(db),
    ])
