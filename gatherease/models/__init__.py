"""Import every model so Base.metadata knows all tables."""

from gatherease.models.event import Event, EventStatus
from gatherease.models.attendee import Attendee, AttendeeStatus
from gatherease.models.survey_template import SurveyTemplate, SendTiming
from gatherease.models.survey_response import SurveyResponse
from gatherease.models.notification import Notification, NotificationType
from gatherease.models.notification_preference import NotificationPreference
from gatherease.models.device_token import DeviceToken, DevicePlatform
from gatherease.models.dispatch_record import DispatchRecord

__all__ = [
    "Event", "EventStatus",
    "Attendee", "AttendeeStatus",
    "SurveyTemplate", "SendTiming",
    "SurveyResponse",
    "Notification", "NotificationType",
    "NotificationPreference",
    "DeviceToken", "DevicePlatform",
    "DispatchRecord",
]
