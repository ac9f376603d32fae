"""Plain-text SMS delivery through a bearer-authenticated HTTP gateway."""

import logging
from typing import Optional

import httpx

from gatherease.core.settings import settings
from gatherease.exceptions import ChannelDeliveryFailure
from gatherease.services.whatsapp import normalize_phone

logger = logging.getLogger("gatherease.sms")


def survey_reminder_text(recipient_name: str, event_name: str, survey_url: str) -> str:
    return (
        f"Hi {recipient_name}, just a reminder to share your feedback about {event_name}. "
        f"The survey is here: {survey_url}"
    )


def event_reminder_text(recipient_name: str, event_name: str, event_date: str, event_location: str) -> str:
    return f"Hi {recipient_name}, {event_name} is coming up on {event_date} at {event_location}. See you there!"


class SmsClient:
    def __init__(self, api_url: Optional[str], api_key: Optional[str], timeout: float = 10.0):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "SmsClient":
        return cls(settings.sms_api_url, settings.sms_api_key, settings.channel_timeout_seconds)

    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_key)

    def send_sms(self, to: str, message: str) -> Optional[str]:
        """Send one SMS and return the gateway message id, if it reports one."""
        if not self.is_configured():
            raise ChannelDeliveryFailure("sms", "SMS API not configured")

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    self.api_url,
                    json={"to": normalize_phone(to), "message": message},
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            logger.error(f"Network error calling SMS API: {e}")
            raise ChannelDeliveryFailure("sms", str(e)) from e

        if response.status_code >= 400:
            logger.error(f"SMS API error: {response.status_code} - {response.text[:300]}")
            raise ChannelDeliveryFailure("sms", f"status {response.status_code}")

        logger.info(f"SMS sent to {to}")
        try:
            return response.json().get("messageId")
        except ValueError:
            return None
