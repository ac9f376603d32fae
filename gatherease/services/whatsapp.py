"""WhatsApp Business API client for attendee messaging."""

import logging
import re
from typing import List, Optional

import httpx

from gatherease.core.settings import settings
from gatherease.exceptions import ChannelDeliveryFailure

logger = logging.getLogger("gatherease.whatsapp")

SURVEY_INVITATION_TEMPLATE = "event_survey_invitation"
SURVEY_REMINDER_TEMPLATE = "event_survey_reminder"
EVENT_REMINDER_TEMPLATE = "event_reminder"


def normalize_phone(phone: str) -> str:
    """Keep digits and the leading plus sign only."""
    return re.sub(r"[^\d+]", "", phone or "")


class WhatsAppClient:
    """Sends template messages through the WhatsApp Business API."""

    def __init__(self, api_url: Optional[str], api_token: Optional[str], timeout: float = 10.0):
        self.api_url = api_url.rstrip("/") if api_url else None
        self.api_token = api_token
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "WhatsAppClient":
        return cls(settings.whatsapp_api_url, settings.whatsapp_api_token, settings.channel_timeout_seconds)

    def is_configured(self) -> bool:
        return bool(self.api_url and self.api_token)

    def send_template(self, to: str, template_name: str, parameters: List[str], language: str = "en") -> Optional[str]:
        """Send a template message and return the provider message id.

        Raises ChannelDeliveryFailure on transport errors or non-2xx replies.
        """
        if not self.is_configured():
            raise ChannelDeliveryFailure("whatsapp", "WhatsApp API not configured")

        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": normalize_phone(to),
            "type": "template",
            "template": {
                "name": template_name,
                "language": {"code": language},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": p} for p in parameters],
                    }
                ],
            },
        }
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(f"{self.api_url}/messages", json=payload, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"Network error calling WhatsApp API: {e}")
            raise ChannelDeliveryFailure("whatsapp", str(e)) from e

        if response.status_code >= 400:
            logger.error(f"WhatsApp API error: {response.status_code} - {response.text[:300]}")
            raise ChannelDeliveryFailure("whatsapp", f"status {response.status_code}")

        try:
            messages = response.json().get("messages") or [{}]
        except ValueError:
            messages = [{}]
        message_id = messages[0].get("id")
        logger.info(f"WhatsApp message sent to {to} template={template_name} message_id={message_id}")
        return message_id

    def send_survey_invitation(self, phone: str, recipient_name: str, event_name: str, survey_url: str) -> Optional[str]:
        return self.send_template(phone, SURVEY_INVITATION_TEMPLATE, [recipient_name, event_name, survey_url])

    def send_survey_reminder(self, phone: str, recipient_name: str, event_name: str, survey_url: str) -> Optional[str]:
        return self.send_template(phone, SURVEY_REMINDER_TEMPLATE, [recipient_name, event_name, survey_url])

    def send_event_reminder(self, phone: str, recipient_name: str, event_name: str,
                            event_date: str, event_location: str) -> Optional[str]:
        return self.send_template(phone, EVENT_REMINDER_TEMPLATE, [recipient_name, event_name, event_date, event_location])
