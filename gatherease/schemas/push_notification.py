"""Pydantic schemas for push notification content."""

from pydantic import BaseModel
from typing import Optional


class PushNotificationPayload(BaseModel):
    """Internal model for push notification content."""
    title: str
    body: str
    data: Optional[dict] = None
    image_url: Optional[str] = None
    # iOS specific
    badge: Optional[int] = None
    sound: Optional[str] = "default"
    # Android / web specific
    click_action: Optional[str] = None
    channel_id: Optional[str] = "default"
