"""Device token model for push notifications."""

from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from datetime import datetime, UTC
from gatherease.db import Base
import uuid
import enum


class DevicePlatform(enum.Enum):
    ios = "ios"
    android = "android"
    web = "web"


class DeviceToken(Base):
    """An attendee device registered for web or mobile push.

    A user may hold several tokens; the push channel sends to every active one
    and flips is_active to "false" when FCM reports a token as dead.
    """
    __tablename__ = "device_tokens"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    fcm_token = Column(String, nullable=False, unique=True, index=True)
    platform = Column(SQLEnum(DevicePlatform), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
    last_used = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
    is_active = Column(String, default="true")  # String to avoid SQLite boolean issues

    def __repr__(self):
        return f"<DeviceToken user={self.user_id} platform={self.platform.value}>"
