from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime, UTC
import uuid
from gatherease.db import Base


class NotificationPreference(Base):
    """Per-user switches for the external delivery channels.

    A user without a row gets the column defaults. The in-app
    notification is written regardless of these settings.
    """
    __tablename__ = "notification_preferences"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, unique=True, index=True)
    email_notifications = Column(Boolean, default=True, nullable=False)
    event_reminders = Column(Boolean, default=True, nullable=False)
    survey_reminders = Column(Boolean, default=True, nullable=False)
    whatsapp_notifications = Column(Boolean, default=True, nullable=False)
    sms_notifications = Column(Boolean, default=False, nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
