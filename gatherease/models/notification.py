from sqlalchemy import Column, String, Boolean, DateTime, Text, Enum as SQLEnum
from datetime import datetime
import enum
import uuid
from gatherease.db import Base


class NotificationType(enum.Enum):
    event = "event"
    survey = "survey"
    reminder = "reminder"
    info = "info"


class Notification(Base):
    __tablename__ = "notifications"

    # use a callable for default so new UUIDs are generated per-row
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    type = Column(SQLEnum(NotificationType), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    event_id = Column(String, nullable=True, index=True)
    action_url = Column(String, nullable=True)  # URL or route path
    action_label = Column(String, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
