from sqlalchemy import Column, String, Boolean, DateTime, Float, Text, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime, UTC
import enum
import uuid
from gatherease.db import Base


class SendTiming(enum.Enum):
    after_event = "after_event"
    during_event = "during_event"
    custom = "custom"


class SurveyTemplate(Base):
    """Organizer-defined configuration describing when a feedback survey goes out.

    Timing fields by mode:
    - after_event: send_delay hours after the event ends
    - during_event: halfway between start and end
    - custom: the absolute send_time
    A reminder, when enabled, follows reminder_delay hours after the initial send.
    """
    __tablename__ = "survey_templates"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String, ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    send_timing = Column(SQLEnum(SendTiming), nullable=False, default=SendTiming.after_event)
    send_delay = Column(Float, nullable=True)  # hours
    send_time = Column(DateTime, nullable=True)
    reminder_enabled = Column(Boolean, default=False, nullable=False)
    reminder_delay = Column(Float, nullable=True)  # hours
    created_by_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    event = relationship("Event", back_populates="survey_templates")
