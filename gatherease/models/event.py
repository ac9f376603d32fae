from sqlalchemy import Column, String, DateTime, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime, UTC
import enum
import uuid
from gatherease.db import Base


class EventStatus(enum.Enum):
    draft = "draft"
    published = "published"
    cancelled = "cancelled"
    completed = "completed"


class Event(Base):
    """An organizer-created occurrence that attendees register for.

    Events with attendees are never deleted; they are soft-cancelled
    by moving to ``EventStatus.cancelled``.
    """
    __tablename__ = "events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String, nullable=True)
    start_date = Column(DateTime, nullable=False, index=True)
    end_date = Column(DateTime, nullable=False, index=True)
    status = Column(SQLEnum(EventStatus), nullable=False, default=EventStatus.draft)
    created_by_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    attendees = relationship("Attendee", back_populates="event")
    survey_templates = relationship("SurveyTemplate", back_populates="event")

    def __repr__(self):
        return f"<Event {self.name} ({self.status.value if self.status else None})>"
