from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime, UTC
import enum
import uuid
from gatherease.db import Base


class AttendeeStatus(enum.Enum):
    registered = "registered"
    confirmed = "confirmed"
    checked_in = "checked-in"
    attended = "attended"
    cancelled = "cancelled"
    waitlisted = "waitlisted"


# Attendees who were actually present at the event
PRESENT_STATUSES = frozenset({AttendeeStatus.checked_in, AttendeeStatus.attended})
# Attendees still expected to show up
EXPECTED_STATUSES = frozenset({AttendeeStatus.registered, AttendeeStatus.confirmed})


class Attendee(Base):
    """Registration record linking a user to an event."""
    __tablename__ = "attendees"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_attendees_event_user"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    # values_callable stores "checked-in" rather than the member name
    status = Column(
        SQLEnum(AttendeeStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AttendeeStatus.registered,
    )
    registered_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
    checked_in_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    event = relationship("Event", back_populates="attendees")

    def __repr__(self):
        return f"<Attendee {self.name} ({self.email}) {self.status.value if self.status else None}>"
