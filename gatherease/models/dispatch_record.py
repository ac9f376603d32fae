from sqlalchemy import Column, String, DateTime, UniqueConstraint
from datetime import datetime, UTC
import uuid
from gatherease.db import Base


class DispatchRecord(Base):
    """Marks that one recipient was handled for one action window.

    window_start is the target instant the classifier matched, so a second
    pass inside the same window finds the row and skips the recipient.
    """
    __tablename__ = "dispatch_records"
    __table_args__ = (
        UniqueConstraint("action", "entity_id", "recipient_id", "window_start", name="uq_dispatch_records_key"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String, nullable=False)  # survey_invitation | survey_reminder | event_reminder
    entity_id = Column(String, nullable=False, index=True)
    recipient_id = Column(String, nullable=False)
    window_start = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
