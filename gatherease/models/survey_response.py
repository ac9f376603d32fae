from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from datetime import datetime, UTC
import uuid
from gatherease.db import Base


class SurveyResponse(Base):
    __tablename__ = "survey_responses"
    __table_args__ = (
        Index("ix_survey_responses_template_user", "template_id", "user_id"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    template_id = Column(String, ForeignKey("survey_templates.id"), nullable=False)
    event_id = Column(String, ForeignKey("events.id"), nullable=False)
    user_id = Column(String, nullable=False)
    submitted_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
