"""Schemas for the scheduled dispatch endpoint."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class JobType(str, Enum):
    event_reminders = "event-reminders"
    survey_invitations = "survey-invitations"


class DispatchRequest(BaseModel):
    job_type: Optional[JobType] = Field(None, description="Restrict the pass to one job; omit to run both")


class DispatchSummary(BaseModel):
    success: bool = True
    job_type: Optional[JobType] = None
    templates_scanned: int = 0
    events_scanned: int = 0
    surveys_sent: int = 0
    survey_reminders_sent: int = 0
    event_reminders_sent: int = 0
    notifications_created: int = 0
    channel_failures: int = 0
    entity_errors: int = 0
    duplicates_skipped: int = 0
