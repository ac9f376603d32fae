"""Scheduled tasks endpoint for cron jobs (Cloud Scheduler).

These endpoints are meant to be called hourly by Cloud Scheduler or a
similar cron service to run the notification dispatch pass.
"""

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session
from typing import Optional
import logging

from gatherease.core.settings import settings
from gatherease.db import get_db
from gatherease.exceptions import ForbiddenException
from gatherease.schemas.dispatch import DispatchRequest, DispatchSummary, JobType
from gatherease.services.scheduler import run_scheduled_notifications
from gatherease.utils.datetime import utc_now

logger = logging.getLogger("gatherease.scheduled")
router = APIRouter()


def verify_cron_secret(x_cron_secret: Optional[str] = Header(None)):
    """Verify the cron secret header for scheduled job authentication."""
    if x_cron_secret != settings.cron_secret:
        logger.warning("Scheduled task called with an invalid cron secret")
        raise ForbiddenException("Invalid cron secret")
    return True


@router.post("/notifications", response_model=DispatchSummary)
def trigger_scheduled_notifications(
    payload: Optional[DispatchRequest] = None,
    db: Session = Depends(get_db),
    _verified: bool = Depends(verify_cron_secret)
):
    """Run one dispatch pass.

    Body ``{"job_type": "event-reminders" | "survey-invitations"}``; an empty
    body runs both jobs.

    Example Cloud Scheduler config:
    - Schedule: 0 * * * * (every hour)
    - Target: POST https://api.example.com/scheduled/notifications
    - Headers: X-Cron-Secret: <your-secret>
    """
    job_type = payload.job_type if payload else None
    logger.info(f"Triggering scheduled notifications job_type={job_type.value if job_type else 'all'}")
    return run_scheduled_notifications(db, job_type=job_type)


@router.post("/surveys", response_model=DispatchSummary)
def trigger_survey_dispatch(
    db: Session = Depends(get_db),
    _verified: bool = Depends(verify_cron_secret)
):
    """Run only the survey invitation / reminder job."""
    return run_scheduled_notifications(db, job_type=JobType.survey_invitations)


@router.get("/ping")
def ping(_verified: bool = Depends(verify_cron_secret)):
    """Let the cron target confirm the secret and reachability."""
    return {"status": "ok", "timestamp": utc_now().isoformat()}
