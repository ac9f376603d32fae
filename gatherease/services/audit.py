"""Audit logging helpers for dispatch events.

Standard JSON-ish single-line logs so they are easy to index.
"""
from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional, Any

_logger = logging.getLogger("gatherease.audit")


def _emit(event: str, user_id: Optional[str] = None, **data: Any):
    payload = {"ts": datetime.utcnow().isoformat() + "Z", "event": event}
    if user_id:
        payload["user_id"] = user_id
    payload.update(data)
    parts = [f"{k}={repr(v)}" for k, v in payload.items()]
    _logger.info("AUDIT " + " ".join(parts))

# Public convenience wrappers

def log_notification_dispatch(user_id: str, action: str, event_id: Optional[str], notification_id: str,
                              channels: dict[str, str]):
    _emit("notification.dispatch", user_id=user_id, action=action, event_id=event_id,
          notification_id=notification_id, channels=channels)

def log_dispatch_pass(job_type: Optional[str], summary: dict, duration_ms: int):
    _emit("dispatch.pass", job_type=job_type or "all", duration_ms=duration_ms, **summary)

def log_event_status_change(event_id: str, old_status: str, new_status: str, actor_id: Optional[str] = None):
    _emit("event.status", user_id=actor_id, event_id=event_id, old_status=old_status, new_status=new_status)

def log_attendee_status_change(attendee_id: str, event_id: str, new_status: str):
    _emit("attendee.status", attendee_id=attendee_id, event_id=event_id, new_status=new_status)
