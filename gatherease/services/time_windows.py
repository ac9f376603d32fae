"""Time-window classification for scheduled dispatch.

Every decision here is a pure function of the entity's timing fields and
``now``. Nothing is cached between passes; a target is "due" while
``target <= now < target + window``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from gatherease.exceptions import ConfigurationError
from gatherease.models.event import EventStatus
from gatherease.models.survey_template import SendTiming
from gatherease.utils.datetime import add_hours, ensure_aware_utc

logger = logging.getLogger("gatherease.time_windows")

DEFAULT_WINDOW = timedelta(hours=1)


class DispatchAction(str, enum.Enum):
    send = "send"
    remind = "remind"
    skip = "skip"


@dataclass(frozen=True)
class Classification:
    action: DispatchAction
    # Target instant whose window matched; None for skip
    target: Optional[datetime] = None

    @classmethod
    def skip(cls) -> "Classification":
        return cls(DispatchAction.skip)


def in_window(now: datetime, target: datetime, window: timedelta = DEFAULT_WINDOW) -> bool:
    """Return True when ``now`` falls in ``[target, target + window)``."""
    now = ensure_aware_utc(now)
    target = ensure_aware_utc(target)
    return target <= now < target + window


def initial_send_target(
    send_timing: SendTiming | str,
    event_start: Optional[datetime],
    event_end: Optional[datetime],
    send_delay: Optional[float] = None,
    send_time: Optional[datetime] = None,
) -> datetime:
    """Compute when a survey's initial send is due.

    Raises ConfigurationError when the fields required by the mode are missing.
    """
    try:
        timing = SendTiming(send_timing)
    except ValueError:
        raise ConfigurationError(f"unknown send timing {send_timing!r}")

    if timing is SendTiming.after_event:
        if event_end is None or send_delay is None:
            raise ConfigurationError("after_event timing requires event end and send_delay")
        return add_hours(ensure_aware_utc(event_end), send_delay)

    if timing is SendTiming.during_event:
        if event_start is None or event_end is None:
            raise ConfigurationError("during_event timing requires event start and end")
        start = ensure_aware_utc(event_start)
        end = ensure_aware_utc(event_end)
        return start + (end - start) / 2

    if send_time is None:
        raise ConfigurationError("custom timing requires send_time")
    return ensure_aware_utc(send_time)


def classify_template(template, event, now: datetime, window: timedelta = DEFAULT_WINDOW) -> Classification:
    """Decide whether a survey template should send, remind or skip at ``now``.

    ``template`` and ``event`` only need the timing attributes, so ORM rows
    and plain objects both work. When both windows are open at once the
    initial send wins.
    """
    try:
        target = initial_send_target(
            template.send_timing,
            event.start_date,
            event.end_date,
            send_delay=template.send_delay,
            send_time=template.send_time,
        )
    except ConfigurationError as e:
        logger.warning(f"Skipping survey template {getattr(template, 'id', '?')}: {e}")
        return Classification.skip()

    if in_window(now, target, window):
        return Classification(DispatchAction.send, target)

    if template.reminder_enabled and template.reminder_delay is not None:
        reminder_target = add_hours(target, template.reminder_delay)
        if in_window(now, reminder_target, window):
            return Classification(DispatchAction.remind, reminder_target)

    return Classification.skip()


def classify_event_reminder(
    event,
    now: datetime,
    lead_hours: float = 24,
    window: timedelta = DEFAULT_WINDOW,
) -> Classification:
    """Decide whether attendees should get the "event is coming up" reminder.

    Only published events qualify; the target is ``lead_hours`` before start.
    """
    if event.status != EventStatus.published or event.start_date is None:
        return Classification.skip()
    target = add_hours(ensure_aware_utc(event.start_date), -lead_hours)
    if in_window(now, target, window):
        return Classification(DispatchAction.send, target)
    return Classification.skip()
