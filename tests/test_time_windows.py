"""Tests for the time-window classifier."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from gatherease.exceptions import ConfigurationError
from gatherease.models.event import EventStatus
from gatherease.models.survey_template import SendTiming
from gatherease.services.time_windows import (
    DispatchAction,
    classify_event_reminder,
    classify_template,
    in_window,
    initial_send_target,
)


def at(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def event(start="2025-01-01T08:00:00Z", end="2025-01-01T10:00:00Z", status=EventStatus.published):
    return SimpleNamespace(start_date=at(start), end_date=at(end), status=status)


def template(send_timing=SendTiming.after_event, send_delay=1.0, send_time=None,
             reminder_enabled=False, reminder_delay=None):
    return SimpleNamespace(
        id="tpl-1",
        send_timing=send_timing,
        send_delay=send_delay,
        send_time=send_time,
        reminder_enabled=reminder_enabled,
        reminder_delay=reminder_delay,
    )


class TestInWindow:

    def test_window_is_half_open(self):
        target = at("2025-01-01T11:00:00Z")
        assert in_window(target, target)
        assert in_window(target + timedelta(minutes=59, seconds=59), target)
        assert not in_window(target + timedelta(hours=1), target)
        assert not in_window(target - timedelta(seconds=1), target)

    def test_naive_datetimes_are_treated_as_utc(self):
        target = datetime(2025, 1, 1, 11, 0)
        assert in_window(at("2025-01-01T11:30:00Z"), target)

    def test_other_timezones_are_normalized(self):
        target = at("2025-01-01T11:00:00Z")
        now = datetime(2025, 1, 1, 12, 30, tzinfo=timezone(timedelta(hours=1)))
        assert in_window(now, target)


class TestInitialSendTarget:

    def test_after_event_adds_delay_to_end(self):
        target = initial_send_target(SendTiming.after_event, at("2025-01-01T08:00:00Z"),
                                     at("2025-01-01T10:00:00Z"), send_delay=2)
        assert target == at("2025-01-01T12:00:00Z")

    def test_after_event_zero_delay_is_valid(self):
        target = initial_send_target("after_event", None, at("2025-01-01T10:00:00Z"), send_delay=0)
        assert target == at("2025-01-01T10:00:00Z")

    def test_during_event_is_midpoint(self):
        target = initial_send_target(SendTiming.during_event, at("2025-01-01T08:00:00Z"),
                                     at("2025-01-01T10:00:00Z"))
        assert target == at("2025-01-01T09:00:00Z")

    def test_custom_uses_send_time(self):
        target = initial_send_target(SendTiming.custom, None, None, send_time=at("2025-02-01T15:00:00Z"))
        assert target == at("2025-02-01T15:00:00Z")

    @pytest.mark.parametrize("timing,kwargs", [
        (SendTiming.after_event, {"send_delay": None}),
        (SendTiming.custom, {"send_time": None}),
    ])
    def test_missing_fields_raise(self, timing, kwargs):
        with pytest.raises(ConfigurationError):
            initial_send_target(timing, at("2025-01-01T08:00:00Z"), at("2025-01-01T10:00:00Z"), **kwargs)

    def test_unknown_timing_raises(self):
        with pytest.raises(ConfigurationError):
            initial_send_target("weekly", None, None)


class TestClassifyTemplate:

    def test_send_inside_initial_window(self):
        result = classify_template(template(), event(), at("2025-01-01T11:30:00Z"))
        assert result.action is DispatchAction.send
        assert result.target == at("2025-01-01T11:00:00Z")

    def test_skip_before_and_after_window(self):
        assert classify_template(template(), event(), at("2025-01-01T10:59:00Z")).action is DispatchAction.skip
        assert classify_template(template(), event(), at("2025-01-01T12:00:00Z")).action is DispatchAction.skip

    def test_remind_inside_reminder_window(self):
        tpl = template(reminder_enabled=True, reminder_delay=24)
        result = classify_template(tpl, event(), at("2025-01-02T11:15:00Z"))
        assert result.action is DispatchAction.remind
        assert result.target == at("2025-01-02T11:00:00Z")

    def test_reminder_disabled_never_reminds(self):
        tpl = template(reminder_enabled=False, reminder_delay=24)
        assert classify_template(tpl, event(), at("2025-01-02T11:15:00Z")).action is DispatchAction.skip

    def test_send_wins_when_windows_overlap(self):
        tpl = template(send_delay=0, reminder_enabled=True, reminder_delay=0.5)
        result = classify_template(tpl, event(), at("2025-01-01T10:40:00Z"))
        assert result.action is DispatchAction.send
        assert result.target == at("2025-01-01T10:00:00Z")

    def test_misconfigured_template_is_skipped(self):
        tpl = template(send_timing=SendTiming.custom, send_time=None)
        assert classify_template(tpl, event(), at("2025-01-01T11:30:00Z")).action is DispatchAction.skip

    def test_custom_window_follows_send_time(self):
        tpl = template(send_timing=SendTiming.custom, send_time=datetime(2025, 1, 5, 9, 0))
        assert classify_template(tpl, event(), at("2025-01-05T09:10:00Z")).action is DispatchAction.send

    def test_classification_is_repeatable(self):
        tpl, ev, now = template(), event(), at("2025-01-01T11:30:00Z")
        assert classify_template(tpl, ev, now) == classify_template(tpl, ev, now)


class TestClassifyEventReminder:

    def test_due_one_lead_period_before_start(self):
        ev = event(start="2025-03-10T18:00:00Z", end="2025-03-10T21:00:00Z")
        result = classify_event_reminder(ev, at("2025-03-09T18:20:00Z"))
        assert result.action is DispatchAction.send
        assert result.target == at("2025-03-09T18:00:00Z")

    def test_outside_lead_window(self):
        ev = event(start="2025-03-10T18:00:00Z", end="2025-03-10T21:00:00Z")
        assert classify_event_reminder(ev, at("2025-03-09T19:00:00Z")).action is DispatchAction.skip

    def test_custom_lead_hours(self):
        ev = event(start="2025-03-10T18:00:00Z", end="2025-03-10T21:00:00Z")
        assert classify_event_reminder(ev, at("2025-03-10T16:30:00Z"), lead_hours=2).action is DispatchAction.send

    @pytest.mark.parametrize("status", [EventStatus.draft, EventStatus.cancelled, EventStatus.completed])
    def test_only_published_events(self, status):
        ev = event(start="2025-03-10T18:00:00Z", end="2025-03-10T21:00:00Z", status=status)
        assert classify_event_reminder(ev, at("2025-03-09T18:20:00Z")).action is DispatchAction.skip
