from datetime import datetime

import pytest

from interview_bot.datamodel import ReminderKind
from interview_bot.reminders.window import classify_due_reminders, hours_until, in_window

from helpers import NOW, TZ, hours, make_interview


def test_interview_tomorrow_same_time_falls_in_24h_window():
    interview = make_interview(datetime(2026, 3, 11, 14, 30, tzinfo=TZ))

    due = classify_due_reminders(NOW, [interview], TZ)

    assert hours_until(interview, NOW, TZ) == pytest.approx(23.9167, abs=1e-3)
    assert due.due_24h == [interview]
    assert due.due_3h == []


@pytest.mark.parametrize("offset", [23.5, 24.0, 24.5])
def test_24h_window_is_inclusive(offset):
    interview = make_interview(NOW + hours(offset))
    assert classify_due_reminders(NOW, [interview], TZ).due_24h == [interview]


@pytest.mark.parametrize("offset", [23.49, 24.51, 30.0])
def test_outside_24h_window_is_not_due(offset):
    interview = make_interview(NOW + hours(offset))
    due = classify_due_reminders(NOW, [interview], TZ)
    assert due.due_24h == []
    assert due.due_3h == []


@pytest.mark.parametrize("offset", [2.5, 3.0, 3.5])
def test_3h_window_is_inclusive(offset):
    interview = make_interview(NOW + hours(offset))
    due = classify_due_reminders(NOW, [interview], TZ)
    assert due.due_3h == [interview]
    assert due.due_24h == []


def test_already_sent_flag_excludes_interview():
    interview = make_interview(NOW + hours(24), reminder_24h_sent=True)
    assert classify_due_reminders(NOW, [interview], TZ).due_24h == []


def test_3h_reminder_does_not_depend_on_24h_flag():
    interview = make_interview(NOW + hours(3))
    due = classify_due_reminders(NOW, [interview], TZ)
    assert due.due_3h == [interview]
    assert interview.reminder_24h_sent is False


def test_past_interviews_are_never_due():
    interview = make_interview(NOW - hours(1))
    due = classify_due_reminders(NOW, [interview], TZ)
    assert due.due_24h == []
    assert due.due_3h == []


def test_independent_interviews_classified_separately():
    a = make_interview(NOW + hours(24), interview_id=1)
    b = make_interview(NOW + hours(3), interview_id=2)
    c = make_interview(NOW + hours(10), interview_id=3)

    due = classify_due_reminders(NOW, [a, b, c], TZ)

    assert [i.interview_id for i in due.due_24h] == [1]
    assert [i.interview_id for i in due.due_3h] == [2]


def test_in_window_bounds():
    assert in_window(23.5, ReminderKind.H24)
    assert not in_window(23.4999, ReminderKind.H24)
    assert in_window(3.5, ReminderKind.H3)
    assert not in_window(3.5001, ReminderKind.H3)


def test_hours_until_uses_org_timezone():
    # 2026-03-11 14:30 台北 = 2026-03-11 06:30 UTC
    interview = make_interview(datetime(2026, 3, 11, 14, 30, tzinfo=TZ))
    now_utc = datetime.fromisoformat("2026-03-11T05:30:00+00:00")
    assert hours_until(interview, now_utc, TZ) == pytest.approx(1.0)
