"""提醒窗口判定

外部触发器大约每 10 分钟调用一次, 因此窗口取目标时刻前后各 30 分钟,
即便漏掉一次触发也不会错过。已经过去的面谈不会被归类, 也就不会补发。
"""

from datetime import datetime
from typing import Iterable
from zoneinfo import ZoneInfo

from interview_bot.datamodel import DueReminders, Interview, ReminderKind
from interview_bot.utils import combine_local, hours_between

__all__ = ["REMINDER_WINDOWS", "hours_until", "in_window", "classify_due_reminders"]

# 距面谈开始的小时数, 闭区间
REMINDER_WINDOWS: dict[ReminderKind, tuple[float, float]] = {
    ReminderKind.H24: (23.5, 24.5),
    ReminderKind.H3: (2.5, 3.5),
}


def hours_until(interview: Interview, now: datetime, tz: ZoneInfo) -> float:
    start = combine_local(interview.interview_date, interview.interview_time, tz)
    return hours_between(now, start)


def in_window(hours: float, kind: ReminderKind) -> bool:
    low, high = REMINDER_WINDOWS[kind]
    return low <= hours <= high


def classify_due_reminders(now: datetime, interviews: Iterable[Interview], tz: ZoneInfo) -> DueReminders:
    """把候选面谈分到 24h / 3h 两个列表; 同一面谈可能同时出现在两个列表中"""
    due = DueReminders()
    for interview in interviews:
        hours = hours_until(interview, now, tz)
        if not interview.reminder_24h_sent and in_window(hours, ReminderKind.H24):
            due.due_24h.append(interview)
        if not interview.reminder_3h_sent and in_window(hours, ReminderKind.H3):
            due.due_3h.append(interview)
    return due
