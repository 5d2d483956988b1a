from datetime import datetime
from zoneinfo import ZoneInfo

import interview_bot.storage.interview as interview_storage
from interview_bot.datamodel import Interview, ReminderKind
from interview_bot.logger import logger
from interview_bot.reminders.window import hours_until

__all__ = ["apply_late_creation_guard"]


async def apply_late_creation_guard(
    interview: Interview,
    now: datetime,
    tz: ZoneInfo,
    store=interview_storage,
) -> Interview:
    """新增面谈后立即调用: 对已经不可能命中的提醒窗口预先标记为已发送

    距开始不足 3 小时 -> 跳过 24h 提醒; 不足 1 小时 -> 3h 提醒也跳过。
    1~3 小时之间的面谈仍会等到自己的 3h 窗口。
    """
    hours = hours_until(interview, now, tz)

    if hours < 3 and not interview.reminder_24h_sent:
        await store.mark_reminder_sent(interview.interview_id, ReminderKind.H24)
        interview.reminder_24h_sent = True
        logger.warning(f"面谈 {interview.interview_id} 在开始前不足 3 小时新增, 跳过 24h 提醒")

    if hours < 1 and not interview.reminder_3h_sent:
        await store.mark_reminder_sent(interview.interview_id, ReminderKind.H3)
        interview.reminder_3h_sent = True
        logger.warning(f"面谈 {interview.interview_id} 在开始前不足 1 小时新增, 跳过 3h 提醒")

    return interview
