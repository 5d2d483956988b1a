"""提醒编排

每轮 (cycle) 的流程: 读取候选 -> 窗口分类 -> 扇出推送 -> 回写标记 -> 汇总报告。
两轮之间除数据库中的提醒标记外不保留任何状态, 因此先后重复触发是安全的:
下一轮会重新读取标记, 已写入 True 的面谈自然被跳过。
两轮在时间上重叠时 (都在对方写标记前读取), 同一提醒可能被推送两次。

至少一个收件人送达后才写标记。若推送成功而写标记失败, 下一轮会重复提醒一次,
宁可重复也不漏发。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import aiosqlite

import interview_bot.storage.interview as interview_storage
from interview_bot.config.settings import Settings
from interview_bot.datamodel import Interview, ReminderKind
from interview_bot.logger import logger
from interview_bot.metrics import runtime_metrics
from interview_bot.reminders.dispatcher import DeliveryResult, NotificationDispatcher
from interview_bot.reminders.messages import format_interview_list_broadcast, format_reminder_message
from interview_bot.reminders.recipients import RecipientPolicy
from interview_bot.reminders.window import classify_due_reminders
from interview_bot.utils import now_in_tz, today_str

__all__ = ["CycleReport", "ReminderCycleError", "ReminderOrchestrator"]


class ReminderCycleError(RuntimeError):
    """读取候选面谈失败, 本轮未做任何改动"""


@dataclass
class CycleReport:
    timestamp: datetime
    total_sent: int = 0
    errors: list[str] = field(default_factory=list)
    due_24h: int = 0
    due_3h: int = 0
    interview_count: int | None = None

    def to_dict(self) -> dict:
        payload = {
            "totalSent": self.total_sent,
            "errors": list(self.errors),
            "timestamp": self.timestamp.isoformat(),
            "due24h": self.due_24h,
            "due3h": self.due_3h,
        }
        if self.interview_count is not None:
            payload["interviewCount"] = self.interview_count
        return payload


class ReminderOrchestrator:
    def __init__(
        self,
        settings: Settings,
        dispatcher: NotificationDispatcher,
        policy: RecipientPolicy,
        clock: Callable[[], datetime] | None = None,
        store=interview_storage,
    ):
        self.settings = settings
        self.policy = policy
        self._dispatcher = dispatcher
        self._tz = settings.tz
        self._clock = clock or (lambda: now_in_tz(self._tz))
        self._store = store

    def now(self) -> datetime:
        return self._clock()

    async def _fetch(self, loader, today: str) -> list[Interview]:
        try:
            return await loader(today)
        except (aiosqlite.Error, ValueError) as e:
            logger.opt(exception=e).error(f"读取面谈失败: {e}")
            runtime_metrics.record_cycle(error=True)
            raise ReminderCycleError(f"讀取面談失敗: {e}") from e

    async def run_cycle(self) -> CycleReport:
        """处理当前到期的 24h / 3h 提醒"""
        now = self.now()
        logger.info(f"开始处理提醒, now={now.isoformat()}")

        candidates = await self._fetch(self._store.list_pending_reminder_interviews, today_str(now, self._tz))
        logger.debug(f"候选面谈 {len(candidates)} 个")

        due = classify_due_reminders(now, candidates, self._tz)
        report = CycleReport(timestamp=now, due_24h=len(due.due_24h), due_3h=len(due.due_3h))
        logger.info(f"24h 待提醒 {report.due_24h} 个, 3h 待提醒 {report.due_3h} 个")

        if report.due_24h or report.due_3h:
            await self.policy.refresh()
            for kind, interviews in due.items():
                for interview in interviews:
                    await self._process_one(interview, kind, report)

        if report.total_sent > 0:
            logger.info(f"本轮共推送 {report.total_sent} 条提醒")
        else:
            logger.info("本轮没有需要推送的提醒")
        runtime_metrics.record_cycle()
        return report

    async def _process_one(self, interview: Interview, kind: ReminderKind, report: CycleReport) -> None:
        tag = f"{kind.value} reminder for interview {interview.interview_id}"
        logger.info(
            f"处理 {tag}: {interview.interviewee_name} @ {interview.interview_date} {interview.interview_time}"
        )

        candidates = self.policy.resolve(interview)
        if not candidates:
            logger.warning(f"{tag}: 没有可用的收件人")
            report.errors.append(f"{tag}: no recipients configured")
            return

        try:
            results = await self._dispatcher.send_all(candidates, format_reminder_message(interview, kind))
        except Exception as e:
            logger.opt(exception=e).error(f"{tag} 推送异常: {e}")
            report.errors.append(f"{tag}: {e}")
            return

        sent = self._collect(results, report)
        if sent == 0:
            logger.error(f"{tag}: 所有收件人均推送失败, 标记保持未发送, 下一轮重试")
            report.errors.append(f"{tag}: no recipient reached")
            return

        try:
            await self._store.mark_reminder_sent(interview.interview_id, kind)
        except Exception as e:
            logger.opt(exception=e).error(f"{tag} 已推送但写入标记失败, 下一轮可能重复提醒: {e}")
            report.errors.append(f"{tag}: sent to {sent} recipients but failed to persist flag: {e}")
        else:
            logger.info(f"{tag} 已推送给 {sent} 个收件人")

        report.total_sent += sent

    @staticmethod
    def _collect(results: list[DeliveryResult], report: CycleReport) -> int:
        sent = sum(1 for r in results if r.ok)
        failures = [r for r in results if not r.ok]
        report.errors.extend(r.error_line() for r in failures)
        runtime_metrics.record_deliveries(sent=sent, failed=len(failures))
        return sent

    async def broadcast_interview_list(self) -> CycleReport:
        """把今天起的全部面谈清单推送给所有收件人"""
        now = self.now()
        logger.info("发送面谈清单给所有收件人...")
        interviews = await self._fetch(self._store.list_upcoming_interviews, today_str(now, self._tz))
        text = format_interview_list_broadcast(interviews, self.settings.list_message_max_len)

        report = CycleReport(timestamp=now, interview_count=len(interviews))
        await self.policy.refresh()
        results = await self._dispatcher.send_all(self.policy.resolve(None), text)
        report.total_sent = self._collect(results, report)
        runtime_metrics.record_list_broadcast()
        logger.info(f"面谈清单已推送给 {report.total_sent} 个收件人 (共 {len(interviews)} 笔面谈)")
        return report
