"""外部定时器的触发入口

鉴权、配置检查都发生在访问数据库之前; 结果用 TriggerStatus 区分,
由 HTTP 层映射为不同的状态码。
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import interview_bot.storage.db_config as db_config
from interview_bot.logger import logger
from interview_bot.reminders.orchestrator import CycleReport, ReminderCycleError, ReminderOrchestrator

__all__ = ["TriggerMode", "TriggerStatus", "TriggerOutcome", "parse_mode", "invoke_trigger"]


class TriggerMode(str, Enum):
    PROCESS_DUE = "process-due-reminders"
    BROADCAST_LIST = "broadcast-full-list"


_MODE_ALIASES = {
    "": TriggerMode.PROCESS_DUE,
    "reminders": TriggerMode.PROCESS_DUE,
    "process-due-reminders": TriggerMode.PROCESS_DUE,
    "interview-list": TriggerMode.BROADCAST_LIST,
    "broadcast-full-list": TriggerMode.BROADCAST_LIST,
}


class TriggerStatus(str, Enum):
    OK = "ok"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    MISCONFIGURED = "misconfigured"
    FAILED = "failed"


@dataclass
class TriggerOutcome:
    status: TriggerStatus
    mode: TriggerMode | None = None
    report: CycleReport | None = None
    error: str | None = None
    detail: str | None = None

    def to_payload(self) -> dict:
        payload: dict = {"success": self.status is TriggerStatus.OK}
        if self.report is not None:
            payload.update(self.report.to_dict())
        else:
            payload["timestamp"] = datetime.now(timezone.utc).isoformat()
        if self.mode is not None:
            payload["mode"] = self.mode.value
        if self.error is not None:
            payload["error"] = self.error
        if self.detail is not None:
            payload["detail"] = self.detail
        return payload


def parse_mode(raw: str | None) -> TriggerMode | None:
    return _MODE_ALIASES.get((raw or "").strip().lower())


def _key_matches(provided: str | None, expected: str) -> bool:
    if not expected:
        return True
    return hmac.compare_digest((provided or "").encode("utf-8"), expected.encode("utf-8"))


async def invoke_trigger(
    orchestrator: ReminderOrchestrator,
    mode_raw: str | None,
    api_key: str | None,
) -> TriggerOutcome:
    settings = orchestrator.settings

    if not _key_matches(api_key, settings.cron_api_key):
        logger.warning("提醒触发请求的 API key 无效")
        return TriggerOutcome(TriggerStatus.UNAUTHORIZED, error="Unauthorized")

    mode = parse_mode(mode_raw)
    if mode is None:
        return TriggerOutcome(TriggerStatus.BAD_REQUEST, error="Unknown mode", detail=str(mode_raw))

    if db_config.conn is None or not settings.line_configured:
        missing = []
        if db_config.conn is None:
            missing.append("database")
        if not settings.line_configured:
            missing.append("CHANNEL_ACCESS_TOKEN")
        logger.error(f"提醒触发失败, 缺少配置: {', '.join(missing)}")
        return TriggerOutcome(
            TriggerStatus.MISCONFIGURED,
            mode=mode,
            error="Server config error",
            detail=f"Not configured: {', '.join(missing)}",
        )

    try:
        if mode is TriggerMode.BROADCAST_LIST:
            report = await orchestrator.broadcast_interview_list()
        else:
            report = await orchestrator.run_cycle()
    except db_config.StoreNotReadyError as e:
        return TriggerOutcome(TriggerStatus.MISCONFIGURED, mode=mode, error="Server config error", detail=str(e))
    except ReminderCycleError as e:
        return TriggerOutcome(TriggerStatus.FAILED, mode=mode, error="Failed to process reminders", detail=str(e))

    return TriggerOutcome(TriggerStatus.OK, mode=mode, report=report)
