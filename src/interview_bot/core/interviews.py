"""面谈的增删改查 (含输入清洗与新增后的迟建保护)"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import interview_bot.storage.interview as interview_storage
from interview_bot.datamodel import Interview
from interview_bot.logger import logger
from interview_bot.reminders.guard import apply_late_creation_guard
from interview_bot.utils import now_in_tz

__all__ = [
    "InterviewInputError",
    "FIELD_LABELS",
    "sanitize_text",
    "validate_name",
    "parse_date",
    "parse_time",
    "add_interview",
    "list_interviews",
    "update_interview",
    "delete_interview",
]

MAX_NAME_LENGTH = 100

# 指令中使用的中文字段名 -> 数据库列
FIELD_LABELS = {
    "面談對象": "interviewee_name",
    "面談者": "interviewer_name",
    "日期": "interview_date",
    "時間": "interview_time",
    "理由": "reason",
}

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


class InterviewInputError(ValueError):
    """用户输入不合法; 消息文本可直接回复给用户"""


def sanitize_text(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().replace("<", "").replace(">", "")


def validate_name(value: object, label: str) -> str:
    name = sanitize_text(value)
    if not name or len(name) > MAX_NAME_LENGTH:
        raise InterviewInputError(f"{label}姓名無效！請輸入有效的姓名。")
    return name


def parse_date(value: str) -> date:
    value = value.strip()
    if not _DATE_RE.match(value):
        raise InterviewInputError("日期格式錯誤！請使用 YYYY-MM-DD 格式。")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise InterviewInputError("日期格式錯誤！請使用 YYYY-MM-DD 格式。")


def parse_time(value: str) -> time:
    """接受 HH:mm 或 HH:mm:ss, 全角冒号视同半角"""
    value = value.strip().replace("：", ":")
    if not _TIME_RE.match(value):
        raise InterviewInputError("時間格式錯誤！請使用 HH:mm 格式。")
    try:
        return time.fromisoformat(value if value.count(":") == 2 else f"{value}:00")
    except ValueError:
        raise InterviewInputError("時間格式錯誤！請使用 HH:mm 格式。")


def _clean_reason(value: object) -> str | None:
    reason = sanitize_text(value)
    return reason or None


async def add_interview(
    owner_id: str,
    interviewee_name: str,
    interviewer_name: str,
    date_str: str,
    time_str: str,
    reason: str | None,
    tz: ZoneInfo,
    now: datetime | None = None,
) -> Interview:
    interviewee = validate_name(interviewee_name, "面談對象")
    interviewer = validate_name(interviewer_name, "面談者")
    interview_date = parse_date(date_str)
    interview_time = parse_time(time_str)

    interview = await interview_storage.create_interview(
        owner_id=owner_id,
        interviewee_name=interviewee,
        interviewer_name=interviewer,
        interview_date=interview_date,
        interview_time=interview_time,
        reason=_clean_reason(reason),
    )
    logger.info(f"新增面谈: id={interview.interview_id}, owner={owner_id}, {interview_date} {interview_time}")
    return await apply_late_creation_guard(interview, now or now_in_tz(tz), tz)


async def list_interviews(owner_id: str) -> list[Interview]:
    return await interview_storage.list_interviews_by_owner(owner_id)


def _normalize_update(column: str, raw: str) -> object:
    if column == "interviewee_name":
        return validate_name(raw, "面談對象")
    if column == "interviewer_name":
        return validate_name(raw, "面談者")
    if column == "interview_date":
        return parse_date(raw)
    if column == "interview_time":
        return parse_time(raw)
    return _clean_reason(raw)


async def update_interview(owner_id: str, interview_id: int, fields: dict[str, str]) -> Interview | None:
    """fields 的键可以是中文字段名或数据库列名; 找不到或非本人创建时返回 None"""
    updates: dict[str, object] = {}
    for key, raw in fields.items():
        column = FIELD_LABELS.get(key, key)
        if column not in interview_storage.UPDATABLE_FIELDS:
            raise InterviewInputError("無效的欄位！可用欄位：面談對象、面談者、日期、時間、理由")
        updates[column] = _normalize_update(column, raw)
    if not updates:
        raise InterviewInputError("沒有需要更新的欄位。")
    return await interview_storage.update_interview(owner_id, interview_id, updates)


async def delete_interview(owner_id: str, interview_id: int) -> bool:
    return await interview_storage.delete_interview(owner_id, interview_id)
