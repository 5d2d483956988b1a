"""文字指令解析与处理

新增 {面談對象} {面談者} {日期} {時間} {理由}
查看 全部 / 查看全部
更新 {ID} {欄位} {新值}
刪除 {ID}
提醒狀態
help / 幫助
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

import aiosqlite

from interview_bot.core import interviews as interview_service
from interview_bot.core.interviews import InterviewInputError
from interview_bot.logger import logger
from interview_bot.reminders.messages import (
    HELP_TEXT,
    format_interview_list_reply,
    format_reminder_status,
)
from interview_bot.utils import format_date, format_hhmm, now_in_tz

__all__ = [
    "AddCommand", "UpdateCommand", "DeleteCommand",
    "parse_add_command", "parse_update_command", "parse_delete_command",
    "is_help", "is_command", "handle_text_command",
]

_ADD_RE = re.compile(r"新增\s+(\S+)\s+(\S+)\s+(\d{4}-\d{2}-\d{2})\s+(\d{2}[:：]\d{2})\s+(.+)", re.S)
_UPDATE_RE = re.compile(r"更新\s+(\d+)\s+(\S+)\s+(.+)", re.S)
_DELETE_RE = re.compile(r"刪除\s+(\d+)")

_LIST_TEXTS = ("查看 全部", "查看全部")
_STATUS_TEXT = "提醒狀態"

ADD_USAGE = "格式錯誤！請使用：新增 {面談對象} {面談者} {日期} {時間} {理由}\n例如：新增 約翰 陳佑庭 2024-01-15 14:30 聖殿推薦書面談"
UPDATE_USAGE = "格式錯誤！請使用：更新 {ID} {欄位} {新值}\n例如：更新 1 面談對象 約翰"
DELETE_USAGE = "格式錯誤！請使用：刪除 {ID}\n例如：刪除 1"


@dataclass
class AddCommand:
    interviewee_name: str
    interviewer_name: str
    date: str
    time: str  # HH:MM:SS
    reason: str


@dataclass
class UpdateCommand:
    interview_id: int
    field: str
    value: str


@dataclass
class DeleteCommand:
    interview_id: int


def parse_add_command(text: str) -> AddCommand | None:
    match = _ADD_RE.search(text)
    if not match:
        return None
    return AddCommand(
        interviewee_name=match.group(1),
        interviewer_name=match.group(2),
        date=match.group(3),
        time=match.group(4).replace("：", ":") + ":00",
        reason=match.group(5).strip(),
    )


def parse_update_command(text: str) -> UpdateCommand | None:
    match = _UPDATE_RE.search(text)
    if not match:
        return None
    return UpdateCommand(interview_id=int(match.group(1)), field=match.group(2), value=match.group(3).strip())


def parse_delete_command(text: str) -> DeleteCommand | None:
    match = _DELETE_RE.search(text)
    if not match:
        return None
    return DeleteCommand(interview_id=int(match.group(1)))


def is_help(text: str) -> bool:
    stripped = text.strip()
    return stripped.lower() == "help" or stripped == "幫助"


def is_command(text: str) -> bool:
    return (
        is_help(text)
        or text in _LIST_TEXTS
        or text == _STATUS_TEXT
        or text.startswith(("新增", "更新", "刪除"))
    )


async def _handle_add(text: str, user_id: str, tz: ZoneInfo, now: datetime | None) -> str:
    parsed = parse_add_command(text)
    if parsed is None:
        return ADD_USAGE
    try:
        interview = await interview_service.add_interview(
            owner_id=user_id,
            interviewee_name=parsed.interviewee_name,
            interviewer_name=parsed.interviewer_name,
            date_str=parsed.date,
            time_str=parsed.time,
            reason=parsed.reason,
            tz=tz,
            now=now,
        )
    except InterviewInputError as e:
        return str(e)
    return (
        "✅ 面談已成功新增！\n\n"
        f"ID: {interview.interview_id}\n"
        f"面談對象: {interview.interviewee_name}\n"
        f"面談者: {interview.interviewer_name or '未指定'}\n"
        f"日期: {format_date(interview.interview_date)}\n"
        f"時間: {format_hhmm(interview.interview_time)}\n"
        f"理由: {interview.reason or '無'}"
    )


async def _handle_update(text: str, user_id: str) -> str:
    parsed = parse_update_command(text)
    if parsed is None:
        return UPDATE_USAGE
    try:
        updated = await interview_service.update_interview(user_id, parsed.interview_id, {parsed.field: parsed.value})
    except InterviewInputError as e:
        return str(e)
    if updated is None:
        return "更新面談時發生錯誤。請確認 ID 是否正確。"
    return f"✅ 面談已成功更新！\n\nID: {parsed.interview_id}\n{parsed.field}: {parsed.value}"


async def _handle_delete(text: str, user_id: str) -> str:
    parsed = parse_delete_command(text)
    if parsed is None:
        return DELETE_USAGE
    if not await interview_service.delete_interview(user_id, parsed.interview_id):
        return "刪除面談時發生錯誤。請確認 ID 是否正確。"
    return f"✅ 面談 ID {parsed.interview_id} 已成功刪除！"


async def handle_text_command(
    text: str,
    user_id: str,
    tz: ZoneInfo,
    now: datetime | None = None,
) -> str | None:
    """处理一条文字消息, 返回回复文本; 不是指令时返回 None"""
    if is_help(text):
        return HELP_TEXT
    if not is_command(text):
        return None

    try:
        if text in _LIST_TEXTS:
            return format_interview_list_reply(await interview_service.list_interviews(user_id))
        if text == _STATUS_TEXT:
            return format_reminder_status(await interview_service.list_interviews(user_id), now or now_in_tz(tz), tz)
        if text.startswith("新增"):
            return await _handle_add(text, user_id, tz, now)
        if text.startswith("更新"):
            return await _handle_update(text, user_id)
        return await _handle_delete(text, user_id)
    except aiosqlite.Error as e:
        logger.opt(exception=e).error(f"处理指令失败: user={user_id}, text={text!r}, error={e}")
        return "抱歉，處理您的訊息時發生錯誤。請稍後再試。"
