"""面谈表的读写

除 mark_reminder_sent 外, 所有写操作都限定 owner_id; 提醒标记由后台提醒流程执行, 不受此限制。
"""

from datetime import date, datetime, time
from typing import Any, Iterable

import interview_bot.storage.db_config as db_config
from interview_bot.datamodel import Interview, ReminderKind
from interview_bot.logger import logger

__all__ = [
    "create_interview",
    "get_interview",
    "list_interviews_by_owner",
    "list_upcoming_interviews",
    "list_pending_reminder_interviews",
    "update_interview",
    "delete_interview",
    "mark_reminder_sent",
    "count_interviews",
    "UPDATABLE_FIELDS",
]

UPDATABLE_FIELDS = ("interviewee_name", "interviewer_name", "interview_date", "interview_time", "reason")

_SELECT_COLUMNS = (
    "interview_id, owner_id, interviewee_name, interviewer_name, interview_date, interview_time, "
    "reason, reminder_24h_sent, reminder_3h_sent, created_at_utc, updated_at_utc"
)


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    return datetime.strptime(raw, "%Y-%m-%d %H:%M:%S")


def _row_to_interview(row: Iterable[Any]) -> Interview:
    row = tuple(row)
    return Interview(
        interview_id=row[0],
        owner_id=row[1],
        interviewee_name=row[2],
        interviewer_name=row[3],
        interview_date=date.fromisoformat(row[4]),
        interview_time=time.fromisoformat(row[5]),
        reason=row[6],
        reminder_24h_sent=bool(row[7]),
        reminder_3h_sent=bool(row[8]),
        created_at_utc=_parse_timestamp(row[9]),
        updated_at_utc=_parse_timestamp(row[10]),
    )


def _to_db_value(field: str, value: Any) -> Any:
    if field == "interview_date" and isinstance(value, date):
        return value.isoformat()
    if field == "interview_time" and isinstance(value, time):
        return value.strftime("%H:%M:%S")
    return value


async def _fetch_interviews(sql: str, params: tuple = ()) -> list[Interview]:
    conn = db_config.ensure_conn()
    async with conn.execute(sql, params) as cursor:
        rows = await cursor.fetchall()
    return [_row_to_interview(row) for row in rows]


async def create_interview(
    owner_id: str,
    interviewee_name: str,
    interviewer_name: str | None,
    interview_date: date,
    interview_time: time,
    reason: str | None,
) -> Interview:
    """新增面谈, 两个提醒标记均从 False 开始"""
    conn = db_config.ensure_conn()
    async with conn.execute(
        "INSERT INTO interviews (owner_id, interviewee_name, interviewer_name, interview_date, interview_time, reason) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (
            owner_id,
            interviewee_name,
            interviewer_name,
            _to_db_value("interview_date", interview_date),
            _to_db_value("interview_time", interview_time),
            reason,
        ),
    ) as cursor:
        interview_id = cursor.lastrowid
    await conn.commit()
    logger.trace(f"创建面谈: interview_id={interview_id}, owner_id={owner_id}, date={interview_date}, time={interview_time}")

    interview = await get_interview(interview_id)
    if interview is None:
        raise RuntimeError(f"新增面谈后读取失败: interview_id={interview_id}")
    return interview


async def get_interview(interview_id: int) -> Interview | None:
    rows = await _fetch_interviews(
        f"SELECT {_SELECT_COLUMNS} FROM interviews WHERE interview_id = ?",
        (interview_id,),
    )
    return rows[0] if rows else None


async def list_interviews_by_owner(owner_id: str) -> list[Interview]:
    """按日期、时间升序返回某用户创建的面谈"""
    return await _fetch_interviews(
        f"SELECT {_SELECT_COLUMNS} FROM interviews WHERE owner_id = ? "
        "ORDER BY interview_date ASC, interview_time ASC, interview_id ASC",
        (owner_id,),
    )


async def list_upcoming_interviews(today: str) -> list[Interview]:
    """今天(含)之后的全部面谈, 用于整表广播"""
    return await _fetch_interviews(
        f"SELECT {_SELECT_COLUMNS} FROM interviews WHERE interview_date >= ? "
        "ORDER BY interview_date ASC, interview_time ASC, interview_id ASC",
        (today,),
    )


async def list_pending_reminder_interviews(today: str) -> list[Interview]:
    """至少一个提醒未发送且日期不早于今天的面谈"""
    return await _fetch_interviews(
        f"SELECT {_SELECT_COLUMNS} FROM interviews "
        "WHERE (reminder_24h_sent = 0 OR reminder_3h_sent = 0) AND interview_date >= ? "
        "ORDER BY interview_date ASC, interview_time ASC, interview_id ASC",
        (today,),
    )


async def update_interview(owner_id: str, interview_id: int, updates: dict[str, Any]) -> Interview | None:
    """更新面谈字段; 非本人创建或不存在时返回 None。提醒标记不在可更新字段之列"""
    unknown = set(updates) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValueError(f"不可更新的字段: {sorted(unknown)}")
    if not updates:
        raise ValueError("没有需要更新的字段")

    conn = db_config.ensure_conn()
    assignments = ", ".join(f"{name} = ?" for name in updates)
    params = [_to_db_value(name, value) for name, value in updates.items()]
    async with conn.execute(
        f"UPDATE interviews SET {assignments}, updated_at_utc = CURRENT_TIMESTAMP "
        "WHERE interview_id = ? AND owner_id = ?",
        (*params, interview_id, owner_id),
    ) as cursor:
        changed = cursor.rowcount
    await conn.commit()

    if changed == 0:
        logger.debug(f"更新面谈未命中: interview_id={interview_id}, owner_id={owner_id}")
        return None
    logger.trace(f"更新面谈: interview_id={interview_id}, fields={list(updates)}")
    return await get_interview(interview_id)


async def delete_interview(owner_id: str, interview_id: int) -> bool:
    conn = db_config.ensure_conn()
    async with conn.execute(
        "DELETE FROM interviews WHERE interview_id = ? AND owner_id = ?",
        (interview_id, owner_id),
    ) as cursor:
        deleted = cursor.rowcount
    await conn.commit()
    logger.trace(f"删除面谈: interview_id={interview_id}, owner_id={owner_id}, deleted={deleted}")
    return deleted > 0


async def mark_reminder_sent(interview_id: int, kind: ReminderKind) -> None:
    """将指定提醒标记为已发送; 幂等, 已为 True 时重复写入无副作用"""
    conn = db_config.ensure_conn()
    await conn.execute(
        f"UPDATE interviews SET {kind.flag_column} = 1, updated_at_utc = CURRENT_TIMESTAMP WHERE interview_id = ?",
        (interview_id,),
    )
    await conn.commit()
    logger.trace(f"标记提醒已发送: interview_id={interview_id}, kind={kind.value}")


async def count_interviews() -> int:
    conn = db_config.ensure_conn()
    async with conn.execute("SELECT COUNT(*) FROM interviews") as cursor:
        row = await cursor.fetchone()
    return int(row[0]) if row else 0
