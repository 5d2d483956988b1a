"""LINE 联系人追踪 (收件人目录)

写入端由 Webhook 事件驱动 (follow/unfollow/join/leave), 读取端只在每轮提醒开始时取一次快照。
"""

import interview_bot.storage.db_config as db_config
from interview_bot.datamodel import TrackedContact
from interview_bot.logger import logger

__all__ = [
    "record_user",
    "record_group",
    "set_user_inactive",
    "set_group_inactive",
    "list_active_user_ids",
    "list_active_group_ids",
    "list_interview_owner_ids",
    "list_tracked_users",
    "list_tracked_groups",
]

_TABLES = {
    "user": ("line_users", "user_id"),
    "group": ("line_groups", "group_id"),
}


async def _upsert_active(kind: str, contact_id: str) -> None:
    table, column = _TABLES[kind]
    conn = db_config.ensure_conn()
    await conn.execute(
        f"INSERT INTO {table} ({column}, active) VALUES (?, 1) "
        f"ON CONFLICT({column}) DO UPDATE SET active = 1, updated_at_utc = CURRENT_TIMESTAMP",
        (contact_id,),
    )
    await conn.commit()


async def _set_inactive(kind: str, contact_id: str) -> None:
    table, column = _TABLES[kind]
    conn = db_config.ensure_conn()
    await conn.execute(
        f"UPDATE {table} SET active = 0, updated_at_utc = CURRENT_TIMESTAMP WHERE {column} = ?",
        (contact_id,),
    )
    await conn.commit()


async def _list_active(kind: str) -> list[str]:
    table, column = _TABLES[kind]
    conn = db_config.ensure_conn()
    async with conn.execute(f"SELECT {column} FROM {table} WHERE active = 1 ORDER BY id ASC") as cursor:
        rows = await cursor.fetchall()
    return [row[0] for row in rows if row[0]]


async def _list_tracked(kind: str) -> list[TrackedContact]:
    table, column = _TABLES[kind]
    conn = db_config.ensure_conn()
    async with conn.execute(
        f"SELECT {column}, active, created_at_utc, updated_at_utc FROM {table} ORDER BY id ASC"
    ) as cursor:
        rows = await cursor.fetchall()
    return [
        TrackedContact(contact_id=row[0], active=bool(row[1]), created_at_utc=row[2], updated_at_utc=row[3])
        for row in rows
    ]


async def record_user(user_id: str) -> None:
    """用户加 Bot 为好友"""
    if not user_id:
        return
    await _upsert_active("user", user_id)
    logger.info(f"记录用户 (follow): {user_id}")


async def record_group(group_id: str) -> None:
    """Bot 被加入群组"""
    if not group_id:
        return
    await _upsert_active("group", group_id)
    logger.info(f"记录群组 (join): {group_id}")


async def set_user_inactive(user_id: str) -> None:
    if not user_id:
        return
    await _set_inactive("user", user_id)
    logger.info(f"用户取消好友 (unfollow): {user_id}")


async def set_group_inactive(group_id: str) -> None:
    if not group_id:
        return
    await _set_inactive("group", group_id)
    logger.info(f"Bot 离开群组 (leave): {group_id}")


async def list_active_user_ids() -> list[str]:
    return await _list_active("user")


async def list_active_group_ids() -> list[str]:
    return await _list_active("group")


async def list_interview_owner_ids() -> list[str]:
    """曾创建过面谈的用户, 联系人追踪尚无数据时作为收件人兜底"""
    conn = db_config.ensure_conn()
    async with conn.execute(
        "SELECT owner_id FROM interviews GROUP BY owner_id ORDER BY MIN(interview_id) ASC"
    ) as cursor:
        rows = await cursor.fetchall()
    return [row[0] for row in rows if row[0]]


async def list_tracked_users() -> list[TrackedContact]:
    return await _list_tracked("user")


async def list_tracked_groups() -> list[TrackedContact]:
    return await _list_tracked("group")
