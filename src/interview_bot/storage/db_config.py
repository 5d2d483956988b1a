import os
from pathlib import Path

import aiosqlite

from interview_bot.logger import logger

_SQL_DIR = Path(__file__).with_name("sql")

conn: aiosqlite.Connection | None = None


class StoreNotReadyError(RuntimeError):
    """数据库尚未初始化 (属于配置错误, 而非查询失败)"""


def ensure_conn() -> aiosqlite.Connection:
    if conn is None:
        raise StoreNotReadyError("数据库未初始化，请先调用 init_db()")
    return conn


async def _column_exists(table: str, column: str) -> bool:
    async with conn.execute(f"PRAGMA table_info({table})") as cursor:
        async for row in cursor:
            if row[1] == column:
                return True
    return False


async def _run_script(name: str) -> None:
    init_sql = (_SQL_DIR / name).read_text(encoding="utf-8")
    await conn.executescript(init_sql)


async def init_db(db_path: str) -> None:
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir, exist_ok=True)
    global conn
    conn = await aiosqlite.connect(db_path)

    async with conn.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
        user_version = row[0]

    if user_version == 0:
        await _run_script("db_init_v1.sql")
        await conn.execute("PRAGMA user_version = 1")

    if user_version < 2:  # 面谈者字段
        if not await _column_exists("interviews", "interviewer_name"):
            await conn.execute("ALTER TABLE interviews ADD COLUMN interviewer_name TEXT")
        await conn.execute("CREATE INDEX IF NOT EXISTS idx_interviews_interviewer ON interviews (interviewer_name)")
        await conn.execute("PRAGMA user_version = 2")

    if user_version < 3:  # 联系人追踪
        await _run_script("db_contacts_v3.sql")
        await conn.execute("PRAGMA user_version = 3")

    # 数据库升级逻辑可以在这里继续添加
    await conn.commit()
    logger.info(f"数据库已就绪: {db_path}, schema 版本 {max(user_version, 3)}")


async def close_db() -> None:
    global conn
    if conn is not None:
        await conn.close()
        conn = None


__all__ = ["conn", "init_db", "close_db", "ensure_conn", "StoreNotReadyError"]
