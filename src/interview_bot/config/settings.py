"""运行配置

所有配置在启动时由 load_settings() 一次性读入 Settings, 之后显式传给各组件,
测试中可以直接构造 Settings 得到互不干扰的多份配置。
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from interview_bot.logger import logger

__all__ = ["Settings", "load_settings", "RECIPIENT_POLICIES"]

RECIPIENT_POLICIES = ("auto", "broadcast", "legacy")


def _parse_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on", "y")


def _parse_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"{name} 非法: {raw}, 已回退到 {default}")
        return default


def _parse_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name} 非法: {raw}, 已回退到 {default}")
        return default


def _parse_list(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    # LINE Messaging API
    channel_access_token: str = ""
    channel_secret: str = ""
    line_api_base_url: str = "https://api.line.me"
    line_push_timeout_seconds: float = 10.0

    # 存储与时区
    db_path: str = "data/interviews.db"
    org_timezone: str = "Asia/Taipei"

    # 提醒触发与收件人
    cron_api_key: str = ""
    president_user_id: str = ""
    group_id: str = ""
    group_ids: tuple[str, ...] = field(default_factory=tuple)
    enable_contact_tracking: bool = True
    recipient_policy: str = "auto"
    enable_reminder_loop: bool = False
    reminder_interval_seconds: int = 600
    list_message_max_len: int = 4500

    # HTTP / 管理
    http_host: str = "0.0.0.0"
    http_port: int = 3000
    admin_auth_token: str = ""

    # 日志
    log_file: str = "logs/interview_bot.log"
    log_level: str = "DEBUG"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.org_timezone)

    @property
    def line_configured(self) -> bool:
        return self.channel_access_token != ""

    def effective_recipient_policy(self) -> str:
        """auto: 启用联系人追踪时广播, 否则退回旧版定向推送"""
        if self.recipient_policy == "auto":
            return "broadcast" if self.enable_contact_tracking else "legacy"
        return self.recipient_policy

    def fallback_group_ids(self) -> list[str]:
        """GROUP_ID 与 GROUP_IDS 合并去重, 保持配置顺序"""
        merged: list[str] = []
        for gid in (self.group_id, *self.group_ids):
            gid = gid.strip()
            if gid and gid not in merged:
                merged.append(gid)
        return merged


def load_settings() -> Settings:
    load_dotenv()

    recipient_policy = os.getenv("RECIPIENT_POLICY", "auto").strip().lower()
    if recipient_policy not in RECIPIENT_POLICIES:
        logger.warning(f"RECIPIENT_POLICY 非法: {recipient_policy}, 已回退到 auto")
        recipient_policy = "auto"

    org_timezone = os.getenv("ORG_TIMEZONE", "Asia/Taipei").strip()
    try:
        ZoneInfo(org_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"ORG_TIMEZONE 非法: {org_timezone}, 已回退到 Asia/Taipei")
        org_timezone = "Asia/Taipei"

    settings = Settings(
        channel_access_token=os.getenv("CHANNEL_ACCESS_TOKEN", ""),
        channel_secret=os.getenv("CHANNEL_SECRET", ""),
        line_api_base_url=os.getenv("LINE_API_BASE_URL", "https://api.line.me").rstrip("/"),
        line_push_timeout_seconds=_parse_float("LINE_PUSH_TIMEOUT_SECONDS", 10.0),
        db_path=os.getenv("DB_PATH", "data/interviews.db"),
        org_timezone=org_timezone,
        cron_api_key=os.getenv("CRON_API_KEY", ""),
        president_user_id=os.getenv("PRESIDENT_LINE_USER_ID", "").strip(),
        group_id=os.getenv("GROUP_ID", "").strip(),
        group_ids=_parse_list("GROUP_IDS"),
        enable_contact_tracking=_parse_bool("ENABLE_CONTACT_TRACKING", True),
        recipient_policy=recipient_policy,
        enable_reminder_loop=_parse_bool("ENABLE_REMINDER_LOOP", False),
        reminder_interval_seconds=max(1, _parse_int("REMINDER_INTERVAL_SECONDS", 600)),
        http_host=os.getenv("HTTP_HOST", "0.0.0.0"),
        http_port=_parse_int("HTTP_PORT", 3000),
        admin_auth_token=os.getenv("ADMIN_AUTH_TOKEN", ""),
        log_file=os.getenv("LOG_FILE", "logs/interview_bot.log"),
        log_level=os.getenv("LOG_LEVEL", "DEBUG").strip().upper(),
    )

    if not settings.line_configured:
        logger.warning("未设置 CHANNEL_ACCESS_TOKEN, 提醒推送将不可用")
    if settings.channel_secret == "":
        logger.warning("未设置 CHANNEL_SECRET, LINE Webhook 将拒绝所有请求")
    if settings.president_user_id == "":
        logger.warning("未设置 PRESIDENT_LINE_USER_ID")
    if settings.cron_api_key == "":
        logger.warning("未设置 CRON_API_KEY, /trigger-reminders 不做鉴权")

    return settings
