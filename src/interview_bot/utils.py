from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

__all__ = ["now_utc", "now_in_tz", "today_str", "combine_local",
           "hours_between", "format_date", "format_hhmm"]


def now_utc() -> datetime:
    """获取当前 UTC 时间"""
    return datetime.now(timezone.utc)


def now_in_tz(tz: ZoneInfo) -> datetime:
    """组织时区的当前时间 (aware)"""
    return now_utc().astimezone(tz)


def today_str(now: datetime, tz: ZoneInfo) -> str:
    return now.astimezone(tz).strftime("%Y-%m-%d")


def combine_local(d: date, t: time, tz: ZoneInfo) -> datetime:
    # 面谈的日期+时间总是按组织时区解释
    return datetime.combine(d, t).replace(tzinfo=tz)


def hours_between(start: datetime, end: datetime) -> float:
    """end - start, 单位小时(带小数, 可为负)"""
    return (end - start).total_seconds() / 3600


def format_date(d: date) -> str:
    return d.strftime("%Y-%m-%d")


def format_hhmm(t: time) -> str:
    return t.strftime("%H:%M")
