"""管理 API 的日志查看: 读取主日志或 _error 日志的末尾若干行并按级别/关键字过滤"""

from __future__ import annotations

import re
from collections import deque
from pathlib import Path

from interview_bot.logger import error_log_path

__all__ = ["LOG_STREAMS", "MAX_TAIL_LINES", "tail_lines", "filter_logs", "read_logs"]

LOG_STREAMS = ("main", "error")
MAX_TAIL_LINES = 5000

# 与 logger.FILE_FORMAT 对应: "时间 | LEVEL    | 位置 - 消息"
_LEVEL_FIELD = re.compile(r"\|\s*([A-Z]+)\s*\|")
_KNOWN_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def tail_lines(path: Path, count: int) -> list[str]:
    if not path.is_file():
        return []
    with path.open("r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\n") for line in deque(f, maxlen=count)]


def _wanted_levels(levels: list[str] | None) -> frozenset[str]:
    return frozenset(lv.strip().upper() for lv in levels or ()) & _KNOWN_LEVELS


def filter_logs(lines: list[str], levels: list[str] | None = None, keyword: str | None = None) -> list[str]:
    wanted = _wanted_levels(levels)
    needle = (keyword or "").strip().lower()
    if not wanted and not needle:
        return lines

    def keep(line: str) -> bool:
        if wanted:
            match = _LEVEL_FIELD.search(line)
            if match is None or match.group(1) not in wanted:
                return False
        return not needle or needle in line.lower()

    return [line for line in lines if keep(line)]


def read_logs(
    log_file: str | Path,
    stream: str = "main",
    lines: int = 200,
    levels: list[str] | None = None,
    keyword: str | None = None,
) -> dict:
    if stream not in LOG_STREAMS:
        raise ValueError(f"未知的日志流: {stream}")
    lines = max(1, min(lines, MAX_TAIL_LINES))
    path = error_log_path(log_file) if stream == "error" else Path(log_file)
    return {
        "stream": stream,
        "file": str(path),
        "levels": sorted(_wanted_levels(levels)),
        "q": keyword,
        "lines": filter_logs(tail_lines(path, lines), levels=levels, keyword=keyword),
    }
