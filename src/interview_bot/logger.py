"""日志模块

三个输出: 控制台、主日志文件 (按大小轮转)、只收 ERROR 以上的 `_error` 文件。
uvicorn / httpx 走标准库 logging, 由 _StdlibInterceptHandler 转发到 loguru, 一并落盘。

使用: 进程启动时调用一次 setup_logging, 其余模块 `from interview_bot.logger import logger`
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Literal, Union

from loguru import logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL", "FATAL"]

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level:<8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# admin/log_view.py 依赖 "| LEVEL |" 这一段来按级别过滤
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}"

_LEVEL_ALIAS = {"FATAL": "CRITICAL", "WARN": "WARNING"}

# 转发到 loguru 的第三方 logger
_INTERCEPTED = ("uvicorn", "uvicorn.error", "httpx")


def normalize_level(level: Union[str, LogLevel]) -> str:
    name = str(level).strip().upper()
    return _LEVEL_ALIAS.get(name, name)


def error_log_path(log_file: Union[str, Path]) -> Path:
    """错误日志与主日志同目录, 文件名追加 `_error`"""
    log_file = Path(log_file)
    return log_file.with_name(f"{log_file.stem}_error{log_file.suffix}")


class _StdlibInterceptHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def _rotating_file(path: Path, level: str, retention: str) -> dict:
    return {
        "sink": path,
        "level": level,
        "format": FILE_FORMAT,
        "rotation": "10 MB",
        "retention": retention,
        "compression": "zip",
        "encoding": "utf-8",
    }


def setup_logging(
    log_level: LogLevel,
    log_file: Union[str, Path],
    console_level: LogLevel = "INFO",
) -> None:
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger.configure(
        handlers=[
            {
                "sink": sys.stderr,
                "level": normalize_level(console_level),
                "format": CONSOLE_FORMAT,
                "colorize": True,
            },
            _rotating_file(log_file, normalize_level(log_level), "30 days"),
            _rotating_file(error_log_path(log_file), "ERROR", "90 days"),
        ]
    )

    for name in _INTERCEPTED:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [_StdlibInterceptHandler()]
        std_logger.propagate = False
    # httpx 每个请求都会打 INFO, 只保留警告以上
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["setup_logging", "error_log_path", "normalize_level", "logger"]
