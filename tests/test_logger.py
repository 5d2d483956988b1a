import logging
import sys

import pytest

from interview_bot.logger import error_log_path, logger, normalize_level, setup_logging


@pytest.fixture
def configured(tmp_path):
    log_file = tmp_path / "logs" / "bot.log"
    setup_logging(log_level="DEBUG", log_file=log_file, console_level="WARNING")
    yield log_file
    logger.remove()
    logger.add(sys.stderr)


def test_error_log_path():
    assert str(error_log_path("logs/interview_bot.log")).endswith("interview_bot_error.log")


@pytest.mark.parametrize("raw, expected", [("fatal", "CRITICAL"), ("warn", "WARNING"), (" info ", "INFO")])
def test_normalize_level(raw, expected):
    assert normalize_level(raw) == expected


def test_errors_land_in_both_files(configured):
    logger.debug("debug only")
    logger.error("push failed")

    main = configured.read_text(encoding="utf-8")
    errors = error_log_path(configured).read_text(encoding="utf-8")
    assert "debug only" in main and "push failed" in main
    assert "push failed" in errors and "debug only" not in errors


def test_uvicorn_records_are_forwarded(configured):
    logging.getLogger("uvicorn.error").error("server crashed")
    assert "server crashed" in error_log_path(configured).read_text(encoding="utf-8")
