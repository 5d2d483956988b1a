import pytest

from interview_bot.admin.log_view import filter_logs, read_logs

LINES = [
    "2026-03-10 14:35:00.000 | INFO     | reminders.orchestrator:run_cycle:87 - 开始处理提醒",
    "2026-03-10 14:35:01.000 | ERROR    | reminders.dispatcher:send:45 - 推送失败: user U1",
    "2026-03-10 14:35:02.000 | DEBUG    | storage.contact:record_user:99 - 记录用户",
]


def test_filter_by_level_and_keyword():
    assert filter_logs(LINES, levels=["error"]) == [LINES[1]]
    assert filter_logs(LINES, keyword="记录") == [LINES[2]]
    assert filter_logs(LINES, levels=["INFO", "DEBUG"], keyword="提醒") == [LINES[0]]
    assert filter_logs(LINES) == LINES


def test_read_logs_tails_selected_stream(tmp_path):
    log_file = tmp_path / "bot.log"
    log_file.write_text("\n".join(LINES) + "\n", encoding="utf-8")
    (tmp_path / "bot_error.log").write_text(LINES[1] + "\n", encoding="utf-8")

    main = read_logs(log_file, lines=2)
    errors = read_logs(log_file, stream="error")

    assert main["lines"] == LINES[1:]
    assert errors["lines"] == [LINES[1]]
    assert errors["file"].endswith("bot_error.log")


def test_missing_file_and_unknown_stream(tmp_path):
    assert read_logs(tmp_path / "none.log")["lines"] == []
    with pytest.raises(ValueError):
        read_logs(tmp_path / "none.log", stream="audit")
