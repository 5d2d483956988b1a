from dataclasses import replace

import pytest

from interview_bot.config.settings import Settings
from interview_bot.reminders.dispatcher import NotificationDispatcher
from interview_bot.reminders.orchestrator import ReminderOrchestrator
from interview_bot.reminders.recipients import BroadcastPolicy
from interview_bot.reminders.trigger import TriggerMode, TriggerStatus, invoke_trigger, parse_mode

from helpers import NOW, FakeChannel, FakeDirectory, hours, insert_interview, user_id

BASE = Settings(channel_access_token="test-token", cron_api_key="cron-key")


def make_orchestrator(settings=BASE, channel=None):
    policy = BroadcastPolicy(settings, FakeDirectory(users=[user_id(1)]))
    return ReminderOrchestrator(settings, NotificationDispatcher(channel or FakeChannel()), policy, clock=lambda: NOW)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, TriggerMode.PROCESS_DUE),
        ("", TriggerMode.PROCESS_DUE),
        ("reminders", TriggerMode.PROCESS_DUE),
        ("process-due-reminders", TriggerMode.PROCESS_DUE),
        ("interview-list", TriggerMode.BROADCAST_LIST),
        ("Broadcast-Full-List", TriggerMode.BROADCAST_LIST),
        ("everything", None),
    ],
)
def test_parse_mode(raw, expected):
    assert parse_mode(raw) is expected


async def test_wrong_key_is_rejected_before_config_check():
    outcome = await invoke_trigger(make_orchestrator(), None, "nope")

    assert outcome.status is TriggerStatus.UNAUTHORIZED
    assert outcome.to_payload()["success"] is False


async def test_missing_database_is_misconfigured():
    outcome = await invoke_trigger(make_orchestrator(), None, "cron-key")

    assert outcome.status is TriggerStatus.MISCONFIGURED
    assert "database" in outcome.detail


async def test_missing_token_is_misconfigured(db):
    orchestrator = make_orchestrator(replace(BASE, channel_access_token=""))

    outcome = await invoke_trigger(orchestrator, None, "cron-key")

    assert outcome.status is TriggerStatus.MISCONFIGURED
    assert outcome.to_payload()["error"] == "Server config error"


async def test_unknown_mode_is_bad_request(db):
    outcome = await invoke_trigger(make_orchestrator(), "everything", "cron-key")
    assert outcome.status is TriggerStatus.BAD_REQUEST


async def test_no_key_configured_accepts_any_caller(db):
    orchestrator = make_orchestrator(replace(BASE, cron_api_key=""))
    outcome = await invoke_trigger(orchestrator, None, None)
    assert outcome.status is TriggerStatus.OK


async def test_process_due_reports_totals(db):
    channel = FakeChannel()
    await insert_interview(NOW + hours(24))

    outcome = await invoke_trigger(make_orchestrator(channel=channel), "process-due-reminders", "cron-key")

    payload = outcome.to_payload()
    assert outcome.status is TriggerStatus.OK
    assert payload["success"] is True
    assert payload["totalSent"] == 1
    assert payload["errors"] == []
    assert payload["mode"] == "process-due-reminders"
    assert payload["timestamp"].startswith("2026-03-10T14:35:00")


async def test_broadcast_mode_reports_interview_count(db):
    await insert_interview(NOW + hours(40))

    outcome = await invoke_trigger(make_orchestrator(), "interview-list", "cron-key")

    payload = outcome.to_payload()
    assert payload["mode"] == "broadcast-full-list"
    assert payload["interviewCount"] == 1
    assert payload["totalSent"] == 1
