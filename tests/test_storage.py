from datetime import date, time

import pytest

import interview_bot.storage.contact as contact_storage
import interview_bot.storage.db_config as db_config
import interview_bot.storage.interview as interview_storage
from interview_bot.datamodel import ReminderKind

from helpers import NOW, hours, insert_interview, user_id


async def test_create_starts_with_both_flags_unset(db):
    interview = await interview_storage.create_interview(
        owner_id=user_id(1),
        interviewee_name="約翰",
        interviewer_name="陳佑庭",
        interview_date=date(2026, 3, 11),
        interview_time=time(14, 30),
        reason=None,
    )

    assert interview.interview_id == 1
    assert interview.interview_time == time(14, 30, 0)
    assert interview.reminder_24h_sent is False
    assert interview.reminder_3h_sent is False
    assert interview.to_dict()["interview_time"] == "14:30:00"


async def test_list_by_owner_is_ordered_and_scoped(db):
    await insert_interview(NOW + hours(48), interviewee_name="後")
    await insert_interview(NOW + hours(5), interviewee_name="前")
    await insert_interview(NOW + hours(6), owner_id=user_id(2), interviewee_name="他人")

    names = [i.interviewee_name for i in await interview_storage.list_interviews_by_owner(user_id(1))]

    assert names == ["前", "後"]


async def test_update_is_restricted_to_owner(db):
    interview = await insert_interview(NOW + hours(10))

    assert await interview_storage.update_interview(user_id(2), interview.interview_id, {"reason": "x"}) is None
    updated = await interview_storage.update_interview(user_id(1), interview.interview_id, {"reason": "改期"})

    assert updated.reason == "改期"


async def test_update_rejects_flag_columns(db):
    interview = await insert_interview(NOW + hours(10))
    with pytest.raises(ValueError):
        await interview_storage.update_interview(user_id(1), interview.interview_id, {"reminder_24h_sent": 1})


async def test_delete_is_restricted_to_owner(db):
    interview = await insert_interview(NOW + hours(10))

    assert await interview_storage.delete_interview(user_id(2), interview.interview_id) is False
    assert await interview_storage.delete_interview(user_id(1), interview.interview_id) is True
    assert await interview_storage.get_interview(interview.interview_id) is None


async def test_mark_reminder_sent_is_idempotent(db):
    interview = await insert_interview(NOW + hours(10))

    await interview_storage.mark_reminder_sent(interview.interview_id, ReminderKind.H24)
    await interview_storage.mark_reminder_sent(interview.interview_id, ReminderKind.H24)

    stored = await interview_storage.get_interview(interview.interview_id)
    assert stored.reminder_24h_sent is True
    assert stored.reminder_3h_sent is False


async def test_pending_query_skips_finished_and_past(db):
    await insert_interview(NOW + hours(10), interviewee_name="待提醒")
    await insert_interview(NOW + hours(10), interviewee_name="已完成", reminder_24h_sent=True, reminder_3h_sent=True)
    await insert_interview(NOW + hours(10), interviewee_name="半完成", reminder_24h_sent=True)
    await insert_interview(NOW - hours(48), interviewee_name="過去")

    pending = await interview_storage.list_pending_reminder_interviews("2026-03-10")

    assert [i.interviewee_name for i in pending] == ["待提醒", "半完成"]


async def test_count_interviews(db):
    await insert_interview(NOW + hours(10))
    await insert_interview(NOW + hours(20))
    assert await interview_storage.count_interviews() == 2


async def test_store_not_ready_without_init():
    assert db_config.conn is None
    with pytest.raises(db_config.StoreNotReadyError):
        await interview_storage.count_interviews()


async def test_schema_version_after_init(db):
    async with db.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
    assert row[0] == 3


class TestContacts:
    async def test_follow_unfollow_refollow(self, db):
        await contact_storage.record_user(user_id(1))
        await contact_storage.record_user(user_id(2))
        await contact_storage.set_user_inactive(user_id(1))

        assert await contact_storage.list_active_user_ids() == [user_id(2)]

        await contact_storage.record_user(user_id(1))
        assert await contact_storage.list_active_user_ids() == [user_id(1), user_id(2)]

        tracked = await contact_storage.list_tracked_users()
        assert [c.contact_id for c in tracked] == [user_id(1), user_id(2)]
        assert all(c.active for c in tracked)

    async def test_group_join_leave(self, db):
        await contact_storage.record_group("C" + "a" * 32)
        await contact_storage.set_group_inactive("C" + "a" * 32)

        assert await contact_storage.list_active_group_ids() == []
        assert [c.active for c in await contact_storage.list_tracked_groups()] == [False]

    async def test_empty_ids_are_ignored(self, db):
        await contact_storage.record_user("")
        assert await contact_storage.list_tracked_users() == []

    async def test_interview_owner_ids_are_distinct(self, db):
        await insert_interview(NOW + hours(10), owner_id=user_id(3))
        await insert_interview(NOW + hours(11), owner_id=user_id(4))
        await insert_interview(NOW + hours(12), owner_id=user_id(3))

        assert await contact_storage.list_interview_owner_ids() == [user_id(3), user_id(4)]


async def test_create_raises_when_row_cannot_be_read_back(db, monkeypatch):
    async def missing(interview_id):
        return None

    monkeypatch.setattr(interview_storage, "get_interview", missing)

    with pytest.raises(RuntimeError):
        await interview_storage.create_interview(
            owner_id=user_id(1),
            interviewee_name="約翰",
            interviewer_name=None,
            interview_date=date(2026, 3, 11),
            interview_time=time(14, 30),
            reason=None,
        )
