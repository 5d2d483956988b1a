from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import interview_bot.storage.interview as interview_storage
from interview_bot.channels.base import DeliveryError, PushChannel
from interview_bot.datamodel import Interview, ReminderKind

TZ = ZoneInfo("Asia/Taipei")
NOW = datetime(2026, 3, 10, 14, 35, 0, tzinfo=TZ)


def user_id(n: int) -> str:
    return "U" + f"{n:032x}"


def group_id(n: int) -> str:
    return "C" + f"{n:032x}"


PRESIDENT = user_id(999)
GROUP = group_id(1)


class FakeChannel(PushChannel):
    name = "fake"

    def __init__(self, failing=(), faulty=None):
        self.failing = set(failing)
        # id -> 非 DeliveryError 的异常, 模拟通道内部故障
        self.faulty = dict(faulty or {})
        self.pushed: list[tuple[str, str]] = []
        self.replies: list[tuple[str, str]] = []

    async def push_text(self, to: str, text: str) -> None:
        if to in self.faulty:
            raise self.faulty[to]
        if to in self.failing:
            raise DeliveryError("LINE API 返回 400: rejected", status_code=400)
        self.pushed.append((to, text))

    async def reply_text(self, reply_token: str, text: str) -> None:
        self.replies.append((reply_token, text))

    def pushed_to(self) -> list[str]:
        return [to for to, _ in self.pushed]


class FakeDirectory:
    def __init__(self, users=(), groups=(), owners=()):
        self.users = list(users)
        self.groups = list(groups)
        self.owners = list(owners)

    async def list_active_user_ids(self) -> list[str]:
        return list(self.users)

    async def list_active_group_ids(self) -> list[str]:
        return list(self.groups)

    async def list_interview_owner_ids(self) -> list[str]:
        return list(self.owners)


def make_interview(start: datetime, interview_id: int = 1, owner_id: str = user_id(1), **kwargs) -> Interview:
    local = start.astimezone(TZ)
    return Interview(
        interview_id=interview_id,
        owner_id=owner_id,
        interviewee_name=kwargs.pop("interviewee_name", "約翰"),
        interviewer_name=kwargs.pop("interviewer_name", "陳佑庭"),
        interview_date=local.date(),
        interview_time=local.time().replace(microsecond=0),
        reason=kwargs.pop("reason", "聖殿推薦書面談"),
        **kwargs,
    )


async def insert_interview(
    start: datetime,
    owner_id: str = user_id(1),
    reminder_24h_sent: bool = False,
    reminder_3h_sent: bool = False,
    interviewee_name: str = "約翰",
) -> Interview:
    local = start.astimezone(TZ)
    interview = await interview_storage.create_interview(
        owner_id=owner_id,
        interviewee_name=interviewee_name,
        interviewer_name="陳佑庭",
        interview_date=local.date(),
        interview_time=local.time().replace(microsecond=0),
        reason="聖殿推薦書面談",
    )
    if reminder_24h_sent:
        await interview_storage.mark_reminder_sent(interview.interview_id, ReminderKind.H24)
    if reminder_3h_sent:
        await interview_storage.mark_reminder_sent(interview.interview_id, ReminderKind.H3)
    return await interview_storage.get_interview(interview.interview_id)


def hours(n: float) -> timedelta:
    return timedelta(hours=n)
