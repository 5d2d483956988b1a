from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

__all__ = [
    "Interview", "ReminderKind", "DueReminders",
    "TrackedContact",
]


# ----------------- Interview 数据模型 ----------------
class ReminderKind(str, Enum):
    H24 = "24h"
    H3 = "3h"

    @property
    def flag_column(self) -> str:
        return "reminder_24h_sent" if self is ReminderKind.H24 else "reminder_3h_sent"

    @property
    def label(self) -> str:
        return "24小時" if self is ReminderKind.H24 else "3小時"


@dataclass
class Interview:
    interview_id: int
    owner_id: str  # 创建者的 LINE user id, 不一定是收件人
    interviewee_name: str
    interview_date: date  # 组织时区的日期
    interview_time: time  # 精确到秒
    interviewer_name: Optional[str] = None
    reason: Optional[str] = None
    reminder_24h_sent: bool = False
    reminder_3h_sent: bool = False
    created_at_utc: Optional[datetime] = None
    updated_at_utc: Optional[datetime] = None

    def is_sent(self, kind: ReminderKind) -> bool:
        return self.reminder_24h_sent if kind is ReminderKind.H24 else self.reminder_3h_sent

    def to_dict(self) -> dict:
        return {
            "id": self.interview_id,
            "user_id": self.owner_id,
            "interviewee_name": self.interviewee_name,
            "interviewer_name": self.interviewer_name,
            "interview_date": self.interview_date.isoformat(),
            "interview_time": self.interview_time.strftime("%H:%M:%S"),
            "reason": self.reason,
            "reminder_24h_sent": self.reminder_24h_sent,
            "reminder_3h_sent": self.reminder_3h_sent,
            "created_at": self.created_at_utc.isoformat() if self.created_at_utc else None,
            "updated_at": self.updated_at_utc.isoformat() if self.updated_at_utc else None,
        }


# ----------------- 提醒窗口分类结果 ----------------
@dataclass
class DueReminders:
    due_24h: list[Interview] = field(default_factory=list)
    due_3h: list[Interview] = field(default_factory=list)

    def items(self) -> list[tuple[ReminderKind, list[Interview]]]:
        return [(ReminderKind.H24, self.due_24h), (ReminderKind.H3, self.due_3h)]


# ----------------- 联系人数据模型 ----------------
@dataclass
class TrackedContact:
    contact_id: str  # LINE user id 或 group id
    active: bool
    created_at_utc: Optional[str] = None
    updated_at_utc: Optional[str] = None
