from __future__ import annotations

import asyncio
from dataclasses import dataclass

from pydantic import BaseModel, Field

from interview_bot.channels.base import PushChannel
from interview_bot.config.settings import Settings
from interview_bot.reminders.orchestrator import ReminderOrchestrator


@dataclass
class AppContext:
    settings: Settings
    orchestrator: ReminderOrchestrator
    channel: PushChannel
    shutdown_event: asyncio.Event
    started_at: float


class SampleInterviewRequest(BaseModel):
    owner_id: str = Field(default="test-user-123")
    interviewee_name: str = Field(default="Test Person")
    interviewer_name: str = Field(default="Test Interviewer")
    reason: str = Field(default="Testing reminder system")
    hours_from_now: float = Field(default=3.0, gt=0, le=24 * 30)
