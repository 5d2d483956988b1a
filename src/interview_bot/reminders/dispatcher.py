from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from interview_bot.channels.base import DeliveryError, PushChannel
from interview_bot.logger import logger
from interview_bot.reminders.recipients import InvalidRecipientError, Recipient, RecipientCandidate

__all__ = ["FailureCategory", "DeliveryResult", "NotificationDispatcher"]


class FailureCategory(str, Enum):
    VALIDATION = "validation"  # id 格式错误, 未调用推送通道
    DELIVERY = "delivery"      # 平台拒绝或超时


@dataclass
class DeliveryResult:
    candidate: RecipientCandidate
    ok: bool
    reason: str | None = None
    category: FailureCategory | None = None

    def error_line(self) -> str:
        return f"{self.candidate.kind.label} {self.candidate.raw_id}: {self.reason}"


class NotificationDispatcher:
    """向单个收件人推送一条消息; 每次调用最多一次推送, 不重试"""

    def __init__(self, channel: PushChannel):
        self._channel = channel

    async def send(self, candidate: RecipientCandidate, text: str) -> DeliveryResult:
        try:
            recipient = Recipient.parse(candidate.kind, candidate.raw_id)
        except InvalidRecipientError as e:
            logger.warning(f"跳过 {candidate.kind.value} {candidate.raw_id!r}: {e}")
            return DeliveryResult(candidate, ok=False, reason=str(e), category=FailureCategory.VALIDATION)

        try:
            await self._channel.push_text(recipient.recipient_id, text)
        except DeliveryError as e:
            logger.error(f"推送失败: {recipient.kind.value} {recipient.recipient_id}, {e.reason}")
            return DeliveryResult(candidate, ok=False, reason=e.reason, category=FailureCategory.DELIVERY)
        except Exception as e:
            # 通道的非预期异常也只算这一个收件人失败, 其余收件人的结果照常汇总
            logger.opt(exception=e).error(f"推送异常: {recipient.kind.value} {recipient.recipient_id}, {e}")
            return DeliveryResult(candidate, ok=False, reason=str(e), category=FailureCategory.DELIVERY)

        logger.debug(f"已推送给 {recipient.kind.value} {recipient.recipient_id}")
        return DeliveryResult(candidate, ok=True)

    async def send_all(self, candidates: Iterable[RecipientCandidate], text: str) -> list[DeliveryResult]:
        """并发扇出, 单个收件人失败不影响其他收件人"""
        return list(await asyncio.gather(*(self.send(c, text) for c in candidates)))
