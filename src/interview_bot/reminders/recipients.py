"""收件人类型与收件人解析策略

LINE 用户 id 以 "U" 开头、群组 id 以 "C" 开头, 长度均为 33。
Recipient 只能经由 Recipient.parse 构造, 保证格式错误的 id 到不了推送通道。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import aiosqlite

import interview_bot.storage.contact as contact_storage
from interview_bot.config.settings import Settings
from interview_bot.datamodel import Interview
from interview_bot.logger import logger

__all__ = [
    "RecipientKind", "Recipient", "RecipientCandidate", "InvalidRecipientError", "is_valid_id",
    "RecipientDirectory", "RecipientPolicy", "BroadcastPolicy", "LegacyTargetedPolicy", "build_policy",
]

_ID_LENGTH = 33


class RecipientKind(str, Enum):
    USER = "user"
    GROUP = "group"

    @property
    def prefix(self) -> str:
        return "U" if self is RecipientKind.USER else "C"

    @property
    def label(self) -> str:
        return "User" if self is RecipientKind.USER else "Group"


class InvalidRecipientError(ValueError):
    def __init__(self, kind: RecipientKind, raw_id: str):
        super().__init__(f"Invalid LINE {kind.value} ID format")
        self.kind = kind
        self.raw_id = raw_id


def is_valid_id(kind: RecipientKind, raw_id: object) -> bool:
    return isinstance(raw_id, str) and len(raw_id) == _ID_LENGTH and raw_id.startswith(kind.prefix)


@dataclass(frozen=True)
class RecipientCandidate:
    """尚未校验的收件人 id, 来自联系人表或配置"""
    kind: RecipientKind
    raw_id: str

    @classmethod
    def user(cls, raw_id: str) -> RecipientCandidate:
        return cls(RecipientKind.USER, raw_id)

    @classmethod
    def group(cls, raw_id: str) -> RecipientCandidate:
        return cls(RecipientKind.GROUP, raw_id)


@dataclass(frozen=True)
class Recipient:
    kind: RecipientKind
    recipient_id: str

    @classmethod
    def parse(cls, kind: RecipientKind, raw_id: str) -> Recipient:
        if not is_valid_id(kind, raw_id):
            raise InvalidRecipientError(kind, raw_id)
        return cls(kind, raw_id)


class RecipientDirectory(Protocol):
    async def list_active_user_ids(self) -> list[str]: ...

    async def list_active_group_ids(self) -> list[str]: ...

    async def list_interview_owner_ids(self) -> list[str]: ...


def _dedupe(candidates: list[RecipientCandidate]) -> list[RecipientCandidate]:
    seen: set[str] = set()
    unique: list[RecipientCandidate] = []
    for candidate in candidates:
        if candidate.raw_id in seen:
            continue
        seen.add(candidate.raw_id)
        unique.append(candidate)
    return unique


class RecipientPolicy(ABC):
    name: str = "policy"

    async def refresh(self) -> None:
        """每轮提醒开始时调用一次, 读取当时的收件人快照"""
        return None

    @abstractmethod
    def resolve(self, interview: Interview | None) -> list[RecipientCandidate]:
        """返回某面谈提醒的收件人; interview 为 None 表示整表广播"""

    def describe(self) -> dict:
        return {"policy": self.name}


class BroadcastPolicy(RecipientPolicy):
    """所有活跃用户 + 所有活跃群组 + 配置中的会长与群组"""

    name = "broadcast"

    def __init__(self, settings: Settings, directory: RecipientDirectory = contact_storage):
        self._settings = settings
        self._directory = directory
        self._snapshot: list[RecipientCandidate] | None = None

    async def _safe_list(self, what: str, loader) -> list[str]:
        try:
            return await loader()
        except aiosqlite.Error as e:
            logger.opt(exception=e).error(f"读取{what}失败, 本轮按空列表处理: {e}")
            return []

    async def refresh(self) -> None:
        user_ids = await self._safe_list("活跃用户", self._directory.list_active_user_ids)
        if not user_ids:
            # 尚无追踪数据时, 退回到所有创建过面谈的用户
            user_ids = await self._safe_list("面谈创建者", self._directory.list_interview_owner_ids)
        group_ids = await self._safe_list("活跃群组", self._directory.list_active_group_ids)

        candidates = [RecipientCandidate.user(uid) for uid in user_ids if uid]
        if self._settings.president_user_id:
            candidates.append(RecipientCandidate.user(self._settings.president_user_id))
        candidates.extend(RecipientCandidate.group(gid) for gid in group_ids if gid)
        candidates.extend(RecipientCandidate.group(gid) for gid in self._settings.fallback_group_ids())

        self._snapshot = _dedupe(candidates)
        logger.debug(f"收件人快照: {len(self._snapshot)} 个 (policy={self.name})")

    def resolve(self, interview: Interview | None) -> list[RecipientCandidate]:
        if self._snapshot is None:
            raise RuntimeError("BroadcastPolicy 尚未 refresh()")
        return list(self._snapshot)

    def describe(self) -> dict:
        snapshot = self._snapshot or []
        return {
            "policy": self.name,
            "userIds": [c.raw_id for c in snapshot if c.kind is RecipientKind.USER],
            "groupIds": [c.raw_id for c in snapshot if c.kind is RecipientKind.GROUP],
        }


class LegacyTargetedPolicy(RecipientPolicy):
    """旧版定向推送: 面谈创建者 + 一个固定群组 + 会长。仅在未启用联系人追踪时使用"""

    name = "legacy"

    def __init__(self, settings: Settings):
        self._settings = settings

    def _group_id(self) -> str | None:
        groups = self._settings.fallback_group_ids()
        return groups[0] if groups else None

    def resolve(self, interview: Interview | None) -> list[RecipientCandidate]:
        candidates: list[RecipientCandidate] = []
        if interview is not None:
            if is_valid_id(RecipientKind.USER, interview.owner_id):
                candidates.append(RecipientCandidate.user(interview.owner_id))
            else:
                logger.debug(f"面谈 {interview.interview_id} 的创建者 id 不是有效的 LINE 用户, 不作为收件人")

        group_id = self._group_id()
        if group_id:
            candidates.append(RecipientCandidate.group(group_id))
        if self._settings.president_user_id:
            candidates.append(RecipientCandidate.user(self._settings.president_user_id))
        return _dedupe(candidates)

    def describe(self) -> dict:
        return {
            "policy": self.name,
            "groupId": self._group_id(),
            "presidentUserId": self._settings.president_user_id or None,
        }


def build_policy(settings: Settings, directory: RecipientDirectory = contact_storage) -> RecipientPolicy:
    if settings.effective_recipient_policy() == "legacy":
        return LegacyTargetedPolicy(settings)
    return BroadcastPolicy(settings, directory)
