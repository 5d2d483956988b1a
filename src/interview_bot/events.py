"""事件总线模块，定义了事件总线类 Bus 及事件名集合 E

目前只用于 LINE 联系人追踪: Webhook 收到 follow/unfollow/join/leave 后发出事件,
由处理器异步写入联系人表, 不阻塞对 LINE 的 HTTP 响应。
"""

from __future__ import annotations

from typing import Awaitable, Callable

from pyee.asyncio import AsyncIOEventEmitter

from interview_bot.logger import logger

AsyncHandler = Callable[..., Awaitable[None]]


# 事件名集中定义
class E:
    CONTACT_USER_FOLLOWED = "contact.user_followed"
    CONTACT_USER_UNFOLLOWED = "contact.user_unfollowed"
    CONTACT_GROUP_JOINED = "contact.group_joined"
    CONTACT_GROUP_LEFT = "contact.group_left"


class Bus(AsyncIOEventEmitter):
    def __init__(self) -> None:
        super().__init__()
        super(Bus, self).on("error", self._log_error)

    @staticmethod
    def _log_error(error: Exception) -> None:
        logger.opt(exception=error).error(f"事件处理器异常: {error}")

    def on(self, event: str) -> Callable[[AsyncHandler], AsyncHandler]:
        """注册事件处理器装饰器"""
        def decorator(handler: AsyncHandler) -> AsyncHandler:
            logger.debug(f"注册事件处理器: {event} -> {handler.__name__}")
            super(Bus, self).on(event, handler)
            return handler

        return decorator


bus = Bus()

__all__ = ["bus", "E"]
