from abc import ABC, abstractmethod


class DeliveryError(RuntimeError):
    """推送被平台拒绝或超时; reason 会原样写入提醒报告"""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class PushChannel(ABC):
    """消息平台的最小出站接口"""

    name: str = "channel"

    @abstractmethod
    async def push_text(self, to: str, text: str) -> None:
        """主动推送一条文本消息, 失败时抛出 DeliveryError"""

    @abstractmethod
    async def reply_text(self, reply_token: str, text: str) -> None:
        """使用 webhook 事件中的 reply token 回复"""

    async def aclose(self) -> None:
        return None


__all__ = ["DeliveryError", "PushChannel"]
