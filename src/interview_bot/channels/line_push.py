from __future__ import annotations

import httpx

from interview_bot.channels.base import DeliveryError, PushChannel
from interview_bot.config.settings import Settings
from interview_bot.logger import logger

# LINE 单条文本消息上限
MAX_TEXT_LENGTH = 5000


def _truncate(text: str) -> str:
    if len(text) <= MAX_TEXT_LENGTH:
        return text
    return text[: MAX_TEXT_LENGTH - 1] + "…"


class LinePushChannel(PushChannel):
    """LINE Messaging API 的 push / reply 调用"""

    name = "line"

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self._base_url = settings.line_api_base_url
        self._token = settings.channel_access_token
        self._timeout = settings.line_push_timeout_seconds
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def _post(self, path: str, body: dict) -> None:
        if self._token == "":
            raise DeliveryError("CHANNEL_ACCESS_TOKEN 未配置")
        try:
            resp = await self._get_client().post(
                f"{self._base_url}{path}",
                json=body,
                headers={"Authorization": f"Bearer {self._token}"},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise DeliveryError(f"LINE API 超时: {e}") from e
        except httpx.HTTPError as e:
            raise DeliveryError(f"LINE API 请求失败: {e}") from e

        if resp.status_code >= 400:
            detail = resp.text[:300]
            logger.error(f"LINE API 错误: path={path}, status={resp.status_code}, body={detail}")
            raise DeliveryError(f"LINE API 返回 {resp.status_code}: {detail}", status_code=resp.status_code)

    async def push_text(self, to: str, text: str) -> None:
        await self._post(
            "/v2/bot/message/push",
            {"to": to, "messages": [{"type": "text", "text": _truncate(text)}]},
        )

    async def reply_text(self, reply_token: str, text: str) -> None:
        await self._post(
            "/v2/bot/message/reply",
            {"replyToken": reply_token, "messages": [{"type": "text", "text": _truncate(text)}]},
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


__all__ = ["LinePushChannel", "MAX_TEXT_LENGTH"]
