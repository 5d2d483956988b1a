from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Any

from interview_bot.channels.base import DeliveryError, PushChannel
from interview_bot.config.settings import Settings
from interview_bot.core.commands import handle_text_command
from interview_bot.events import E, bus
from interview_bot.logger import logger
from interview_bot.metrics import runtime_metrics
from interview_bot.reminders.messages import FOLLOW_WELCOME_TEXT, JOIN_GREETING_TEXT
import interview_bot.storage.contact as contact_storage

__all__ = ["verify_signature", "handle_webhook_event", "handle_webhook_payload"]


def verify_signature(body: bytes, signature: str | None, channel_secret: str) -> bool:
    """X-Line-Signature = base64(HMAC-SHA256(channel secret, 原始请求体))"""
    if not channel_secret or not signature:
        return False
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    expected = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected, signature)


async def _safe_reply(channel: PushChannel, reply_token: str | None, text: str) -> None:
    if not reply_token:
        return
    try:
        await channel.reply_text(reply_token, text)
    except DeliveryError as e:
        logger.error(f"回复 LINE 消息失败: {e.reason}")


@bus.on(E.CONTACT_USER_FOLLOWED)
async def on_user_followed(user_id: str) -> None:
    try:
        await contact_storage.record_user(user_id)
    except Exception as e:
        logger.opt(exception=e).error(f"记录用户失败: {user_id}, {e}")


@bus.on(E.CONTACT_USER_UNFOLLOWED)
async def on_user_unfollowed(user_id: str) -> None:
    try:
        await contact_storage.set_user_inactive(user_id)
    except Exception as e:
        logger.opt(exception=e).error(f"设置用户为非活跃失败: {user_id}, {e}")


@bus.on(E.CONTACT_GROUP_JOINED)
async def on_group_joined(group_id: str) -> None:
    try:
        await contact_storage.record_group(group_id)
    except Exception as e:
        logger.opt(exception=e).error(f"记录群组失败: {group_id}, {e}")


@bus.on(E.CONTACT_GROUP_LEFT)
async def on_group_left(group_id: str) -> None:
    try:
        await contact_storage.set_group_inactive(group_id)
    except Exception as e:
        logger.opt(exception=e).error(f"设置群组为非活跃失败: {group_id}, {e}")


async def handle_webhook_event(event: dict[str, Any], channel: PushChannel, settings: Settings) -> None:
    source = event.get("source") or {}
    source_type = source.get("type")
    event_type = event.get("type")
    reply_token = event.get("replyToken")
    logger.debug(f"LINE 事件: type={event_type}, source={source}")
    runtime_metrics.record_webhook_event()

    user_id = source.get("userId") if source_type == "user" else None
    group_id = source.get("groupId") if source_type == "group" else None

    if event_type == "message":
        message = event.get("message") or {}
        if message.get("type") != "text":
            return
        sender_id = source.get("userId")
        if not sender_id:
            logger.warning(f"文字消息缺少 userId, 已忽略: source={source}")
            return
        reply = await handle_text_command(message.get("text", ""), sender_id, settings.tz)
        if reply is not None:
            await _safe_reply(channel, reply_token, reply)
        return

    if event_type == "follow":
        if user_id and settings.enable_contact_tracking:
            bus.emit(E.CONTACT_USER_FOLLOWED, user_id)
        await _safe_reply(channel, reply_token, FOLLOW_WELCOME_TEXT)
    elif event_type == "unfollow":
        if user_id and settings.enable_contact_tracking:
            bus.emit(E.CONTACT_USER_UNFOLLOWED, user_id)
    elif event_type == "join":
        if group_id and settings.enable_contact_tracking:
            bus.emit(E.CONTACT_GROUP_JOINED, group_id)
        await _safe_reply(channel, reply_token, JOIN_GREETING_TEXT)
    elif event_type == "leave":
        if group_id and settings.enable_contact_tracking:
            bus.emit(E.CONTACT_GROUP_LEFT, group_id)


async def handle_webhook_payload(payload: dict[str, Any], channel: PushChannel, settings: Settings) -> int:
    """逐个处理 webhook 中的事件, 返回事件数"""
    events = payload.get("events") or []
    for event in events:
        if isinstance(event, dict):
            await handle_webhook_event(event, channel, settings)
    return len(events)
