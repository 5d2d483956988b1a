from __future__ import annotations

import asyncio
import json
import time
from datetime import timedelta
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

import interview_bot.storage.contact as contact_storage
import interview_bot.storage.db_config as db_config
import interview_bot.storage.interview as interview_storage
from interview_bot.channels.line_webhook import handle_webhook_payload, verify_signature
from interview_bot.core import interviews as interview_service
from interview_bot.core.interviews import InterviewInputError
from interview_bot.logger import logger
from interview_bot.metrics import runtime_metrics
from interview_bot.reminders import loop as reminder_loop
from interview_bot.reminders.recipients import RecipientKind, is_valid_id
from interview_bot.reminders.trigger import TriggerStatus, invoke_trigger
from interview_bot.reminders.window import classify_due_reminders, hours_until
from interview_bot.utils import today_str

from .auth import extract_api_key, require_admin_auth
from .log_view import read_logs
from .schemas import AppContext, SampleInterviewRequest

_TRIGGER_STATUS_CODES = {
    TriggerStatus.OK: 200,
    TriggerStatus.BAD_REQUEST: 400,
    TriggerStatus.UNAUTHORIZED: 401,
    TriggerStatus.MISCONFIGURED: 503,
    TriggerStatus.FAILED: 500,
}


def create_app(ctx: AppContext) -> FastAPI:
    app = FastAPI(title="Interview Reminder Bot", version="1.0.0")
    settings = ctx.settings
    orchestrator = ctx.orchestrator

    @app.exception_handler(db_config.StoreNotReadyError)
    async def store_not_ready(request: Request, exc: db_config.StoreNotReadyError) -> JSONResponse:
        return JSONResponse({"detail": "数据库尚未就绪"}, status_code=503)

    def health_payload() -> dict[str, Any]:
        return {
            "status": "ok",
            "now_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "uptime_seconds": max(0.0, time.time() - ctx.started_at),
            "db_connected": db_config.conn is not None,
            "line_configured": settings.line_configured,
            "shutdown_requested": ctx.shutdown_event.is_set(),
        }

    @app.get("/", include_in_schema=False)
    async def home() -> dict[str, str]:
        return {"status": "LINE Interview Bot is running!"}

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.get("/api/v1/health")
    async def api_health() -> dict[str, Any]:
        return health_payload()

    @app.post("/callback")
    async def line_callback(request: Request) -> dict[str, Any]:
        body = await request.body()
        if not verify_signature(body, request.headers.get("X-Line-Signature"), settings.channel_secret):
            logger.warning("LINE Webhook 签名校验失败")
            raise HTTPException(status_code=401, detail="signature validation failed")

        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            raise HTTPException(status_code=400, detail="Webhook payload 必须为 JSON")
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Webhook payload 必须为 JSON 对象")

        try:
            count = await handle_webhook_payload(payload, ctx.channel, settings)
        except Exception as e:
            logger.opt(exception=e).error(f"Webhook 处理异常: {e}")
            raise HTTPException(status_code=500, detail="webhook error")
        return {"ok": True, "events": count}

    @app.api_route("/trigger-reminders", methods=["GET", "POST"])
    async def trigger_reminders(request: Request, mode: str | None = None, action: str | None = None) -> JSONResponse:
        outcome = await invoke_trigger(orchestrator, mode or action, extract_api_key(request))
        return JSONResponse(outcome.to_payload(), status_code=_TRIGGER_STATUS_CODES[outcome.status])

    @app.get("/debug-reminders")
    async def debug_reminders(request: Request) -> dict[str, Any]:
        await require_admin_auth(request, settings)
        db_config.ensure_conn()
        now = orchestrator.now()
        tz = settings.tz
        pending = await interview_storage.list_pending_reminder_interviews(today_str(now, tz))
        due = classify_due_reminders(now, pending, tz)
        await orchestrator.policy.refresh()

        def brief(items):
            return [
                {
                    **i.to_dict(),
                    "hours_until": round(hours_until(i, now, tz), 2),
                    "user_id_valid": is_valid_id(RecipientKind.USER, i.owner_id),
                }
                for i in items
            ]

        return {
            "success": True,
            "currentTime": now.strftime("%Y-%m-%d %H:%M:%S"),
            "timezone": settings.org_timezone,
            "interviewsNeeding24hReminders": len(due.due_24h),
            "interviewsNeeding3hReminders": len(due.due_3h),
            "interviews24h": brief(due.due_24h),
            "interviews3h": brief(due.due_3h),
            "totalInterviewsInDB": await interview_storage.count_interviews(),
            "presidentConfig": {
                "president_user_id": settings.president_user_id or None,
                "president_user_id_valid": is_valid_id(RecipientKind.USER, settings.president_user_id),
            },
            "groupConfig": {
                "group_ids": settings.fallback_group_ids(),
                "group_ids_valid": [is_valid_id(RecipientKind.GROUP, g) for g in settings.fallback_group_ids()],
            },
            "reminderRecipients": orchestrator.policy.describe(),
            "trackedContacts": {
                "line_users": [c.__dict__ for c in await contact_storage.list_tracked_users()],
                "line_groups": [c.__dict__ for c in await contact_storage.list_tracked_groups()],
            },
        }

    @app.post("/create-test-interview")
    async def create_test_interview(request: Request, payload: SampleInterviewRequest | None = None) -> dict[str, Any]:
        await require_admin_auth(request, settings)
        payload = payload or SampleInterviewRequest()
        start = (orchestrator.now() + timedelta(hours=payload.hours_from_now)).replace(microsecond=0)
        try:
            interview = await interview_service.add_interview(
                owner_id=payload.owner_id,
                interviewee_name=payload.interviewee_name,
                interviewer_name=payload.interviewer_name,
                date_str=start.strftime("%Y-%m-%d"),
                time_str=start.strftime("%H:%M:%S"),
                reason=payload.reason,
                tz=settings.tz,
                now=orchestrator.now(),
            )
        except InterviewInputError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "success": True,
            "message": "Test interview created successfully",
            "interview": interview.to_dict(),
            "interviewTime": start.strftime("%Y-%m-%d %H:%M:%S"),
            "hoursFromNow": payload.hours_from_now,
        }

    @app.get("/api/v1/interviews")
    async def get_interviews(request: Request, owner_id: str | None = None) -> dict[str, Any]:
        await require_admin_auth(request, settings)
        db_config.ensure_conn()
        if owner_id:
            items = await interview_storage.list_interviews_by_owner(owner_id)
        else:
            items = await interview_storage.list_upcoming_interviews(today_str(orchestrator.now(), settings.tz))
        return {"items": [i.to_dict() for i in items], "owner_id": owner_id, "total": len(items)}

    @app.get("/api/v1/contacts")
    async def get_contacts(request: Request) -> dict[str, Any]:
        await require_admin_auth(request, settings)
        db_config.ensure_conn()
        return {
            "users": [c.__dict__ for c in await contact_storage.list_tracked_users()],
            "groups": [c.__dict__ for c in await contact_storage.list_tracked_groups()],
        }

    @app.get("/api/v1/metrics")
    async def get_metrics(request: Request) -> dict[str, Any]:
        await require_admin_auth(request, settings)
        return {
            "runtime": runtime_metrics.snapshot(),
            "components": {
                "db": {"connected": db_config.conn is not None},
                "line": {"configured": settings.line_configured},
                "reminder_loop": {"enabled": settings.enable_reminder_loop, **reminder_loop.get_status()},
                "recipient_policy": orchestrator.policy.name,
            },
            "active_tasks": len(asyncio.all_tasks()),
        }

    @app.get("/api/v1/logs")
    async def get_logs(
        request: Request,
        lines: int = 200,
        levels: str | None = None,
        q: str | None = None,
        stream: str = "main",
    ) -> dict[str, Any]:
        await require_admin_auth(request, settings)
        level_list = [part for part in (levels or "").split(",") if part.strip()]
        try:
            return read_logs(settings.log_file, stream=stream, lines=lines, levels=level_list, keyword=q)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return app
