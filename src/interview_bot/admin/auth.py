from __future__ import annotations

import hmac

from fastapi import HTTPException, Request

from interview_bot.config.settings import Settings


def extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    token_header = request.headers.get("X-Admin-Token", "").strip()
    return token_header or None


def extract_api_key(request: Request) -> str | None:
    """外部定时器的 API key: X-API-Key 头或 apiKey 查询参数"""
    return request.headers.get("x-api-key") or request.query_params.get("apiKey")


async def require_admin_auth(request: Request, settings: Settings) -> dict[str, str]:
    if not settings.admin_auth_token:
        raise HTTPException(status_code=503, detail="ADMIN_AUTH_TOKEN 未配置")

    token = extract_token(request)
    if token and hmac.compare_digest(token, settings.admin_auth_token):
        return {"auth": "token", "user": "admin-token"}

    raise HTTPException(status_code=401, detail="未授权")
