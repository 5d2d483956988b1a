from __future__ import annotations

import asyncio

import uvicorn

from interview_bot.logger import logger

from .app import create_app
from .schemas import AppContext


async def _wait_shutdown_signal(shutdown_event: asyncio.Event, server: uvicorn.Server) -> None:
    await shutdown_event.wait()
    server.should_exit = True


async def main_loop(ctx: AppContext) -> None:
    app = create_app(ctx)

    config = uvicorn.Config(
        app,
        host=ctx.settings.http_host,
        port=ctx.settings.http_port,
        log_level="info",
        log_config=None,  # 保留 setup_logging 安装的转发 handler
        access_log=False,
    )
    server = uvicorn.Server(config)
    # 嵌入到主进程时，统一由 main.py 处理系统信号。
    server.install_signal_handlers = lambda: None

    watcher = asyncio.create_task(_wait_shutdown_signal(ctx.shutdown_event, server))
    logger.info(f"HTTP 服务准备启动: http://{ctx.settings.http_host}:{ctx.settings.http_port}")
    try:
        await server.serve()
    finally:
        watcher.cancel()
        try:
            await watcher
        except asyncio.CancelledError:
            pass
        logger.info("HTTP 服务已关闭")
