import asyncio
import signal
import time

from interview_bot.admin.http_server import main_loop as http_main
from interview_bot.admin.schemas import AppContext
from interview_bot.channels.line_push import LinePushChannel
from interview_bot.config.settings import Settings, load_settings
from interview_bot.logger import logger, setup_logging
from interview_bot.reminders import loop as reminder_loop
from interview_bot.reminders.dispatcher import NotificationDispatcher
from interview_bot.reminders.orchestrator import ReminderOrchestrator
from interview_bot.reminders.recipients import build_policy
import interview_bot.storage.db_config as db_config

shutdown_event = asyncio.Event()


def signal_handler(sig, frame):
    """处理 SIGINT / SIGTERM 信号"""
    logger.info("收到中断信号,正在依次关闭组件...")
    shutdown_event.set()


def build_orchestrator(settings: Settings, channel: LinePushChannel) -> ReminderOrchestrator:
    policy = build_policy(settings)
    logger.info(f"提醒收件人策略: {policy.name}")
    return ReminderOrchestrator(settings, NotificationDispatcher(channel), policy)


async def main(settings: Settings) -> None:
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    await db_config.init_db(settings.db_path)
    channel = LinePushChannel(settings)
    orchestrator = build_orchestrator(settings, channel)
    ctx = AppContext(
        settings=settings,
        orchestrator=orchestrator,
        channel=channel,
        shutdown_event=shutdown_event,
        started_at=time.time(),
    )

    try:
        tasks = [http_main(ctx)]
        if settings.enable_reminder_loop:
            tasks.append(reminder_loop.main_loop(orchestrator, settings.reminder_interval_seconds, shutdown_event))
        else:
            logger.info("进程内提醒循环未启用, 等待外部定时器调用 /trigger-reminders")

        await asyncio.gather(*tasks)
    finally:
        logger.info("关闭 LINE 通道...")
        await channel.aclose()
        logger.info("关闭数据库连接...")
        await db_config.close_db()
        logger.info("面谈助理已关闭")


def run() -> None:
    settings = load_settings()
    setup_logging(
        log_level=settings.log_level,
        log_file=settings.log_file,
        console_level="INFO",
    )
    logger.info("启动面谈助理...")
    asyncio.run(main(settings))


if __name__ == "__main__":
    run()
