"""进程内的提醒循环

部署在无外部定时器的环境时, 以固定间隔在进程内执行提醒轮次。
与外部触发先后执行是安全的; 两者恰好重叠时同一提醒可能重复推送。
"""

import asyncio
import time

from interview_bot.logger import logger
from interview_bot.reminders.orchestrator import ReminderCycleError, ReminderOrchestrator

__shutdown_event: asyncio.Event | None = None
__last_check_at_epoch: float | None = None
__last_total_sent: int | None = None


def get_status() -> dict[str, object]:
    running = __shutdown_event is not None and not __shutdown_event.is_set()
    return {
        "running": running,
        "last_check_at_epoch": __last_check_at_epoch,
        "last_total_sent": __last_total_sent,
    }


async def main_loop(orchestrator: ReminderOrchestrator, interval_seconds: float, shutdown_event: asyncio.Event) -> None:
    global __shutdown_event, __last_check_at_epoch, __last_total_sent
    __shutdown_event = shutdown_event
    logger.info(f"Reminder 主循环已启动, 间隔 {interval_seconds} 秒")

    while not shutdown_event.is_set():
        __last_check_at_epoch = time.time()
        try:
            report = await orchestrator.run_cycle()
            __last_total_sent = report.total_sent
        except ReminderCycleError as e:
            logger.error(f"本轮提醒失败, 等待下一轮: {e}")

        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass

    logger.info("Reminder 主循环已关闭")
