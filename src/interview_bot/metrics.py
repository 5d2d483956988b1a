"""
一个简单的运行时指标收集类，用于统计提醒轮次、推送数量、Webhook 流量等信息，供管理 API 查看。
"""

from __future__ import annotations

import time
from dataclasses import dataclass


@dataclass
class RuntimeMetrics:
    reminder_cycle_count: int = 0
    reminder_cycle_error_count: int = 0
    reminder_sent_count: int = 0
    delivery_failure_count: int = 0
    list_broadcast_count: int = 0
    webhook_event_count: int = 0
    last_cycle_at: float | None = None

    def record_cycle(self, error: bool = False) -> None:
        self.reminder_cycle_count += 1
        self.last_cycle_at = time.time()
        if error:
            self.reminder_cycle_error_count += 1

    def record_deliveries(self, sent: int, failed: int) -> None:
        self.reminder_sent_count += max(0, sent)
        self.delivery_failure_count += max(0, failed)

    def record_list_broadcast(self) -> None:
        self.list_broadcast_count += 1

    def record_webhook_event(self) -> None:
        self.webhook_event_count += 1

    def snapshot(self) -> dict:
        return {
            "reminder_cycle_count": self.reminder_cycle_count,
            "reminder_cycle_error_count": self.reminder_cycle_error_count,
            "reminder_sent_count": self.reminder_sent_count,
            "delivery_failure_count": self.delivery_failure_count,
            "list_broadcast_count": self.list_broadcast_count,
            "webhook_event_count": self.webhook_event_count,
            "last_cycle_at_epoch": self.last_cycle_at,
            "last_cycle_at_utc": (
                time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(self.last_cycle_at))
                if self.last_cycle_at is not None
                else None
            ),
        }


runtime_metrics = RuntimeMetrics()


__all__ = ["RuntimeMetrics", "runtime_metrics"]
