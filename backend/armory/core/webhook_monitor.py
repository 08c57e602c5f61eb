"""Process-wide webhook health counters"""
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Optional

UNHEALTHY_SUCCESS_RATE = 80.0
STALE_AFTER = timedelta(hours=24)


@dataclass
class WebhookStats:
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    last_request_time: Optional[datetime] = None
    last_error_time: Optional[datetime] = None
    last_error: str = ""


class WebhookMonitor:
    def __init__(self):
        self._lock = threading.Lock()
        self._stats = WebhookStats()

    def record(self, status_code: int, error: str = "") -> None:
        now = datetime.now(timezone.utc)
        with self._lock:
            self._stats.total_requests += 1
            self._stats.last_request_time = now
            if 200 <= status_code < 300:
                self._stats.successful_requests += 1
            else:
                self._stats.failed_requests += 1
                self._stats.last_error_time = now
                self._stats.last_error = error or f"HTTP {status_code}"

    def snapshot(self) -> WebhookStats:
        with self._lock:
            return WebhookStats(**asdict(self._stats))

    def reset(self) -> None:
        with self._lock:
            self._stats = WebhookStats()

    def health(self, now: Optional[datetime] = None) -> dict:
        """Snapshot plus a derived status: healthy, degraded or unhealthy"""
        now = now or datetime.now(timezone.utc)
        stats = self.snapshot()

        success_rate = 100.0
        if stats.total_requests > 0:
            success_rate = stats.successful_requests / stats.total_requests * 100

        status = "healthy"
        if stats.total_requests > 0 and success_rate < UNHEALTHY_SUCCESS_RATE:
            status = "unhealthy"
        elif stats.last_request_time and now - stats.last_request_time > STALE_AFTER:
            status = "degraded"

        return {
            "status": status,
            "success_rate": round(success_rate, 2),
            "total_requests": stats.total_requests,
            "successful_requests": stats.successful_requests,
            "failed_requests": stats.failed_requests,
            "last_request_time": stats.last_request_time.isoformat() if stats.last_request_time else None,
            "last_error_time": stats.last_error_time.isoformat() if stats.last_error_time else None,
            "last_error": stats.last_error,
        }


webhook_monitor = WebhookMonitor()
