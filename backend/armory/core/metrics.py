"""In-process error metrics for the admin error dashboard"""
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

RANGES = {
    "1h": timedelta(hours=1),
    "6h": timedelta(hours=6),
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
RETENTION = timedelta(days=7)


@dataclass
class ErrorEntry:
    count: int = 0
    last_occurred: Optional[datetime] = None
    path: str = ""
    latencies: list = field(default_factory=list)
    timestamps: list = field(default_factory=list)

    def add(self, latency: float, path: str, at: datetime) -> None:
        self.count += 1
        self.last_occurred = at
        self.path = path
        self.latencies.append(latency)
        self.timestamps.append(at)

    def clear(self) -> None:
        self.count = 0
        self.latencies = []
        self.timestamps = []

    @property
    def avg_latency(self) -> float:
        if not self.latencies:
            return 0.0
        return sum(self.latencies) / len(self.latencies)


def _percentile(sorted_values: list, p: float) -> float:
    if not sorted_values:
        return 0.0
    return sorted_values[int((len(sorted_values) - 1) * p)]


class ErrorMetrics:
    """Counts per error type, per endpoint and per status code"""

    def __init__(self):
        self._lock = threading.Lock()
        self._errors: dict[str, ErrorEntry] = {}
        self._endpoints: dict[str, ErrorEntry] = {}
        self._status_codes: dict[int, ErrorEntry] = {}

    def record(self, error_type: str, status_code: int, latency: float, path: str, at: Optional[datetime] = None) -> None:
        at = at or datetime.now(timezone.utc)
        with self._lock:
            self._errors.setdefault(error_type, ErrorEntry()).add(latency, path, at)
            self._endpoints.setdefault(path, ErrorEntry()).add(latency, path, at)
            self._status_codes.setdefault(status_code, ErrorEntry()).add(latency, path, at)

    def stats(self) -> dict:
        with self._lock:
            return {
                "error_counts": {k: v.count for k, v in self._errors.items()},
                "status_counts": {k: v.count for k, v in self._status_codes.items()},
                "endpoint_counts": {k: v.count for k, v in self._endpoints.items()},
            }

    def recent_errors(self, limit: int = 10) -> list[dict]:
        with self._lock:
            rows = [
                {
                    "error_type": error_type,
                    "count": entry.count,
                    "last_occurred": entry.last_occurred,
                    "path": entry.path,
                    "avg_latency": entry.avg_latency,
                }
                for error_type, entry in self._errors.items()
                if entry.count > 0
            ]
        rows.sort(key=lambda r: r["last_occurred"], reverse=True)
        return rows[:limit]

    def error_rates(self, window: timedelta, now: Optional[datetime] = None) -> dict[str, int]:
        """Occurrences per error type within the trailing window"""
        cutoff = (now or datetime.now(timezone.utc)) - window
        with self._lock:
            return {
                error_type: sum(1 for ts in entry.timestamps if ts >= cutoff)
                for error_type, entry in self._errors.items()
            }

    def latency_percentiles(self) -> dict[str, float]:
        with self._lock:
            latencies = sorted(l for entry in self._errors.values() for l in entry.latencies)
        return {
            "p50": _percentile(latencies, 0.5),
            "p95": _percentile(latencies, 0.95),
            "p99": _percentile(latencies, 0.99),
        }

    def cleanup(self, max_age: timedelta = RETENTION, now: Optional[datetime] = None) -> None:
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        with self._lock:
            for table in (self._errors, self._endpoints, self._status_codes):
                for entry in table.values():
                    if entry.last_occurred and entry.last_occurred < cutoff:
                        entry.clear()

    def reset(self) -> None:
        with self._lock:
            self._errors.clear()
            self._endpoints.clear()
            self._status_codes.clear()


error_metrics = ErrorMetrics()


class ErrorMetricsMiddleware(BaseHTTPMiddleware):
    """Records every response with status >= 400.

    Exception handlers put the error kind on ``request.state.error_kind``.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            error_metrics.record("internal_error", 500, time.perf_counter() - started, request.url.path)
            raise

        if response.status_code >= 400:
            error_type = getattr(request.state, "error_kind", None) or f"http_{response.status_code}"
            error_metrics.record(error_type, response.status_code, time.perf_counter() - started, request.url.path)
        return response
