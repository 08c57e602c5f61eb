"""
Unit tests for the in-process webhook monitor and error metrics.
"""
from datetime import datetime, timedelta, timezone

import pytest

from armory.core.metrics import ErrorMetrics
from armory.core.webhook_monitor import WebhookMonitor

T0 = datetime(2025, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def monitor():
    return WebhookMonitor()


@pytest.fixture
def metrics():
    return ErrorMetrics()


class TestWebhookMonitor:
    def test_no_traffic_is_healthy(self, monitor):
        health = monitor.health()

        assert health["status"] == "healthy"
        assert health["success_rate"] == 100.0
        assert health["total_requests"] == 0
        assert health["last_request_time"] is None

    def test_counts_success_and_failure(self, monitor):
        for _ in range(9):
            monitor.record(200)
        monitor.record(400, "Invalid signature")

        health = monitor.health()

        assert health["total_requests"] == 10
        assert health["successful_requests"] == 9
        assert health["failed_requests"] == 1
        assert health["success_rate"] == 90.0
        assert health["last_error"] == "Invalid signature"
        assert health["status"] == "healthy"

    def test_low_success_rate_is_unhealthy(self, monitor):
        monitor.record(200)
        monitor.record(500)

        assert monitor.health()["status"] == "unhealthy"

    def test_failure_without_message_uses_status(self, monitor):
        monitor.record(429)

        assert monitor.snapshot().last_error == "HTTP 429"

    def test_quiet_for_a_day_is_degraded(self, monitor):
        monitor.record(200)
        later = monitor.snapshot().last_request_time + timedelta(hours=25)

        assert monitor.health(now=later)["status"] == "degraded"

    def test_reset(self, monitor):
        monitor.record(500)
        monitor.reset()

        assert monitor.snapshot().total_requests == 0


class TestErrorMetrics:
    def test_counts_by_type_status_and_endpoint(self, metrics):
        metrics.record("not_found", 404, 0.01, "/owner/guns/9", at=T0)
        metrics.record("not_found", 404, 0.03, "/owner/guns/8", at=T0)
        metrics.record("rate_limited", 429, 0.02, "/login", at=T0)

        stats = metrics.stats()

        assert stats["error_counts"] == {"not_found": 2, "rate_limited": 1}
        assert stats["status_counts"] == {404: 2, 429: 1}
        assert stats["endpoint_counts"]["/login"] == 1

    def test_recent_errors_newest_first(self, metrics):
        metrics.record("not_found", 404, 0.01, "/a", at=T0)
        metrics.record("validation_failed", 400, 0.02, "/b", at=T0 + timedelta(minutes=5))

        recent = metrics.recent_errors()

        assert [r["error_type"] for r in recent] == ["validation_failed", "not_found"]
        assert recent[1]["avg_latency"] == pytest.approx(0.01)

    def test_error_rates_respect_window(self, metrics):
        metrics.record("internal_error", 500, 0.1, "/x", at=T0 - timedelta(hours=3))
        metrics.record("internal_error", 500, 0.1, "/x", at=T0 - timedelta(minutes=10))

        assert metrics.error_rates(timedelta(hours=1), now=T0) == {"internal_error": 1}
        assert metrics.error_rates(timedelta(hours=6), now=T0) == {"internal_error": 2}

    def test_latency_percentiles(self, metrics):
        for i in range(1, 101):
            metrics.record("transient", 503, i / 100, "/webhook", at=T0)

        percentiles = metrics.latency_percentiles()

        assert percentiles["p50"] == pytest.approx(0.5)
        assert percentiles["p95"] == pytest.approx(0.95)
        assert percentiles["p99"] == pytest.approx(0.99)

    def test_empty_percentiles(self, metrics):
        assert metrics.latency_percentiles() == {"p50": 0.0, "p95": 0.0, "p99": 0.0}

    def test_cleanup_clears_stale_entries(self, metrics):
        metrics.record("not_found", 404, 0.01, "/old", at=T0 - timedelta(days=8))
        metrics.record("forbidden", 403, 0.01, "/new", at=T0)

        metrics.cleanup(now=T0)

        stats = metrics.stats()
        assert stats["error_counts"]["not_found"] == 0
        assert stats["error_counts"]["forbidden"] == 1
        assert [r["error_type"] for r in metrics.recent_errors()] == ["forbidden"]
