"""Tests for health monitoring."""

from datetime import datetime

import pytest

from servers.activity_calendar.errors import EmptyResult, SourceUnavailable
from servers.activity_calendar.resilience.health import HealthMonitor, source_key


class TestSourceKey:
    def test_combines_locale_and_source(self):
        assert source_key("jp", "scraped") == "jp:scraped"


class TestHealthMonitor:
    """Tests for HealthMonitor class."""

    @pytest.fixture
    def monitor(self) -> HealthMonitor:
        """Create a health monitor with a fixed clock."""
        return HealthMonitor(clock=lambda: datetime(2026, 10, 19, 12, 0))

    def test_record_success(self, monitor: HealthMonitor):
        """Should record successful source fetch."""
        monitor.record_success("jp:scraped", record_count=25)

        status = monitor.get_source_status("jp:scraped")
        assert status is not None
        assert status["healthy"] is True
        assert status["record_count"] == 25
        assert status["consecutive_failures"] == 0
        assert status["last_success"] == "2026-10-19T12:00:00"

    def test_record_failure(self, monitor: HealthMonitor):
        """Should record failed source fetch with the error kind."""
        monitor.record_failure("cn:structured", SourceUnavailable("structured", "HTTP 503"))

        status = monitor.get_source_status("cn:structured")
        assert status is not None
        assert status["healthy"] is False
        assert "HTTP 503" in status["last_error"]
        assert status["last_error_kind"] == "SourceUnavailable"
        assert status["consecutive_failures"] == 1

    def test_empty_result_is_a_failure(self, monitor: HealthMonitor):
        monitor.record_failure("jp:scraped", EmptyResult("scraped", fetched=4))

        status = monitor.get_source_status("jp:scraped")
        assert status["healthy"] is False
        assert status["last_error_kind"] == "EmptyResult"

    def test_consecutive_failures_increment(self, monitor: HealthMonitor):
        """Should increment consecutive failures."""
        for i in range(3):
            monitor.record_failure("jp:scraped", RuntimeError(f"Error {i}"))

        status = monitor.get_source_status("jp:scraped")
        assert status["consecutive_failures"] == 3

    def test_failure_keeps_last_success(self, monitor: HealthMonitor):
        monitor.record_success("jp:scraped", record_count=5)
        monitor.record_failure("jp:scraped", RuntimeError("boom"))

        status = monitor.get_source_status("jp:scraped")
        assert status["last_success"] == "2026-10-19T12:00:00"
        assert status["record_count"] == 0

    def test_success_resets_failures(self, monitor: HealthMonitor):
        """Success should reset consecutive failures."""
        monitor.record_failure("jp:scraped", RuntimeError("Error"))
        monitor.record_failure("jp:scraped", RuntimeError("Error"))
        monitor.record_success("jp:scraped", record_count=10)

        status = monitor.get_source_status("jp:scraped")
        assert status["consecutive_failures"] == 0
        assert status["healthy"] is True
        assert status["last_error"] is None

    def test_is_healthy_unknown_source(self, monitor: HealthMonitor):
        """Unknown source should be considered healthy."""
        assert monitor.is_healthy("unknown_source") is True

    def test_is_healthy_after_failure(self, monitor: HealthMonitor):
        """Should report unhealthy after failure."""
        monitor.record_failure("jp:scraped", RuntimeError("Error"))
        assert monitor.is_healthy("jp:scraped") is False

    def test_get_status_summary(self, monitor: HealthMonitor):
        """Should return complete status summary."""
        monitor.record_success("jp:scraped", record_count=20)
        monitor.record_failure("cn:structured", RuntimeError("Error"))

        status = monitor.get_status()

        assert status["timestamp"] == "2026-10-19T12:00:00"
        assert status["summary"]["healthy"] == 1
        assert status["summary"]["unhealthy"] == 1
        assert status["summary"]["total"] == 2
        assert set(status["sources"]) == {"jp:scraped", "cn:structured"}

    def test_recovers_after_success(self, monitor: HealthMonitor):
        """A success after a failure marks the source healthy again."""
        monitor.record_failure("cn:structured", RuntimeError("Error"))
        assert monitor.is_healthy("cn:structured") is False

        monitor.record_success("cn:structured", record_count=3)
        assert monitor.is_healthy("cn:structured") is True

    def test_status_includes_timestamp(self):
        """Status should include ISO format timestamp."""
        monitor = HealthMonitor()
        monitor.record_success("jp:scraped", record_count=10)

        status = monitor.get_source_status("jp:scraped")
        assert "T" in status["last_check"]
