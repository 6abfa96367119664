"""Health tracking for locale sources."""

from datetime import datetime
from typing import Any, Callable

import structlog

logger = structlog.get_logger()


def source_key(locale: str, source: str) -> str:
    """Key a source by locale, e.g. "jp:scraped"."""
    return f"{locale}:{source}"


class HealthMonitor:
    """Track the outcome of every source attempt.

    Kept for reporting (the CLI ``status`` command); it never changes the
    order in which sources are tried.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self.clock = clock
        self.status: dict[str, dict[str, Any]] = {}

    def record_success(self, key: str, record_count: int) -> None:
        """Record a source attempt that produced valid records."""
        now = self.clock().isoformat()
        self.status[key] = {
            "healthy": True,
            "last_check": now,
            "last_success": now,
            "record_count": record_count,
            "consecutive_failures": 0,
            "last_error": None,
            "last_error_kind": None,
        }
        logger.debug("source_healthy", source=key, record_count=record_count)

    def record_failure(self, key: str, error: Exception) -> None:
        """Record a failed or empty source attempt."""
        current = self.status.get(key, {})
        consecutive = current.get("consecutive_failures", 0) + 1

        self.status[key] = {
            "healthy": False,
            "last_check": self.clock().isoformat(),
            "last_success": current.get("last_success"),
            "record_count": 0,
            "consecutive_failures": consecutive,
            "last_error": str(error),
            "last_error_kind": type(error).__name__,
        }
        logger.warning(
            "source_unhealthy",
            source=key,
            consecutive_failures=consecutive,
            error_kind=type(error).__name__,
            error=str(error),
        )

    def is_healthy(self, key: str) -> bool:
        """Unknown sources count as healthy."""
        return self.status.get(key, {}).get("healthy", True)

    def get_source_status(self, key: str) -> dict[str, Any] | None:
        return self.status.get(key)

    def get_status(self) -> dict[str, Any]:
        """Full report with a healthy/unhealthy summary."""
        healthy = [k for k, s in self.status.items() if s["healthy"]]
        return {
            "timestamp": self.clock().isoformat(),
            "summary": {
                "healthy": len(healthy),
                "unhealthy": len(self.status) - len(healthy),
                "total": len(self.status),
            },
            "sources": dict(self.status),
        }
