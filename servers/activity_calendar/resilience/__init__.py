"""Resilience patterns for source acquisition."""

from .fallback import FallbackChain, with_default
from .health import HealthMonitor, source_key

__all__ = [
    "FallbackChain",
    "with_default",
    "HealthMonitor",
    "source_key",
]
