"""Bound classified output to the configured maximum count."""

from typing import Sequence

from .models import CanonicalEvent


def select(events: Sequence[CanonicalEvent], max_count: int) -> list[CanonicalEvent]:
    """Truncate to ``max_count`` events, preserving tier order."""
    if max_count <= 0:
        return []
    return list(events[:max_count])
