"""
Per-locale store of the last known-good event list.

Snapshots are immutable; every update stores a new Snapshot with a
single reference assignment, so readers observe either the old or the
new event list, never a mix. An empty fetch never overwrites events:
only ``fetched_at`` advances (stale-cache policy).
"""

from datetime import datetime
from typing import Iterable, Sequence

import structlog

from .models import CanonicalEvent, Snapshot, SourceKind

logger = structlog.get_logger()


class SnapshotStore:
    """Holds one Snapshot per locale."""

    def __init__(self, locales: Iterable[str] = ()):
        self._snapshots: dict[str, Snapshot] = {locale: Snapshot() for locale in locales}

    def get(self, locale: str) -> Snapshot:
        """Current snapshot for a locale (empty if never updated)."""
        return self._snapshots.get(locale, Snapshot())

    def replace(
        self,
        locale: str,
        events: Sequence[CanonicalEvent],
        fetched_at: datetime,
        source_used: SourceKind,
    ) -> Snapshot:
        """
        Store the result of a fetch cycle.

        Args:
            locale: Locale being updated
            events: Canonical events from this cycle (may be empty)
            fetched_at: Time of this fetch cycle
            source_used: Source that produced ``events``

        Returns:
            The snapshot now in effect
        """
        current = self.get(locale)

        if events:
            snapshot = Snapshot(
                events=tuple(events),
                fetched_at=fetched_at,
                events_fetched_at=fetched_at,
                source_used=source_used,
            )
        else:
            logger.warning(
                "empty_fetch_keeping_stale_events",
                locale=locale,
                cached_events=len(current.events),
                cached_source=current.source_used,
            )
            snapshot = current.model_copy(update={"fetched_at": fetched_at})

        self._snapshots[locale] = snapshot
        return snapshot

    def locales(self) -> list[str]:
        return list(self._snapshots)
