"""
Tier classification of canonical events relative to "now".

Tiers, in order of precedence:
- Ongoing: every event whose window contains now (nothing else is shown)
- Previous / Next: latest past and earliest future event of the current day
- Upcoming: future events on later days, when today has nothing to show
- Listing: raw events in fetch order, when nothing is in the future

Day windows are re-anchored to the day of "now" before comparing, so
both window kinds compare as instants.
"""

from datetime import datetime
from typing import Sequence

import structlog

from .models import CanonicalEvent, Tier

logger = structlog.get_logger()


def classify(
    events: Sequence[CanonicalEvent],
    now: datetime,
    max_count: int,
) -> list[CanonicalEvent]:
    """
    Bucket events into tiers relative to ``now``.

    Args:
        events: Canonical events in fetch order
        now: Current local time
        max_count: Maximum number of events to return

    Returns:
        Tagged events, at most ``max_count`` of them
    """
    if max_count <= 0 or not events:
        return []

    parseable = [e for e in events if e.window is not None]

    ongoing = [e for e in parseable if e.window.contains(now)]
    if ongoing:
        return [e.tagged(Tier.ONGOING) for e in ongoing[:max_count]]

    past, future = _partition(parseable, now)

    result = _previous_and_next(past, future, now)
    if result:
        return result[:max_count]

    if future:
        upcoming = sorted(future, key=lambda e: e.window.start_at(now))
        return [e.tagged(Tier.UPCOMING) for e in upcoming[:max_count]]

    logger.debug("classify_listing_fallback", event_count=len(events))
    return [e.tagged(Tier.LISTING) for e in events[:max_count]]


def _partition(
    events: list[CanonicalEvent], now: datetime
) -> tuple[list[CanonicalEvent], list[CanonicalEvent]]:
    """Split events into (past, future); both keep fetch order."""
    past = [e for e in events if e.window.end_at(now) < now]
    future = [e for e in events if e.window.start_at(now) > now]
    return past, future


def _previous_and_next(
    past: list[CanonicalEvent],
    future: list[CanonicalEvent],
    now: datetime,
) -> list[CanonicalEvent]:
    """Pick the latest past and earliest future event of the current day."""
    today = now.date()
    result: list[CanonicalEvent] = []

    previous = None
    for event in past:
        if not event.window.ends_on(today):
            continue
        # >= so that on equal ends the later-fetched event wins
        if previous is None or event.window.end_at(now) >= previous.window.end_at(now):
            previous = event

    todays_future = [e for e in future if e.window.starts_on(today)]
    # sorted() is stable: equal starts keep fetch order
    upcoming = sorted(todays_future, key=lambda e: e.window.start_at(now))

    if previous is not None:
        result.append(previous.tagged(Tier.PREVIOUS))
    if upcoming:
        result.append(upcoming[0].tagged(Tier.NEXT))
    return result
