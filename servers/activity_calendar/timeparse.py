"""
Free-text time range parsing.

Grammar, tried in order (first match wins):
1. Absolute range:    "YYYY-MM-DD HH:MM - YYYY-MM-DD HH:MM" -> AbsoluteWindow
2. Dated clock range: "YYYY-MM-DD HH:MM - HH:MM"            -> AbsoluteWindow
3. Bare clock range:  "HH:MM - HH:MM"                       -> DayWindow
4. Anything else                                            -> None

Separators between the two ends may be "-", "~", "–" or "〜", with
optional surrounding whitespace. Dates may use "-" or "/".
"""

import re
from datetime import datetime, timedelta
from typing import Optional

import structlog

from .errors import ParseFailure
from .models import (
    MINUTES_PER_DAY,
    AbsoluteWindow,
    CanonicalEvent,
    DayWindow,
    RawEventRecord,
    TimeWindow,
)

logger = structlog.get_logger()

_SEP = r"\s*[-~–〜]\s*"
_DATE_TIME = r"(\d{4})[-/](\d{1,2})[-/](\d{1,2})\s+(\d{1,2}):(\d{2})"
_CLOCK = r"(\d{1,2}):(\d{2})"
_DATE = r"\d{4}[-/]\d{1,2}[-/]\d{1,2}"

ABSOLUTE_RANGE_PATTERN = re.compile(_DATE_TIME + _SEP + _DATE_TIME)
DATED_CLOCK_RANGE_PATTERN = re.compile(_DATE_TIME + _SEP + _CLOCK)
CLOCK_RANGE_PATTERN = re.compile(_CLOCK + _SEP + _CLOCK)
DATE_PATTERN = re.compile(_DATE)


class DateRangeParser:
    """Parse time range text into a TimeWindow.

    Args:
        drop_past_absolute: Treat absolute windows that ended before
            ``now`` as unparseable instead of keeping them as past
            events. Off by default so they can be tagged Previous.
    """

    def __init__(self, drop_past_absolute: bool = False):
        self.drop_past_absolute = drop_past_absolute

    def parse(self, text: Optional[str], now: datetime) -> Optional[TimeWindow]:
        """Parse ``text`` relative to ``now``; None when unrecognized."""
        try:
            return self._parse_or_raise(text or "", now)
        except ParseFailure as e:
            logger.debug("time_text_unparseable", text=e.text)
            return None

    def _parse_or_raise(self, text: str, now: datetime) -> TimeWindow:
        match = ABSOLUTE_RANGE_PATTERN.search(text)
        if match:
            return self._checked(_absolute_window(match), text, now)

        match = DATED_CLOCK_RANGE_PATTERN.search(text)
        if match:
            return self._checked(_dated_clock_window(match), text, now)

        match = CLOCK_RANGE_PATTERN.search(text)
        if match:
            # A dated range we could not anchor must not land on the current day
            if DATE_PATTERN.search(text, 0, match.start()):
                raise ParseFailure(text)
            window = _day_window(match)
            if window is None:
                raise ParseFailure(text)
            return window

        raise ParseFailure(text)

    def _checked(
        self, window: Optional[AbsoluteWindow], text: str, now: datetime
    ) -> AbsoluteWindow:
        if window is None:
            raise ParseFailure(text)
        if self.drop_past_absolute and window.end < now:
            raise ParseFailure(text)
        return window


def _absolute_window(match: re.Match) -> Optional[AbsoluteWindow]:
    """Build an absolute window; None for impossible dates or empty ranges."""
    parts = [int(g) for g in match.groups()]
    try:
        start = datetime(*parts[0:5])
        end = datetime(*parts[5:10])
    except ValueError:
        return None

    if end <= start:
        return None
    return AbsoluteWindow(start=start, end=end)


def _dated_clock_window(match: re.Match) -> Optional[AbsoluteWindow]:
    """Anchor a clock range to its date; an end at or before the start is the next day."""
    year, month, day, sh, sm, eh, em = (int(g) for g in match.groups())
    if eh > 24 or em > 59:
        return None
    try:
        start = datetime(year, month, day, sh, sm)
    except ValueError:
        return None

    end = start.replace(hour=0, minute=0) + timedelta(minutes=eh * 60 + em)
    if end <= start:
        end += timedelta(days=1)
    return AbsoluteWindow(start=start, end=end)


def _day_window(match: re.Match) -> Optional[DayWindow]:
    """Build a minute-of-day window, wrapping the end past midnight if needed."""
    sh, sm, eh, em = (int(g) for g in match.groups())
    if sm > 59 or em > 59:
        return None

    start = sh * 60 + sm
    end = eh * 60 + em
    if start > MINUTES_PER_DAY or end > MINUTES_PER_DAY:
        return None

    if end <= start:
        end += MINUTES_PER_DAY
    return DayWindow(start_minute=start, end_minute=end)


default_parser = DateRangeParser()


def parse_time_range(text: Optional[str], now: datetime) -> Optional[TimeWindow]:
    """Parse with the default policy."""
    return default_parser.parse(text, now)


def to_canonical(
    record: RawEventRecord,
    now: datetime,
    parser: Optional[DateRangeParser] = None,
) -> CanonicalEvent:
    """Combine a raw record with its parsed window."""
    parser = parser or default_parser
    return CanonicalEvent(
        title=record.title,
        description=record.description,
        raw_time_text=record.raw_time_text,
        window=parser.parse(record.raw_time_text, now),
    )
