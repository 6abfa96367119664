"""Tests for activity data models."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from servers.activity_calendar.models import (
    AbsoluteWindow,
    CanonicalEvent,
    DayWindow,
    RawEventRecord,
    Snapshot,
    Tier,
)


class TestRawEventRecord:
    def test_defaults(self):
        record = RawEventRecord(title="Dance Party")
        assert record.raw_time_text == ""
        assert record.description == ""
        assert record.organizer is None
        assert record.source == "scraped"


class TestDayWindow:
    """Tests for minute-of-day windows."""

    def test_contains_is_inclusive(self):
        window = DayWindow(start_minute=660, end_minute=780)
        assert window.contains(datetime(2026, 10, 19, 11, 0))
        assert window.contains(datetime(2026, 10, 19, 13, 0))
        assert not window.contains(datetime(2026, 10, 19, 13, 1))

    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            DayWindow(start_minute=600, end_minute=600)

    def test_end_may_pass_midnight(self):
        window = DayWindow(start_minute=1380, end_minute=1500)
        assert window.end_at(datetime(2026, 10, 19, 12, 0)) == datetime(2026, 10, 20, 1, 0)

    def test_end_bounded_to_two_days(self):
        with pytest.raises(ValidationError):
            DayWindow(start_minute=0, end_minute=2881)

    def test_anchored_to_current_day(self):
        window = DayWindow(start_minute=900, end_minute=960)
        assert window.start_at(datetime(2026, 10, 19, 8, 30)) == datetime(2026, 10, 19, 15, 0)
        assert window.starts_on(date(2030, 1, 1))


class TestAbsoluteWindow:
    def test_contains(self):
        window = AbsoluteWindow(start=datetime(2026, 10, 19, 11, 0), end=datetime(2026, 10, 19, 13, 0))
        assert window.contains(datetime(2026, 10, 19, 12, 0))
        assert not window.contains(datetime(2026, 10, 20, 12, 0))

    def test_end_must_follow_start(self):
        with pytest.raises(ValidationError):
            AbsoluteWindow(start=datetime(2026, 10, 19, 13, 0), end=datetime(2026, 10, 19, 11, 0))

    def test_day_membership(self):
        window = AbsoluteWindow(start=datetime(2026, 10, 19, 23, 0), end=datetime(2026, 10, 20, 1, 0))
        assert window.starts_on(date(2026, 10, 19))
        assert not window.ends_on(date(2026, 10, 19))


class TestCanonicalEvent:
    """Tests for CanonicalEvent model."""

    def test_parseable(self):
        event = CanonicalEvent(title="A", window=DayWindow(start_minute=0, end_minute=60))
        assert event.parseable is True
        assert CanonicalEvent(title="B", raw_time_text="TBD").parseable is False

    def test_window_discriminator(self):
        event = CanonicalEvent.model_validate({
            "title": "A",
            "window": {"kind": "day", "start_minute": 60, "end_minute": 120},
        })
        assert isinstance(event.window, DayWindow)

    def test_frozen(self):
        event = CanonicalEvent(title="A")
        with pytest.raises(ValidationError):
            event.title = "B"

    def test_tagged_returns_copy(self):
        event = CanonicalEvent(title="A")
        tagged = event.tagged(Tier.NEXT)

        assert tagged.tag == Tier.NEXT
        assert event.tag is None
        assert tagged.title == "A"


class TestSnapshot:
    def test_empty_by_default(self):
        snapshot = Snapshot()
        assert snapshot.has_data is False
        assert snapshot.fetched_at is None
        assert snapshot.source_used == "none"

    def test_has_data(self):
        snapshot = Snapshot(events=(CanonicalEvent(title="A"),), source_used="scraped")
        assert snapshot.has_data is True
