"""Shared pytest fixtures for activity calendar tests."""

from datetime import datetime

import pytest

from servers.activity_calendar.config.settings import CalendarSettings, LocaleSettings
from servers.activity_calendar.models import CanonicalEvent, RawEventRecord
from servers.activity_calendar.timeparse import parse_time_range

NOW = datetime(2026, 10, 19, 12, 0)


class FakePageFetcher:
    """PageFetcher returning canned HTML fragments."""

    def __init__(self, fragments=None, error: Exception | None = None):
        self.fragments = fragments or []
        self.error = error
        self.calls: list[str] = []

    async def fetch_fragments(self, url: str) -> list[str]:
        self.calls.append(url)
        if self.error:
            raise self.error
        return list(self.fragments)


def make_event(title: str, time_text: str, now: datetime = NOW, description: str = "") -> CanonicalEvent:
    """Build a canonical event the way the update path does."""
    return CanonicalEvent(
        title=title,
        description=description,
        raw_time_text=time_text,
        window=parse_time_range(time_text, now),
    )


@pytest.fixture
def now() -> datetime:
    """Provide a fixed local "now" (12:00)."""
    return NOW


@pytest.fixture
def settings() -> CalendarSettings:
    """Two locales: jp scraped only, cn structured with scraped fallback."""
    return CalendarSettings(
        max_activities=10,
        source_timeout_seconds=5.0,
        locales={
            "jp": LocaleSettings(
                display_name="VRChat イベントカレンダー",
                timezone="Asia/Tokyo",
                scrape_url="https://vrceve.com/",
            ),
            "cn": LocaleSettings(
                display_name="VRChat 中文活动日历",
                timezone="Asia/Shanghai",
                structured_url="https://api.example.com/activities",
                scrape_url="https://calendar.example.com/",
            ),
        },
    )


@pytest.fixture
def calendar_html() -> str:
    """Google Calendar embed markup with chips and agenda rows."""
    return """
    <html><body>
      <div data-eventchip>10:00 - 11:00 Morning Meetup</div>
      <div class="chip">21:00 - 23:30 Japanese Language Exchange</div>
      <div class="chip">23:00 - 01:00 Midnight Club</div>
      <div class="chip">祝日 振替休日</div>
      <div class="chip">abc</div>
      <table>
        <tr class="event-summary">
          <td class="event-time">15:00 - 16:00</td>
          <td class="event-summary">Photo Walk</td>
        </tr>
        <tr class="event-summary">
          <td class="event-time">TBD</td>
        </tr>
      </table>
    </body></html>
    """


@pytest.fixture
def structured_payload() -> dict:
    """Structured API response with one record per filter outcome."""
    return {
        "data": [
            {
                "title": "Dance Party",
                "start_time": "2026-10-19T20:00:00+08:00",
                "end_time": "2026-10-19T22:00:00+08:00",
                "description": "Weekly dance event",
                "initiator": "Miku",
                "status": "confirmed",
            },
            {
                "title": "Cinema Night",
                "time": "13:30 - 15:00",
                "status": "confirmed",
            },
            {"title": "Pending Event", "time": "18:00 - 19:00", "status": "pending"},
            {"title": "", "time": "18:00 - 19:00", "status": "confirmed"},
            {"title": "Test activity", "time": "18:00 - 19:00", "status": "confirmed"},
        ]
    }


@pytest.fixture
def raw_records() -> list[RawEventRecord]:
    """Provide raw scraped records in fetch order."""
    return [
        RawEventRecord(title="Morning Meetup", raw_time_text="10:00 - 11:00"),
        RawEventRecord(title="Photo Walk", raw_time_text="15:00 - 16:00"),
        RawEventRecord(title="Open Mic", raw_time_text="TBD"),
    ]


@pytest.fixture
def event_factory():
    """Provide make_event for building canonical events."""
    return make_event


@pytest.fixture
def fake_fetcher_cls():
    """Provide the FakePageFetcher class."""
    return FakePageFetcher
