"""
Pydantic models for activity data structures.

These models define the core data types used throughout the pipeline:
- RawEventRecord: Source-specific record, discarded after normalization
- TimeWindow: Absolute instant pair or day-relative minute pair
- CanonicalEvent: Normalized event with an optional window and tier tag
- Snapshot: Last known-good event list per locale
"""

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

MINUTES_PER_DAY = 24 * 60

SourceKind = Literal["structured", "scraped", "none"]


class Tier(str, Enum):
    """Classification label assigned to a displayed event."""

    ONGOING = "Ongoing"
    PREVIOUS = "Previous"
    NEXT = "Next"
    UPCOMING = "Upcoming"  # fallback: future events on later days
    LISTING = "Listing"  # fallback: raw listing, parseable or not


class RawEventRecord(BaseModel):
    """A record as produced by a source adapter."""

    title: str
    raw_time_text: str = ""
    description: str = ""
    organizer: Optional[str] = None
    status: Optional[str] = None
    source: SourceKind = "scraped"


class AbsoluteWindow(BaseModel):
    """Window with full calendar dates on both ends."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["absolute"] = "absolute"
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "AbsoluteWindow":
        if self.end <= self.start:
            raise ValueError("window end must be after start")
        return self

    def contains(self, now: datetime) -> bool:
        return self.start <= now <= self.end

    def start_at(self, now: datetime) -> datetime:
        return self.start

    def end_at(self, now: datetime) -> datetime:
        return self.end

    def starts_on(self, day: date) -> bool:
        return self.start.date() == day

    def ends_on(self, day: date) -> bool:
        return self.end.date() == day


class DayWindow(BaseModel):
    """Window expressed as minutes since midnight of the current day.

    An end past 1440 means the event crosses midnight.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["day"] = "day"
    start_minute: int = Field(ge=0, lt=MINUTES_PER_DAY + 1)
    end_minute: int = Field(ge=0, le=2 * MINUTES_PER_DAY)

    @model_validator(mode="after")
    def _check_order(self) -> "DayWindow":
        if self.end_minute <= self.start_minute:
            raise ValueError("window end must be after start")
        return self

    @staticmethod
    def minute_of_day(now: datetime) -> int:
        return now.hour * 60 + now.minute

    def contains(self, now: datetime) -> bool:
        return self.start_minute <= self.minute_of_day(now) <= self.end_minute

    def start_at(self, now: datetime) -> datetime:
        """Re-anchor the start to the day of ``now``."""
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight + timedelta(minutes=self.start_minute)

    def end_at(self, now: datetime) -> datetime:
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight + timedelta(minutes=self.end_minute)

    def starts_on(self, day: date) -> bool:
        # Clock-only windows always belong to the current day
        return True

    def ends_on(self, day: date) -> bool:
        return True


TimeWindow = Annotated[Union[AbsoluteWindow, DayWindow], Field(discriminator="kind")]


class CanonicalEvent(BaseModel):
    """Normalized event; ``window`` is None when the time text is unparseable."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    raw_time_text: str = ""
    window: Optional[TimeWindow] = None
    tag: Optional[Tier] = None

    @computed_field
    @property
    def parseable(self) -> bool:
        return self.window is not None

    def tagged(self, tier: Tier) -> "CanonicalEvent":
        """Return a copy carrying the given tier."""
        return self.model_copy(update={"tag": tier})


class Snapshot(BaseModel):
    """Last known-good events for one locale. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    events: tuple[CanonicalEvent, ...] = ()
    fetched_at: Optional[datetime] = None  # last fetch cycle, successful or not
    events_fetched_at: Optional[datetime] = None  # when `events` were obtained
    source_used: SourceKind = "none"

    @computed_field
    @property
    def has_data(self) -> bool:
        return len(self.events) > 0


class FetchStats(BaseModel):
    """Statistics from a single source attempt."""

    source: str
    count: int
    status: str  # success, error, skipped, empty
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None


class AcquisitionResult(BaseModel):
    """Result of running a locale's fallback chain."""

    records: list[RawEventRecord] = Field(default_factory=list)
    source_used: SourceKind = "none"
    stats: list[FetchStats] = Field(default_factory=list)


class DisplayResult(BaseModel):
    """Classified, capped events handed to the renderer."""

    locale: str
    events: list[CanonicalEvent] = Field(default_factory=list)
    as_of: Optional[datetime] = None  # locale-local "now" the tiers were computed for
    fetched_at: Optional[datetime] = None
    events_fetched_at: Optional[datetime] = None
    source_used: SourceKind = "none"
    total_events: int = 0
    placeholder: bool = False
