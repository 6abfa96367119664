"""
Validity filters applied to raw records before normalization.

Structured records must have a real title, no noise keyword and a
"confirmed" status. Scraped records have no status; their noise check
runs over title and description together.
"""

import re
from typing import Iterable, Optional, Sequence

import structlog

from ..models import RawEventRecord

logger = structlog.get_logger()

CONFIRMED_STATUS = "confirmed"

# Titles the calendar widgets emit when an entry has no name
PLACEHOLDER_TITLES = {
    "",
    "untitled",
    "(no title)",
    "no title",
    "未命名活动",
    "未命名",
    "無題",
    "(タイトルなし)",
    "タイトルなし",
}

# Public-holiday calendar entries and test/draft markers
DEFAULT_NOISE_KEYWORDS = [
    "holiday",
    "祝日",
    "振替休日",
    "国民の休日",
    "节假日",
    "法定假日",
    "调休",
    "test",
    "テスト",
    "测试",
    "draft",
    "下書き",
    "草稿",
]

MIN_TITLE_LENGTH = 2


def is_placeholder_title(title: Optional[str]) -> bool:
    """Check for missing or placeholder titles."""
    if not title:
        return True
    normalized = title.strip().lower()
    return normalized in PLACEHOLDER_TITLES or len(normalized) < MIN_TITLE_LENGTH


def compile_noise_pattern(keywords: Iterable[str]) -> re.Pattern:
    """Build one case-insensitive pattern; ASCII keywords match whole words only."""
    parts = []
    for keyword in keywords:
        escaped = re.escape(keyword.strip())
        if not escaped:
            continue
        if keyword.isascii():
            parts.append(rf"\b{escaped}\b")
        else:
            parts.append(escaped)
    if not parts:
        # Matches nothing
        return re.compile(r"(?!x)x")
    return re.compile("|".join(parts), re.IGNORECASE)


def contains_noise(text: str, pattern: re.Pattern) -> bool:
    return bool(text) and pattern.search(text) is not None


def filter_structured(
    records: Sequence[RawEventRecord],
    keywords: Iterable[str] = DEFAULT_NOISE_KEYWORDS,
) -> list[RawEventRecord]:
    """Keep confirmed structured records with a real, noise-free title."""
    pattern = compile_noise_pattern(keywords)
    kept = [
        r for r in records
        if not is_placeholder_title(r.title)
        and not contains_noise(r.title, pattern)
        and (r.status or "").strip().lower() == CONFIRMED_STATUS
    ]
    _log_dropped("structured", records, kept)
    return kept


def filter_scraped(
    records: Sequence[RawEventRecord],
    keywords: Iterable[str] = DEFAULT_NOISE_KEYWORDS,
) -> list[RawEventRecord]:
    """Keep scraped records with a real title and no noise in title+description."""
    pattern = compile_noise_pattern(keywords)
    kept = [
        r for r in records
        if not is_placeholder_title(r.title)
        and not contains_noise(f"{r.title} {r.description}", pattern)
    ]
    _log_dropped("scraped", records, kept)
    return kept


def _log_dropped(
    source: str,
    records: Sequence[RawEventRecord],
    kept: Sequence[RawEventRecord],
) -> None:
    dropped = len(records) - len(kept)
    if dropped:
        logger.info(
            "records_filtered",
            source=source,
            fetched=len(records),
            dropped=dropped,
            kept=len(kept),
        )
