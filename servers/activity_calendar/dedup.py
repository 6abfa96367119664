"""
Fuzzy de-duplication of raw records.

The calendar embed exposes the same activity through several DOM views
(chips, agenda rows, repeated iframes). Two records are duplicates when
their time text is identical and:
- their normalized titles are equal, or
- both were scraped, their titles are at least THRESHOLD similar, and no
  short or numbered token tells them apart ("Room A" vs "Room B").
Structured records are only merged on equal titles. The first record in
fetch order is kept.
"""

import re
from typing import Sequence

import structlog
from rapidfuzz import fuzz

from .models import RawEventRecord

logger = structlog.get_logger()

# Similarity threshold for duplicate titles
THRESHOLD = 0.95

# Tokens this short, or containing a digit, name distinct events
DISTINGUISHING_TOKEN_LENGTH = 3


def normalize_text(text: str) -> str:
    """Normalize text for comparison."""
    if not text:
        return ""

    text = text.lower().strip()
    text = re.sub(r"\s+", " ", text)
    return text


def normalize_time_text(text: str) -> str:
    """Drop whitespace and unify range separators."""
    if not text:
        return ""
    text = re.sub(r"\s+", "", text)
    return re.sub(r"[~–〜]", "-", text)


def title_similarity(r1: RawEventRecord, r2: RawEventRecord) -> float:
    """Title similarity (0-1), independent of word order."""
    t1 = normalize_text(r1.title)
    t2 = normalize_text(r2.title)

    if not t1 or not t2:
        return 0.0

    return fuzz.token_sort_ratio(t1, t2) / 100


def has_distinguishing_tokens(t1: str, t2: str) -> bool:
    """True when the titles differ by a short or numbered token."""
    for token in set(t1.split()) ^ set(t2.split()):
        if len(token) <= DISTINGUISHING_TOKEN_LENGTH or any(c.isdigit() for c in token):
            return True
    return False


def is_duplicate(r1: RawEventRecord, r2: RawEventRecord, threshold: float = THRESHOLD) -> bool:
    if normalize_time_text(r1.raw_time_text) != normalize_time_text(r2.raw_time_text):
        return False

    t1 = normalize_text(r1.title)
    t2 = normalize_text(r2.title)
    if t1 and t1 == t2:
        return True
    if r1.source != "scraped" or r2.source != "scraped":
        return False
    if has_distinguishing_tokens(t1, t2):
        return False
    return title_similarity(r1, r2) >= threshold


def deduplicate(
    records: Sequence[RawEventRecord],
    threshold: float = THRESHOLD,
) -> list[RawEventRecord]:
    """
    Remove duplicate records, keeping fetch order.

    When a duplicate carries a longer description it replaces the kept
    record's description.

    Args:
        records: Records in fetch order
        threshold: Title similarity threshold (0-1)

    Returns:
        De-duplicated records
    """
    kept: list[RawEventRecord] = []

    for record in records:
        for i, existing in enumerate(kept):
            if is_duplicate(existing, record, threshold):
                if len(record.description) > len(existing.description):
                    kept[i] = existing.model_copy(update={"description": record.description})
                break
        else:
            kept.append(record)

    removed = len(records) - len(kept)
    if removed:
        logger.info("duplicates_removed", original=len(records), removed=removed)
    return kept
