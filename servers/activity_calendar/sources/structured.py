"""
Structured JSON API source.

Expected shape: a JSON list of activity objects, or an object carrying
that list under "data", "events" or "activities". Each object has a
title plus either start/end timestamps or a free-text time field.
Anything else is a MalformedResponse.
"""

from datetime import datetime, tzinfo
from typing import Any, Optional

import httpx
import structlog
from dateutil import parser as date_parser

from ..errors import MalformedResponse, SourceUnavailable
from ..models import RawEventRecord

logger = structlog.get_logger()

SOURCE_NAME = "structured"
LIST_KEYS = ("data", "events", "activities")
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
)


async def fetch_structured(
    url: str,
    timeout: float = 30.0,
    client: Optional[httpx.AsyncClient] = None,
) -> list[dict[str, Any]]:
    """
    Fetch the raw activity list from a structured API.

    Args:
        url: API endpoint returning JSON
        timeout: Request timeout in seconds
        client: Optional shared client (a new one is created otherwise)

    Returns:
        List of source-native activity objects

    Raises:
        SourceUnavailable: On connection errors, timeouts and HTTP errors
        MalformedResponse: If the body isn't JSON of the expected shape
    """
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await _get(own_client, url)
        else:
            response = await _get(client, url)
    except httpx.HTTPStatusError as e:
        raise SourceUnavailable(SOURCE_NAME, f"HTTP {e.response.status_code}") from e
    except httpx.RequestError as e:
        raise SourceUnavailable(SOURCE_NAME, f"Request failed: {e!r}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise MalformedResponse(SOURCE_NAME, "response is not JSON") from e

    return extract_items(payload)


async def _get(client: httpx.AsyncClient, url: str) -> httpx.Response:
    response = await client.get(
        url,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        follow_redirects=True,
    )
    response.raise_for_status()
    return response


def extract_items(payload: Any) -> list[dict[str, Any]]:
    """Pull the activity list out of a decoded payload."""
    items = payload
    if isinstance(payload, dict):
        items = next(
            (payload[key] for key in LIST_KEYS if isinstance(payload.get(key), list)),
            None,
        )

    if not isinstance(items, list):
        raise MalformedResponse(SOURCE_NAME, "no activity list in response")
    if not all(isinstance(item, dict) for item in items):
        raise MalformedResponse(SOURCE_NAME, "activity list contains non-objects")
    return items


def parse_structured_records(
    items: list[dict[str, Any]],
    tz: Optional[tzinfo] = None,
) -> list[RawEventRecord]:
    """Map source-native objects onto RawEventRecord."""
    records: list[RawEventRecord] = []
    for item in items:
        title = _first_text(item, "title", "name", "summary")
        records.append(RawEventRecord(
            title=title,
            raw_time_text=_time_text(item, tz),
            description=_first_text(item, "description", "desc", "content"),
            organizer=_first_text(item, "organizer", "initiator", "host") or None,
            status=_first_text(item, "status", "state") or None,
            source="structured",
        ))
    return records


def _first_text(item: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, dict):
            value = value.get("name") or value.get("displayName")
        if value:
            return str(value).strip()
    return ""


def _time_text(item: dict[str, Any], tz: Optional[tzinfo]) -> str:
    """Render start/end timestamps as an absolute range, else the raw time field."""
    start = _parse_timestamp(_first_text(item, "start_time", "start", "startDate"), tz)
    end = _parse_timestamp(_first_text(item, "end_time", "end", "endDate"), tz)
    if start and end:
        return f"{start:%Y-%m-%d %H:%M} - {end:%Y-%m-%d %H:%M}"
    return _first_text(item, "time", "date", "when")


def _parse_timestamp(value: str, tz: Optional[tzinfo]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        logger.debug("structured_timestamp_invalid", value=value)
        return None

    if parsed.tzinfo is not None:
        # Compare in locale-local wall time
        if tz is not None:
            parsed = parsed.astimezone(tz)
        parsed = parsed.replace(tzinfo=None)
    return parsed
