"""
Scraped calendar page source.

Page acquisition is delegated to a PageFetcher, which returns the HTML
of the calendar fragments on a page:
- PlaywrightPageFetcher: renders the page and collects embedded
  calendar iframes (the community calendars are Google Calendar embeds)
- HttpPageFetcher: plain httpx GET for static pages

Event extraction runs over the returned HTML with BeautifulSoup.
"""

import asyncio
from typing import Optional, Protocol

import httpx
import structlog
from bs4 import BeautifulSoup

from ..errors import SourceUnavailable
from ..models import RawEventRecord
from ..timeparse import CLOCK_RANGE_PATTERN
from .structured import USER_AGENT

logger = structlog.get_logger()

SOURCE_NAME = "scraped"

# Month/week view chips and agenda view rows
CHIP_SELECTOR = "[data-eventchip], .chip"
AGENDA_ROW_SELECTOR = "tr.event-summary"
READY_SELECTORS = ("[data-eventchip]", ".chip", ".event-summary")

MIN_CHIP_TEXT_LENGTH = 5


class PageFetcher(Protocol):
    """Returns the HTML fragments holding calendar entries for a URL."""

    async def fetch_fragments(self, url: str) -> list[str]:
        ...


class PlaywrightPageFetcher:
    """Render a page in headless Chromium and collect calendar iframes."""

    def __init__(
        self,
        frame_host: str = "calendar.google.com",
        navigation_timeout: float = 60.0,
        selector_timeout: float = 20.0,
        settle_delay: float = 5.0,
        user_agent: str = USER_AGENT,
    ):
        """Initialize fetcher.

        Args:
            frame_host: Host an iframe URL must contain to be collected
            navigation_timeout: Seconds allowed for page navigation
            selector_timeout: Seconds to wait for event elements per frame
            settle_delay: Seconds to wait after load for embeds to attach
            user_agent: Browser user agent
        """
        self.frame_host = frame_host
        self.navigation_timeout = navigation_timeout
        self.selector_timeout = selector_timeout
        self.settle_delay = settle_delay
        self.user_agent = user_agent

    async def fetch_fragments(self, url: str) -> list[str]:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import async_playwright

        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    page = await browser.new_page(user_agent=self.user_agent)
                    logger.info("loading_calendar_page", url=url)
                    await page.goto(
                        url,
                        wait_until="domcontentloaded",
                        timeout=self.navigation_timeout * 1000,
                    )
                    await page.wait_for_selector("body", timeout=15000)
                    await asyncio.sleep(self.settle_delay)
                    return await self._collect_frames(page)
                finally:
                    await browser.close()
        except PlaywrightError as e:
            raise SourceUnavailable(SOURCE_NAME, str(e)) from e

    async def _collect_frames(self, page) -> list[str]:
        from playwright.async_api import Error as PlaywrightError

        frames = [f for f in page.frames if self.frame_host in (f.url or "")]
        logger.info("calendar_frames_found", count=len(frames), total=len(page.frames))

        fragments: list[str] = []
        for frame in frames:
            await self._wait_for_events(frame)
            try:
                fragments.append(await frame.content())
            except PlaywrightError as e:
                logger.warning("frame_extract_failed", frame_url=frame.url, error=str(e))

        if not fragments:
            logger.warning("no_calendar_frames", url=page.url)
        return fragments

    async def _wait_for_events(self, frame) -> None:
        """Wait until any event selector shows up, or give up after the timeout."""
        waits = [
            asyncio.ensure_future(
                frame.wait_for_selector(sel, timeout=self.selector_timeout * 1000)
            )
            for sel in READY_SELECTORS
        ]
        _, pending = await asyncio.wait(waits, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*waits, return_exceptions=True)


class HttpPageFetcher:
    """Fetch a static page; the whole document is the only fragment."""

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.timeout = timeout
        self.client = client

    async def fetch_fragments(self, url: str) -> list[str]:
        try:
            if self.client is None:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._get(client, url)
            else:
                response = await self._get(self.client, url)
        except httpx.HTTPStatusError as e:
            raise SourceUnavailable(SOURCE_NAME, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise SourceUnavailable(SOURCE_NAME, f"Request failed: {e!r}") from e
        return [response.text]

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        response = await client.get(
            url, headers={"User-Agent": USER_AGENT}, follow_redirects=True
        )
        response.raise_for_status()
        return response


async def fetch_scraped(url: str, fetcher: PageFetcher) -> list[RawEventRecord]:
    """
    Scrape activity records from a calendar page.

    Args:
        url: Calendar page URL
        fetcher: Page acquisition strategy

    Returns:
        Records extracted from every fragment, in document order

    Raises:
        SourceUnavailable: If the page can't be loaded
    """
    fragments = await fetcher.fetch_fragments(url)

    records: list[RawEventRecord] = []
    for html in fragments:
        records.extend(extract_records(html))

    logger.info("scraped_records_extracted", url=url, count=len(records))
    for i, record in enumerate(records[:3]):
        logger.debug("scraped_record_sample", index=i + 1, time=record.raw_time_text, title=record.title)
    return records


def extract_records(html: str) -> list[RawEventRecord]:
    """Extract records from calendar chips and agenda rows."""
    soup = BeautifulSoup(html, "html.parser")
    records: list[RawEventRecord] = []

    for chip in soup.select(CHIP_SELECTOR):
        record = _parse_chip(chip.get_text(" ", strip=True))
        if record:
            records.append(record)

    for row in soup.select(AGENDA_ROW_SELECTOR):
        records.append(_parse_agenda_row(row))

    return records


def _parse_chip(text: str) -> Optional[RawEventRecord]:
    """Chips carry "HH:MM - HH:MM Title" as one text run."""
    if not text or len(text) < MIN_CHIP_TEXT_LENGTH:
        return None

    match = CLOCK_RANGE_PATTERN.search(text)
    time_text = match.group(0) if match else ""
    title = text.replace(time_text, "", 1).strip() if time_text else text

    return RawEventRecord(
        title=title,
        raw_time_text=time_text,
        description=text,
        source="scraped",
    )


def _parse_agenda_row(row) -> RawEventRecord:
    title_cell = row.select_one("td.event-summary")
    time_cell = row.select_one("td.event-time")
    return RawEventRecord(
        title=title_cell.get_text(" ", strip=True) if title_cell else "",
        raw_time_text=time_cell.get_text(" ", strip=True) if time_cell else "",
        description=row.get_text(" ", strip=True),
        source="scraped",
    )
