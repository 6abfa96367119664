"""
Per-locale acquisition across a fallback chain of sources.

Chain order:
1. Structured API, if the locale defines one
2. Scraped calendar page

A source "succeeds" only when at least one record survives its validity
filter; otherwise it raises EmptyResult and the next source is tried.
acquire() never raises: when every source fails the result is empty.
"""

from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from .config.settings import CalendarSettings, LocaleSettings
from .dedup import deduplicate
from .errors import EmptyResult
from .models import AcquisitionResult, FetchStats, RawEventRecord, SourceKind
from .resilience import FallbackChain, HealthMonitor, source_key, with_default
from .sources import (
    HttpPageFetcher,
    PageFetcher,
    PlaywrightPageFetcher,
    fetch_scraped,
    fetch_structured,
    filter_scraped,
    filter_structured,
    parse_structured_records,
)

logger = structlog.get_logger()

StructuredFetch = Callable[..., Awaitable[list[dict[str, Any]]]]


class AcquisitionOrchestrator:
    """Drive each locale's fallback chain and validate the results."""

    def __init__(
        self,
        settings: CalendarSettings,
        health: Optional[HealthMonitor] = None,
        client: Optional[httpx.AsyncClient] = None,
        page_fetchers: Optional[dict[str, PageFetcher]] = None,
        structured_fetch: StructuredFetch = fetch_structured,
    ):
        """Initialize orchestrator.

        Args:
            settings: Calendar settings with per-locale sources
            health: Health monitor to record attempts in
            client: Shared httpx client for structured and static sources
            page_fetchers: Page fetcher per locale (built from settings if missing)
            structured_fetch: Structured API call, replaceable in tests
        """
        self.settings = settings
        self.health = health or HealthMonitor()
        self.client = client
        self.page_fetchers = dict(page_fetchers or {})
        self.structured_fetch = structured_fetch

    def page_fetcher(self, locale: str) -> PageFetcher:
        if locale not in self.page_fetchers:
            self.page_fetchers[locale] = self._build_page_fetcher(self.settings.locale(locale))
        return self.page_fetchers[locale]

    def _build_page_fetcher(self, cfg: LocaleSettings) -> PageFetcher:
        if cfg.scrape_mode == "http":
            return HttpPageFetcher(timeout=self.settings.source_timeout_seconds, client=self.client)
        return PlaywrightPageFetcher(
            frame_host=cfg.frame_host,
            navigation_timeout=self.settings.navigation_timeout_seconds,
            settle_delay=self.settings.scrape_delay_ms / 1000,
        )

    async def acquire(self, locale: str) -> AcquisitionResult:
        """
        Run the locale's fallback chain.

        Args:
            locale: Locale name

        Returns:
            Records from the first source with valid data, or an empty
            result with source_used="none"
        """
        cfg = self.settings.locale(locale)
        stats: list[FetchStats] = []
        steps = []

        async def structured() -> AcquisitionResult:
            started = datetime.now()
            items = await self.structured_fetch(
                cfg.structured_url,
                timeout=self.settings.source_timeout_seconds,
                client=self.client,
            )
            records = parse_structured_records(items, tz=cfg.tzinfo)
            valid = filter_structured(records, cfg.noise_keywords)
            return self._accept(locale, "structured", records, valid, stats, started)

        async def scraped() -> AcquisitionResult:
            started = datetime.now()
            records = await fetch_scraped(cfg.scrape_url, self.page_fetcher(locale))
            valid = filter_scraped(records, cfg.noise_keywords)
            return self._accept(locale, "scraped", records, valid, stats, started)

        if cfg.structured_url:
            steps.append(structured)
        else:
            stats.append(FetchStats(source="structured", count=0, status="skipped"))
        if cfg.scrape_url:
            steps.append(scraped)
        else:
            stats.append(FetchStats(source="scraped", count=0, status="skipped"))

        if not steps:
            logger.warning("no_sources_configured", locale=locale)
            return AcquisitionResult(stats=stats, source_used="none")

        def on_failure(func: Callable[..., Any], error: Exception) -> None:
            self.health.record_failure(source_key(locale, func.__name__), error)
            stats.append(FetchStats(
                source=func.__name__,
                count=getattr(error, "fetched", 0),
                status="empty" if isinstance(error, EmptyResult) else "error",
                error_message=str(error),
            ))

        chain = FallbackChain(
            *steps,
            timeout=self.settings.source_timeout_seconds,
            on_failure=on_failure,
        )
        result = await with_default(chain.execute, None)
        if result is None:
            result = AcquisitionResult(stats=stats, source_used="none")

        logger.info(
            "acquisition_complete",
            locale=locale,
            source_used=result.source_used,
            record_count=len(result.records),
        )
        return result

    def _accept(
        self,
        locale: str,
        source: SourceKind,
        fetched: list[RawEventRecord],
        valid: list[RawEventRecord],
        stats: list[FetchStats],
        started: datetime,
    ) -> AcquisitionResult:
        """Turn a source's filtered output into a result, or raise EmptyResult."""
        if not valid:
            raise EmptyResult(source, fetched=len(fetched))

        records = deduplicate(valid)
        self.health.record_success(source_key(locale, source), len(records))

        duration_ms = int((datetime.now() - started).total_seconds() * 1000)
        stats.append(FetchStats(
            source=source,
            count=len(records),
            status="success",
            duration_ms=duration_ms,
        ))
        return AcquisitionResult(records=records, source_used=source, stats=stats)
