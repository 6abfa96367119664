"""
Update path, trigger surface and scheduler.

update(locale):
1. acquire raw records through the locale's fallback chain
2. parse each record into a CanonicalEvent
3. store them (an empty fetch keeps the previous events)
4. classify the snapshot's events against now
5. cap to max_activities and render

Concurrent update() calls for the same locale share one in-flight run,
so a scheduled and a manual refresh never interleave. Locales are
independent and run concurrently.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

import structlog

from .acquisition import AcquisitionOrchestrator
from .classifier import classify
from .config.settings import CalendarSettings
from .errors import RenderFailure
from .models import DisplayResult
from .renderer import Renderer
from .resilience import HealthMonitor, source_key
from .selector import select
from .snapshot import SnapshotStore
from .timeparse import DateRangeParser, to_canonical

logger = structlog.get_logger()

ALL_LOCALES = "all"

Dispatch = Callable[[str, Any], Awaitable[None]]


class CalendarService:
    """Owns the per-locale snapshots and runs the update path."""

    def __init__(
        self,
        settings: CalendarSettings,
        orchestrator: Optional[AcquisitionOrchestrator] = None,
        store: Optional[SnapshotStore] = None,
        renderer: Optional[Renderer] = None,
        clock: Optional[Callable[[str], datetime]] = None,
        on_render: Optional[Dispatch] = None,
    ):
        """Initialize service.

        Args:
            settings: Calendar settings
            orchestrator: Acquisition orchestrator (built from settings if missing)
            store: Snapshot store (one empty snapshot per locale if missing)
            renderer: Artifact renderer; no artifacts are produced without one
            clock: Returns local "now" for a locale
            on_render: Dispatch hook called with (locale, artifact) by the
                scheduler when auto_push is enabled
        """
        self.settings = settings
        self.health = orchestrator.health if orchestrator else HealthMonitor()
        self.orchestrator = orchestrator or AcquisitionOrchestrator(settings, health=self.health)
        self.store = store or SnapshotStore(settings.locales)
        self.renderer = renderer
        self.clock = clock or (lambda locale: settings.locale(locale).now())
        self.on_render = on_render
        self.parser = DateRangeParser(drop_past_absolute=settings.drop_past_absolute)
        self.artifacts: dict[str, Any] = {}
        self._inflight: dict[str, asyncio.Task] = {}
        self._schedules: dict[str, asyncio.Task] = {}

    def locales(self, target: str = ALL_LOCALES) -> list[str]:
        """Resolve a trigger target to locale names."""
        if target == ALL_LOCALES:
            return list(self.settings.locales)
        if target not in self.settings.locales:
            raise ValueError(f"Unknown locale: {target}")
        return [target]

    async def update(self, locale: str) -> DisplayResult:
        """Run the update path, joining a run already in flight for the locale."""
        task = self._inflight.get(locale)
        if task is None or task.done():
            task = asyncio.ensure_future(self._update(locale))
            self._inflight[locale] = task
            task.add_done_callback(lambda t: self._forget(locale, t))
        else:
            logger.info("update_joined_inflight", locale=locale)
        return await asyncio.shield(task)

    def _forget(self, locale: str, task: asyncio.Task) -> None:
        if self._inflight.get(locale) is task:
            del self._inflight[locale]

    async def _update(self, locale: str) -> DisplayResult:
        result = await self.orchestrator.acquire(locale)

        now = self.clock(locale)
        candidates = [to_canonical(r, now, self.parser) for r in result.records]
        self.store.replace(locale, candidates, now, result.source_used)

        display = self.display(locale, now)
        await self._render(display)
        logger.info(
            "locale_updated",
            locale=locale,
            source_used=result.source_used,
            fetched=len(candidates),
            displayed=len(display.events),
            stale=not candidates and not display.placeholder,
        )
        return display

    def display(self, locale: str, now: Optional[datetime] = None) -> DisplayResult:
        """Classify and cap the current snapshot without fetching."""
        snapshot = self.store.get(locale)
        max_count = self.settings.max_activities

        now = now or self.clock(locale)
        if not snapshot.events:
            return DisplayResult(
                locale=locale,
                as_of=now,
                fetched_at=snapshot.fetched_at,
                placeholder=True,
            )

        tagged = classify(snapshot.events, now, max_count)
        return DisplayResult(
            locale=locale,
            events=select(tagged, max_count),
            as_of=now,
            fetched_at=snapshot.fetched_at,
            events_fetched_at=snapshot.events_fetched_at,
            source_used=snapshot.source_used,
            total_events=len(snapshot.events),
        )

    async def _render(self, display: DisplayResult) -> None:
        if self.renderer is None:
            return
        try:
            self.artifacts[display.locale] = await self.renderer.render(display)
        except RenderFailure as e:
            self.artifacts.pop(display.locale, None)
            logger.error("render_failed", locale=display.locale, error=e.reason)
        except Exception as e:
            self.artifacts.pop(display.locale, None)
            logger.error("render_failed", locale=display.locale, error=str(e))

    async def refresh(self, target: str = ALL_LOCALES) -> dict[str, DisplayResult]:
        """Re-run the update path for one locale or all of them."""
        locales = self.locales(target)
        displays = await asyncio.gather(*(self.update(locale) for locale in locales))
        return dict(zip(locales, displays))

    def start(self) -> None:
        """Start one recurring update task per locale."""
        for locale in self.settings.locales:
            if locale not in self._schedules or self._schedules[locale].done():
                self._schedules[locale] = asyncio.ensure_future(self._run_schedule(locale))
        logger.info("scheduler_started", locales=list(self._schedules))

    async def stop(self) -> None:
        """Cancel the recurring update tasks."""
        tasks = list(self._schedules.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._schedules.clear()
        logger.info("scheduler_stopped")

    async def _run_schedule(self, locale: str) -> None:
        interval = self.settings.locale(locale).update_interval_minutes * 60
        while True:
            try:
                await self.update(locale)
                await self._dispatch(locale)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("scheduled_update_failed", locale=locale, error=str(e))
            await asyncio.sleep(interval)

    async def _dispatch(self, locale: str) -> None:
        if not (self.settings.auto_push and self.on_render):
            return
        artifact = self.artifacts.get(locale)
        if artifact is None:
            return
        try:
            await self.on_render(locale, artifact)
        except Exception as e:
            logger.warning("dispatch_failed", locale=locale, target=self.settings.auto_push_target, error=str(e))

    def status(self) -> dict[str, Any]:
        """Snapshot metadata and source health for every locale."""
        return {
            "locales": {locale: self._locale_status(locale) for locale in self.store.locales()},
            "health": self.health.get_status(),
        }

    def _locale_status(self, locale: str) -> dict[str, Any]:
        snapshot = self.store.get(locale)
        return {
            "events": len(snapshot.events),
            "fetched_at": snapshot.fetched_at.isoformat() if snapshot.fetched_at else None,
            "events_fetched_at": (
                snapshot.events_fetched_at.isoformat()
                if snapshot.events_fetched_at else None
            ),
            "source_used": snapshot.source_used,
            "sources_healthy": {
                source: self.health.is_healthy(source_key(locale, source))
                for source in ("structured", "scraped")
            },
        }
