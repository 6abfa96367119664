"""
Renderers turning a DisplayResult into an artifact.

- HtmlRenderer: month grid plus tagged activities, as an HTML string
- ScreenshotRenderer: the same page screenshotted to PNG with Playwright

Renderers raise RenderFailure; the caller keeps the snapshot regardless.
"""

import calendar
from datetime import datetime
from typing import Any, Optional, Protocol

import structlog
from jinja2 import TemplateError

from .errors import RenderFailure
from .models import DisplayResult
from .template_engine import TemplateEngine

logger = structlog.get_logger()

CALENDAR_TEMPLATE = "calendar.html.j2"
DEFAULT_TITLE = "VRChat活动日历"
VIEWPORT = {"width": 920, "height": 540}


class Renderer(Protocol):
    async def render(self, display: DisplayResult) -> Any:
        ...


class HtmlRenderer:
    """Render the calendar page to HTML."""

    def __init__(
        self,
        engine: Optional[TemplateEngine] = None,
        titles: Optional[dict[str, str]] = None,
        clock=datetime.now,
    ):
        """Initialize renderer.

        Args:
            engine: Template engine (package templates by default)
            titles: Page title per locale
            clock: Fallback for the month grid date when the display
                carries no locale time
        """
        self.engine = engine or TemplateEngine()
        self.titles = titles or {}
        self.clock = clock

    def build_context(self, display: DisplayResult) -> dict[str, Any]:
        now = display.as_of or self.clock()
        # calendar.monthrange weeks start on Monday; the grid starts on Sunday
        first_weekday, days_in_month = calendar.monthrange(now.year, now.month)
        return {
            "title": self.titles.get(display.locale) or DEFAULT_TITLE,
            "year": now.year,
            "month": now.month,
            "today": now.day,
            "leading_blanks": (first_weekday + 1) % 7,
            "days_in_month": days_in_month,
            "events": display.events,
            "placeholder": display.placeholder,
            "total_events": display.total_events,
            "now_label": now.strftime("%Y/%m/%d"),
            "updated_label": (
                display.events_fetched_at.strftime("%Y/%m/%d %H:%M:%S")
                if display.events_fetched_at else "刚刚"
            ),
        }

    async def render(self, display: DisplayResult) -> str:
        try:
            return self.engine.render(CALENDAR_TEMPLATE, self.build_context(display))
        except TemplateError as e:
            raise RenderFailure(display.locale, str(e)) from e


class ScreenshotRenderer:
    """Render the HTML page and screenshot it to PNG bytes."""

    def __init__(self, html_renderer: Optional[HtmlRenderer] = None, viewport: Optional[dict] = None):
        self.html_renderer = html_renderer or HtmlRenderer()
        self.viewport = viewport or VIEWPORT

    async def render(self, display: DisplayResult) -> bytes:
        from playwright.async_api import Error as PlaywrightError
        from playwright.async_api import async_playwright

        html = await self.html_renderer.render(display)
        try:
            async with async_playwright() as p:
                browser = await p.chromium.launch(headless=True)
                try:
                    page = await browser.new_page(viewport=self.viewport)
                    await page.set_content(html, wait_until="networkidle")
                    image = await page.screenshot(type="png")
                finally:
                    await browser.close()
        except PlaywrightError as e:
            raise RenderFailure(display.locale, str(e)) from e

        logger.debug("calendar_screenshot_rendered", locale=display.locale, size=len(image))
        return image
