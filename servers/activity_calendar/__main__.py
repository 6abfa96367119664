"""
Command line entry point for the activity calendar.

Commands:
- refresh [locale|all]: run the update path once and print the display set
- serve: run the recurring per-locale updates until interrupted
- status: run one refresh and print snapshot metadata and source health

Run with: python -m servers.activity_calendar refresh all
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

from .config.settings import ConfigError, load_settings
from .models import DisplayResult
from .renderer import HtmlRenderer, ScreenshotRenderer
from .service import ALL_LOCALES, CalendarService
from .template_engine import tier_label


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="activity-calendar")
    parser.add_argument("--config", type=Path, help="JSON config file (v1 or v2)")
    parser.add_argument("--out", type=Path, help="Directory to write rendered artifacts to")
    parser.add_argument("--png", action="store_true", help="Render PNG screenshots instead of HTML")
    parser.add_argument("-v", "--verbose", action="store_true")

    sub = parser.add_subparsers(dest="command", required=True)
    refresh = sub.add_parser("refresh", help="Fetch, classify and print activities")
    refresh.add_argument("target", nargs="?", default=ALL_LOCALES)
    sub.add_parser("serve", help="Run scheduled updates")
    sub.add_parser("status", help="Print snapshot and source health")
    return parser


def format_display(display: DisplayResult) -> str:
    """Plain-text rendering of a display set."""
    header = f"[{display.locale}] {display.total_events} activities, source={display.source_used}"
    if display.placeholder:
        return f"{header}\n  暂无活动数据，请稍后重试"
    lines = [header]
    for event in display.events:
        lines.append(f"  {event.raw_time_text or '时间未知'} ({tier_label(event.tag)}) {event.title}")
    if display.events_fetched_at:
        lines.append(f"  最后更新: {display.events_fetched_at:%Y/%m/%d %H:%M:%S}")
    return "\n".join(lines)


def write_artifacts(service: CalendarService, out: Path, png: bool) -> None:
    out.mkdir(parents=True, exist_ok=True)
    for locale, artifact in service.artifacts.items():
        if png:
            (out / f"{locale}.png").write_bytes(artifact)
        else:
            (out / f"{locale}.html").write_text(artifact, encoding="utf-8")


async def run(args: argparse.Namespace) -> int:
    settings = load_settings(args.config)

    renderer = None
    if args.out:
        html = HtmlRenderer(titles={k: v.display_name for k, v in settings.locales.items()})
        renderer = ScreenshotRenderer(html) if args.png else html

    service = CalendarService(settings, renderer=renderer)

    if args.command == "serve":
        service.start()
        try:
            await asyncio.Event().wait()
        finally:
            await service.stop()
        return 0

    displays = await service.refresh(getattr(args, "target", ALL_LOCALES))

    if args.command == "status":
        print(json.dumps(service.status(), ensure_ascii=False, indent=2))
    else:
        for display in displays.values():
            print(format_display(display))

    if args.out:
        write_artifacts(service, args.out, args.png)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return asyncio.run(run(args))
    except ConfigError as e:
        for error in e.errors:
            print(f"config error: {error}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
