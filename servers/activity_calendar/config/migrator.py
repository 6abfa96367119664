"""
Configuration migrator for backwards compatibility.

Handles version migrations:
- v1 -> v2: Flat plugin options (updateInterval, maxActivities, websiteUrl,
  scrapeDelay, autoPush*) moved into top-level settings and per-locale sections
"""

from typing import Any
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from ..sources.filters import DEFAULT_NOISE_KEYWORDS

log = structlog.get_logger(__name__)

CURRENT_VERSION = 2

DEFAULT_LOCALE = "jp"

# v1 key -> v2 top-level key
_V1_TOP_LEVEL_KEYS = {
    "maxActivities": "max_activities",
    "scrapeDelay": "scrape_delay_ms",
    "autoPush": "auto_push",
    "autoPushTarget": "auto_push_target",
}


def migrate_config(config: dict[str, Any]) -> dict[str, Any]:
    """
    Migrate config from any version to current.

    Args:
        config: Raw config dict (may be any version)

    Returns:
        Config dict at CURRENT_VERSION
    """
    version = config.get("version", 1)

    if version == CURRENT_VERSION:
        return config

    log.info("migrating_config", from_version=version, to_version=CURRENT_VERSION)

    if version == 1:
        config = _migrate_v1_to_v2(config)

    config["version"] = CURRENT_VERSION
    return config


def _migrate_v1_to_v2(config: dict[str, Any]) -> dict[str, Any]:
    """
    Migrate v1 (flat plugin options) config to v2 format.

    Changes:
    - maxActivities, scrapeDelay, autoPush, autoPushTarget -> snake_case top level
    - updateInterval -> update_interval_minutes on every locale
    - websiteUrl -> locales.jp.scrape_url
    - autoPushInterval dropped (pushes follow the update interval)
    """
    migrated = get_default_config()

    for old_key, new_key in _V1_TOP_LEVEL_KEYS.items():
        if old_key in config:
            migrated[new_key] = config[old_key]

    if "updateInterval" in config:
        for locale in migrated["locales"].values():
            locale["update_interval_minutes"] = config["updateInterval"]

    if config.get("websiteUrl"):
        migrated["locales"][DEFAULT_LOCALE]["scrape_url"] = config["websiteUrl"]
        log.info("migrated_website_url", locale=DEFAULT_LOCALE)

    if "autoPushInterval" in config:
        log.info("dropped_auto_push_interval", value=config["autoPushInterval"])

    return migrated


def check_version(config: dict[str, Any]) -> list[str]:
    """Errors for a version this code cannot read; run before migrating."""
    version = config.get("version", 1)
    if not isinstance(version, int) or version < 1:
        return [f"Invalid config version: {version!r}"]
    if version > CURRENT_VERSION:
        return [f"Config version {version} is newer than supported version {CURRENT_VERSION}"]
    return []


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate config and return list of errors.

    Returns:
        List of error messages (empty if valid)
    """
    errors = check_version(config)

    max_activities = config.get("max_activities", 10)
    if not isinstance(max_activities, int) or max_activities < 1:
        errors.append(f"Invalid max_activities: {max_activities} (must be >= 1)")

    locales = config.get("locales", {})
    if not locales:
        errors.append("At least one locale must be configured")

    for name, locale in locales.items():
        interval = locale.get("update_interval_minutes", 30)
        if not isinstance(interval, (int, float)) or interval <= 0:
            errors.append(f"Invalid update interval for locale {name}: {interval}")

        tz_name = locale.get("timezone", "Asia/Tokyo")
        try:
            ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            errors.append(f"Unknown timezone for locale {name}: {tz_name}")

        for key in ("structured_url", "scrape_url"):
            url = locale.get(key)
            if url and urlparse(url).scheme not in ("http", "https"):
                errors.append(f"Invalid {key} for locale {name}: {url}")

    return errors


def get_default_config() -> dict[str, Any]:
    """Return default config for new installations."""
    return {
        "version": CURRENT_VERSION,
        "max_activities": 10,
        "source_timeout_seconds": 90.0,
        "navigation_timeout_seconds": 60.0,
        "scrape_delay_ms": 5000,
        "drop_past_absolute": False,
        "auto_push": False,
        "auto_push_target": "",
        "locales": {
            "jp": {
                "display_name": "VRChat イベントカレンダー",
                "timezone": "Asia/Tokyo",
                "structured_url": None,
                "scrape_url": "https://vrceve.com/",
                "scrape_mode": "browser",
                "update_interval_minutes": 30,
                "noise_keywords": list(DEFAULT_NOISE_KEYWORDS),
            },
            "cn": {
                "display_name": "VRChat 中文活动日历",
                "timezone": "Asia/Shanghai",
                "structured_url": None,
                "scrape_url": None,
                "scrape_mode": "browser",
                "update_interval_minutes": 30,
                "noise_keywords": list(DEFAULT_NOISE_KEYWORDS),
            },
        },
    }
