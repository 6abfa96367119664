"""
Typed settings loaded from an optional JSON file and the environment.

Environment overrides:
- ACTIVITY_CALENDAR_MAX_ACTIVITIES
- ACTIVITY_CALENDAR_SOURCE_TIMEOUT
- ACTIVITY_CALENDAR_<LOCALE>_STRUCTURED_URL
- ACTIVITY_CALENDAR_<LOCALE>_SCRAPE_URL
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, Mapping, Optional
from zoneinfo import ZoneInfo

import structlog
from pydantic import BaseModel, Field

from ..sources.filters import DEFAULT_NOISE_KEYWORDS
from .migrator import check_version, get_default_config, migrate_config, validate_config

log = structlog.get_logger(__name__)

ENV_PREFIX = "ACTIVITY_CALENDAR_"


class ConfigError(ValueError):
    """Raised when configuration fails validation."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class LocaleSettings(BaseModel):
    """Sources and schedule for one locale."""

    display_name: str = ""
    timezone: str = "Asia/Tokyo"
    structured_url: Optional[str] = None
    scrape_url: Optional[str] = None
    scrape_mode: Literal["browser", "http"] = "browser"
    frame_host: str = "calendar.google.com"
    update_interval_minutes: float = 30
    noise_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_NOISE_KEYWORDS))

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def now(self) -> datetime:
        """Current wall-clock time in this locale, without tzinfo."""
        return datetime.now(self.tzinfo).replace(tzinfo=None)


class CalendarSettings(BaseModel):
    """Top-level settings."""

    version: int = 2
    max_activities: int = 10
    source_timeout_seconds: float = 90.0
    navigation_timeout_seconds: float = 60.0
    scrape_delay_ms: int = 5000
    drop_past_absolute: bool = False
    auto_push: bool = False
    auto_push_target: str = ""
    locales: dict[str, LocaleSettings] = Field(default_factory=dict)

    def locale(self, name: str) -> LocaleSettings:
        try:
            return self.locales[name]
        except KeyError:
            raise KeyError(f"Unknown locale: {name}") from None


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> CalendarSettings:
    """
    Load settings from a JSON file (any config version) plus env overrides.

    Args:
        path: Optional JSON config file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated settings

    Raises:
        ConfigError: If the resulting config is invalid
    """
    environ = os.environ if environ is None else environ

    if path is not None:
        raw: dict[str, Any] = json.loads(Path(path).read_text(encoding="utf-8"))
        log.info("config_loaded", path=str(path), version=raw.get("version", 1))
    else:
        raw = get_default_config()

    version_errors = check_version(raw)
    if version_errors:
        raise ConfigError(version_errors)

    config = migrate_config(raw)
    _apply_env_overrides(config, environ)

    errors = validate_config(config)
    if errors:
        raise ConfigError(errors)

    return CalendarSettings.model_validate(config)


def _apply_env_overrides(config: dict[str, Any], environ: Mapping[str, str]) -> None:
    if f"{ENV_PREFIX}MAX_ACTIVITIES" in environ:
        config["max_activities"] = int(environ[f"{ENV_PREFIX}MAX_ACTIVITIES"])
    if f"{ENV_PREFIX}SOURCE_TIMEOUT" in environ:
        config["source_timeout_seconds"] = float(environ[f"{ENV_PREFIX}SOURCE_TIMEOUT"])

    for name, locale in config.get("locales", {}).items():
        for key in ("structured_url", "scrape_url"):
            env_key = f"{ENV_PREFIX}{name.upper()}_{key.upper()}"
            if environ.get(env_key):
                locale[key] = environ[env_key]
                log.debug("config_env_override", locale=name, key=key)
