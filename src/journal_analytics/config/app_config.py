from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

try:
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - Python <3.11
    import tomli as tomllib

from journal_analytics.metrics.calendar import TIMEFRAME_DAYS, TIMEFRAME_MONTH

DEFAULT_CONFIG_PATH = Path("config/app.toml")
CONFIG_ENV_VAR = "JOURNAL_ANALYTICS_CONFIG"
LOCAL_TIMEZONE = "local"


@dataclass(frozen=True)
class AppSettings:
    journal_path: Path
    host: str
    port: int
    reload: bool


@dataclass(frozen=True)
class AnalyticsSettings:
    timezone: str
    default_timeframe: str
    max_points: int
    month_count: int
    reconcile_epsilon: float

    @property
    def tzinfo(self) -> tzinfo | None:
        return resolve_timezone(self.timezone)


@dataclass(frozen=True)
class AppConfig:
    app: AppSettings
    analytics: AnalyticsSettings


def load_app_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> AppConfig:
    env = os.environ if env is None else env
    config_path = Path(path or env.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    raw: Mapping[str, Any] = {}
    if config_path.exists():
        raw = tomllib.loads(config_path.read_text(encoding="utf-8"))

    app_raw = _section(raw, "app")
    analytics_raw = _section(raw, "analytics")

    app = AppSettings(
        journal_path=Path(app_raw.get("journal_path", "data/journal.json")),
        host=str(app_raw.get("host", "127.0.0.1")),
        port=_int_or_default(app_raw.get("port"), 8000),
        reload=bool(app_raw.get("reload", False)),
    )

    timeframe = str(analytics_raw.get("default_timeframe", TIMEFRAME_MONTH)).strip().lower()
    if timeframe not in TIMEFRAME_DAYS:
        timeframe = TIMEFRAME_MONTH

    timezone_name = str(analytics_raw.get("timezone", LOCAL_TIMEZONE)).strip() or LOCAL_TIMEZONE
    if resolve_timezone(timezone_name) is None:
        timezone_name = LOCAL_TIMEZONE

    analytics = AnalyticsSettings(
        timezone=timezone_name,
        default_timeframe=timeframe,
        max_points=_int_or_default(analytics_raw.get("max_points"), 12),
        month_count=_int_or_default(analytics_raw.get("month_count"), 6),
        reconcile_epsilon=_float_or_default(analytics_raw.get("reconcile_epsilon"), 0.01),
    )

    return AppConfig(app=app, analytics=analytics)


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Map a configured zone name to tzinfo; ``None`` means system local time."""
    if name is None or name.strip().lower() in ("", LOCAL_TIMEZONE):
        return None
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return None


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if isinstance(value, Mapping):
        return value
    return {}


def _int_or_default(value: Any, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float_or_default(value: Any, default: float) -> float:
    if value in (None, ""):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
