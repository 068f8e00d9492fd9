"""Monitor configuration with optional environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta

ENV_PREFIX = "LOG_MONITOR_"

MAX_POLL_ATTEMPTS_CEILING = 30


@dataclass(frozen=True, slots=True)
class MonitorConfig:
    # Log store
    log_group: str = "allisone-plus-log-group"
    aws_region: str = "eu-west-3"
    aws_profile: str = "prod"

    # Polling
    poll_interval: float = 1.0
    max_poll_attempts: int = 10

    # Result size
    default_limit: int = 1000
    hard_limit: int = 5000

    # Post-processing
    dedup_window_seconds: float = 60.0
    window_days: int = 7
    require_redaction: bool = True

    @property
    def dedup_window(self) -> timedelta:
        return timedelta(seconds=self.dedup_window_seconds)


def _env(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_int(name: str, *, minimum: int, maximum: int | None = None) -> int | None:
    raw = _env(name)
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}")
    if maximum is not None and value > maximum:
        raise ValueError(f"{ENV_PREFIX}{name} must be <= {maximum}")
    return value


def _env_float(name: str, *, minimum: float) -> float | None:
    raw = _env(name)
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number") from exc
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}")
    return value


def _env_bool(name: str) -> bool | None:
    raw = _env(name)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean (true/false)")


def resolve_monitor_config(cfg: MonitorConfig | None = None) -> MonitorConfig:
    """Return config with ``LOG_MONITOR_*`` env overrides applied."""
    if cfg is None:
        cfg = MonitorConfig()

    overrides: dict[str, object] = {}

    for attr, name in (
        ("log_group", "LOG_GROUP"),
        ("aws_region", "AWS_REGION"),
        ("aws_profile", "AWS_PROFILE"),
    ):
        value = _env(name)
        if value is not None:
            overrides[attr] = value

    poll_interval = _env_float("POLL_INTERVAL", minimum=0.0)
    if poll_interval is not None:
        overrides["poll_interval"] = poll_interval

    attempts = _env_int("MAX_POLL_ATTEMPTS", minimum=1, maximum=MAX_POLL_ATTEMPTS_CEILING)
    if attempts is not None:
        overrides["max_poll_attempts"] = attempts

    dedup = _env_float("DEDUP_WINDOW_SECONDS", minimum=0.0)
    if dedup is not None:
        overrides["dedup_window_seconds"] = dedup

    window_days = _env_int("WINDOW_DAYS", minimum=1)
    if window_days is not None:
        overrides["window_days"] = window_days

    require_redaction = _env_bool("REQUIRE_REDACTION")
    if require_redaction is not None:
        overrides["require_redaction"] = require_redaction

    if not overrides:
        return cfg
    return replace(cfg, **overrides)
