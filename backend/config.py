# config.py
# env-driven settings. a missing API key is valid and puts that adapter in degraded mode

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    return int(raw) if raw.strip() else default


def _optional_int_env(name: str) -> int | None:
    raw = os.getenv(name, "")
    return int(raw) if raw.strip() else None


@dataclass(frozen=True)
class AppConfig:
    openweather_api_key: str = field(default_factory=lambda: os.getenv("OPENWEATHER_API_KEY", ""))
    google_maps_api_key: str = field(
        default_factory=lambda: os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv("MAPS_API_KEY", "")
    )

    # upstream timeouts (seconds)
    weather_timeout_s: int = field(default_factory=lambda: _int_env("WEATHER_TIMEOUT_S", 5))
    places_timeout_s: int = field(default_factory=lambda: _int_env("PLACES_TIMEOUT_S", 10))
    catalog_timeout_s: int = field(default_factory=lambda: _int_env("CATALOG_TIMEOUT_S", 10))

    default_max_distance_m: int = field(default_factory=lambda: _int_env("DEFAULT_MAX_DISTANCE_M", 2000))
    default_limit: int = field(default_factory=lambda: _int_env("DEFAULT_LIMIT", 5))
    notify_limit: int = field(default_factory=lambda: _int_env("NOTIFY_LIMIT", 3))
    min_score: int = field(default_factory=lambda: _int_env("MIN_SCORE", 30))

    # None -> fixed fallback snapshot
    weather_fallback_seed: int | None = field(default_factory=lambda: _optional_int_env("WEATHER_FALLBACK_SEED"))

    push_webhook_url: str = field(default_factory=lambda: os.getenv("PUSH_WEBHOOK_URL", ""))
    seed_path: str = field(default_factory=lambda: os.getenv("SEED_PATH", ""))
    frontend_prod: str = field(default_factory=lambda: os.getenv("FRONTEND_PROD", ""))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # meal-time push jobs
    scheduler_enabled: bool = field(default_factory=lambda: os.getenv("SCHEDULER_ENABLED", "true").lower() == "true")
    scheduler_timezone: str = field(default_factory=lambda: os.getenv("SCHEDULER_TZ", "America/Vancouver"))
