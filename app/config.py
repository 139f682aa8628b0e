"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_SITE_LATITUDE = 38.17355612872988
DEFAULT_SITE_LONGITUDE = -7.986520046258665
DEFAULT_FALLBACK_GROWTH_RATE = 1.10
DEFAULT_WEATHER_BASE_URL = "https://archive-api.open-meteo.com/v1/archive"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


@dataclass(frozen=True)
class SiteSettings:
    """
    Farm location used for weather history lookups.
    """

    latitude: float = DEFAULT_SITE_LATITUDE
    longitude: float = DEFAULT_SITE_LONGITUDE


@dataclass(frozen=True)
class GrowthSettings:
    """
    Growth model defaults.
    """

    fallback_growth_rate: float = DEFAULT_FALLBACK_GROWTH_RATE


@dataclass(frozen=True)
class WeatherHTTPSettings:
    """
    HTTP behavior for the weather archive connector.

    ``max_retries`` defaults to 0: each date range gets exactly one request.
    ``rate_limit_per_second`` of 0 disables throttling.
    """

    base_url: str = DEFAULT_WEATHER_BASE_URL
    timeout_seconds: float = 9.0
    concurrency: int = 6
    max_retries: int = 0
    backoff_initial_seconds: float = 0.5
    backoff_multiplier: float = 2.0
    rate_limit_per_second: float = 0.0


@lru_cache(maxsize=1)
def get_site_settings() -> SiteSettings:
    """
    Return cached site coordinates from environment variables.
    """

    return SiteSettings(
        latitude=_get_float_env("HERD_SITE_LATITUDE", DEFAULT_SITE_LATITUDE),
        longitude=_get_float_env("HERD_SITE_LONGITUDE", DEFAULT_SITE_LONGITUDE),
    )


@lru_cache(maxsize=1)
def get_growth_settings() -> GrowthSettings:
    """
    Return cached growth model settings from environment variables.
    """

    fallback = _get_float_env("HERD_FALLBACK_GROWTH_RATE", DEFAULT_FALLBACK_GROWTH_RATE)
    return GrowthSettings(
        fallback_growth_rate=fallback if fallback > 0 else DEFAULT_FALLBACK_GROWTH_RATE,
    )


@lru_cache(maxsize=1)
def get_weather_http_settings() -> WeatherHTTPSettings:
    """
    Return cached weather connector HTTP settings from environment variables.
    """

    return WeatherHTTPSettings(
        base_url=_get_str_env("WEATHER_BASE_URL", DEFAULT_WEATHER_BASE_URL),
        timeout_seconds=max(0.5, _get_float_env("WEATHER_TIMEOUT_SECONDS", 9.0)),
        concurrency=max(1, _get_int_env("WEATHER_CONCURRENCY", 6)),
        max_retries=max(0, _get_int_env("WEATHER_MAX_RETRIES", 0)),
        backoff_initial_seconds=max(0.1, _get_float_env("WEATHER_BACKOFF_INITIAL_SECONDS", 0.5)),
        backoff_multiplier=max(1.0, _get_float_env("WEATHER_BACKOFF_MULTIPLIER", 2.0)),
        rate_limit_per_second=max(0.0, _get_float_env("WEATHER_RATE_LIMIT_PER_SECOND", 0.0)),
    )
