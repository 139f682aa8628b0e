"""
app/services/weather_enrichment_service.py

Mean-temperature enrichment for date ranges, backed by a persistent cache.

Distinct ranges are resolved by a fixed pool of worker threads draining a
shared queue, so at most ``concurrency`` requests are in flight. Every
outcome is cached, failures included: a failed range keeps the neutral
climate factor until the cache is cleared.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterable, Mapping

from app.connectors.base import ConnectorRequestError
from app.connectors.open_meteo_connector import OpenMeteoConnector
from app.domain.herd import DateRange, Site, WeatherReading
from app.logging_utils import log_event, timed_event

logger = logging.getLogger(__name__)

NEUTRAL_CLIMATE_FACTOR = 0.95
DEFAULT_CONCURRENCY = 6

# (inclusive upper bound in °C, factor); hotter periods suppress growth.
_CLIMATE_STEPS: tuple[tuple[float, float], ...] = (
    (20.0, 1.00),
    (25.0, 0.95),
    (30.0, 0.85),
)
_HEAT_STRESS_FACTOR = 0.70


def climate_factor(mean_temperature: float | None) -> float:
    """
    Map a mean temperature to a growth multiplier.

    ``None`` -> 0.95; <= 20 °C -> 1.00; <= 25 °C -> 0.95; <= 30 °C -> 0.85;
    hotter -> 0.70.
    """

    if mean_temperature is None:
        return NEUTRAL_CLIMATE_FACTOR
    for upper_bound, factor in _CLIMATE_STEPS:
        if mean_temperature <= upper_bound:
            return factor
    return _HEAT_STRESS_FACTOR


FAILED_READING = WeatherReading(mean_temperature=None, climate_factor=NEUTRAL_CLIMATE_FACTOR)


class WeatherEnrichmentService:
    """
    Resolves :class:`WeatherReading` values per date range.

    The cache passed in is copied; read it back with :meth:`snapshot` after
    :meth:`resolve_all` to persist it.
    """

    def __init__(
        self,
        *,
        connector: OpenMeteoConnector,
        cache: Mapping[str, WeatherReading] | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout_seconds: float | None = None,
    ) -> None:
        self._connector = connector
        self._cache: dict[str, WeatherReading] = dict(cache or {})
        self._concurrency = max(1, concurrency)
        self._timeout_seconds = timeout_seconds
        self._cache_lock = threading.Lock()

    def snapshot(self) -> dict[str, WeatherReading]:
        with self._cache_lock:
            return dict(self._cache)

    def resolve(self, site: Site, date_range: DateRange) -> WeatherReading:
        """
        Return the cached reading for ``date_range`` or fetch and cache it.
        """

        key = date_range.key
        with self._cache_lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        reading = self._fetch(site, date_range)
        with self._cache_lock:
            self._cache[key] = reading
        return reading

    def resolve_all(
        self,
        site: Site,
        ranges: Iterable[DateRange],
        on_progress: Callable[[int, int], None] | None = None,
    ) -> dict[str, WeatherReading]:
        """
        Resolve every distinct range and return ``{range key: reading}``.

        Returns only after the pool has drained; each range is handed to
        exactly one worker.
        """

        unique: dict[str, DateRange] = {}
        for date_range in ranges:
            unique.setdefault(date_range.key, date_range)

        total = len(unique)
        if total == 0:
            return {}
        with self._cache_lock:
            cache_hits = sum(1 for key in unique if key in self._cache)

        work: queue.Queue[DateRange] = queue.Queue()
        for date_range in unique.values():
            work.put(date_range)

        progress_lock = threading.Lock()
        done = 0
        errors: list[BaseException] = []

        def worker() -> None:
            nonlocal done
            while True:
                try:
                    date_range = work.get_nowait()
                except queue.Empty:
                    return
                try:
                    self.resolve(site, date_range)
                except Exception as exc:  # re-raised on the calling thread below
                    with progress_lock:
                        errors.append(exc)
                    return
                with progress_lock:
                    done += 1
                    if on_progress is not None:
                        on_progress(done, total)

        worker_count = min(self._concurrency, total)
        threads = [
            threading.Thread(target=worker, name=f"weather-worker-{index}", daemon=True)
            for index in range(worker_count)
        ]
        with timed_event(
            logger, "weather_pool_drained", ranges=total, workers=worker_count, cache_hits=cache_hits
        ):
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
            if errors:
                raise errors[0]
        with self._cache_lock:
            return {key: self._cache[key] for key in unique}

    def _fetch(self, site: Site, date_range: DateRange) -> WeatherReading:
        try:
            temperatures = self._connector.fetch_daily_mean_temperatures(
                site=site,
                start=date_range.start,
                end=date_range.end,
                timeout_seconds=self._timeout_seconds,
            )
        except ConnectorRequestError as exc:
            log_event(
                logger,
                logging.WARNING,
                "weather_fetch_failed",
                range=date_range.key,
                error=str(exc),
            )
            return FAILED_READING

        if not temperatures:
            log_event(logger, logging.WARNING, "weather_fetch_empty", range=date_range.key)
            return FAILED_READING

        mean_temperature = sum(temperatures) / len(temperatures)
        return WeatherReading(
            mean_temperature=mean_temperature,
            climate_factor=climate_factor(mean_temperature),
        )
