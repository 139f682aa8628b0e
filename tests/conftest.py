"""
Shared fakes for the herd pipeline tests. Nothing here touches the network.
"""

from __future__ import annotations

import threading
import time
from datetime import date

import pytest

from app.config import GrowthSettings, SiteSettings, WeatherHTTPSettings
from app.domain.herd import Site
from app.repositories.herd_state_repository import HerdStateRepository
from app.services.herd_ingestion_service import HerdIngestionService
from db.repositories.kv_store import InMemoryKeyValueStore


class FakeWeatherConnector:
    """
    Stands in for OpenMeteoConnector. ``temperatures`` is a list or a
    callable ``(start, end) -> list``; ``error`` is raised when set.
    """

    def __init__(self, temperatures=None, *, error: Exception | None = None, delay: float = 0.0) -> None:
        self.temperatures = [18.0] if temperatures is None else temperatures
        self.error = error
        self.delay = delay
        self.calls: list[tuple[date, date]] = []
        self.timeouts: list[float | None] = []
        self.max_in_flight = 0
        self._in_flight = 0
        self._lock = threading.Lock()

    def fetch_daily_mean_temperatures(
        self,
        *,
        site: Site,
        start: date,
        end: date,
        timeout_seconds: float | None = None,
    ) -> list[float]:
        with self._lock:
            self.calls.append((start, end))
            self.timeouts.append(timeout_seconds)
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.error is not None:
                raise self.error
            if callable(self.temperatures):
                return list(self.temperatures(start, end))
            return list(self.temperatures)
        finally:
            with self._lock:
                self._in_flight -= 1


@pytest.fixture()
def fake_connector_cls() -> type[FakeWeatherConnector]:
    return FakeWeatherConnector


@pytest.fixture()
def weather_connector() -> FakeWeatherConnector:
    return FakeWeatherConnector([18.0])


@pytest.fixture()
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def repository(store: InMemoryKeyValueStore) -> HerdStateRepository:
    return HerdStateRepository(store)


@pytest.fixture()
def weather_settings() -> WeatherHTTPSettings:
    return WeatherHTTPSettings(timeout_seconds=2.0, concurrency=4)


@pytest.fixture()
def ingestion_service(
    repository: HerdStateRepository,
    weather_connector: FakeWeatherConnector,
    weather_settings: WeatherHTTPSettings,
) -> HerdIngestionService:
    return HerdIngestionService(
        repository=repository,
        connector=weather_connector,
        site_settings=SiteSettings(latitude=38.0, longitude=-8.0),
        growth_settings=GrowthSettings(fallback_growth_rate=1.10),
        weather_settings=weather_settings,
    )
