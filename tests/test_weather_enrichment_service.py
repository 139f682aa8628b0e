from __future__ import annotations

import json
import logging
from datetime import date, timedelta

import pytest

from app.connectors.base import ConnectorRequestError
from app.domain.herd import DateRange, Site, WeatherReading
from app.services.weather_enrichment_service import (
    FAILED_READING,
    NEUTRAL_CLIMATE_FACTOR,
    WeatherEnrichmentService,
    climate_factor,
)

SITE = Site(latitude=38.0, longitude=-8.0)
TODAY = date(2024, 3, 11)


def _ranges(count: int) -> list[DateRange]:
    return [DateRange(start=TODAY - timedelta(days=index + 1), end=TODAY) for index in range(count)]


@pytest.mark.parametrize(
    ("temperature", "expected"),
    [
        (None, 0.95),
        (-5.0, 1.00),
        (20.0, 1.00),
        (20.01, 0.95),
        (25.0, 0.95),
        (25.5, 0.85),
        (30.0, 0.85),
        (30.1, 0.70),
        (42.0, 0.70),
    ],
)
def test_climate_factor_steps(temperature, expected) -> None:
    assert climate_factor(temperature) == expected


def test_climate_factor_never_increases_with_heat() -> None:
    factors = [climate_factor(t / 2) for t in range(-20, 90)]
    assert all(later <= earlier for earlier, later in zip(factors, factors[1:]))


class TestResolveAll:
    def test_mean_of_daily_values(self, fake_connector_cls) -> None:
        connector = fake_connector_cls([20.0, 24.0, 25.0])
        service = WeatherEnrichmentService(connector=connector)

        readings = service.resolve_all(SITE, _ranges(1))

        reading = readings[_ranges(1)[0].key]
        assert reading.mean_temperature == pytest.approx(23.0)
        assert reading.climate_factor == 0.95

    def test_duplicate_ranges_are_fetched_once(self, fake_connector_cls) -> None:
        connector = fake_connector_cls([18.0])
        service = WeatherEnrichmentService(connector=connector)
        ranges = _ranges(3) * 4

        readings = service.resolve_all(SITE, ranges)

        assert len(connector.calls) == 3
        assert set(readings) == {item.key for item in _ranges(3)}

    def test_in_flight_requests_never_exceed_concurrency(self, fake_connector_cls) -> None:
        connector = fake_connector_cls([18.0], delay=0.02)
        service = WeatherEnrichmentService(connector=connector, concurrency=3)

        readings = service.resolve_all(SITE, _ranges(12))

        assert len(readings) == 12
        assert len(connector.calls) == 12
        assert 1 <= connector.max_in_flight <= 3

    def test_concurrency_of_one_is_sequential(self, fake_connector_cls) -> None:
        connector = fake_connector_cls([18.0], delay=0.005)
        service = WeatherEnrichmentService(connector=connector, concurrency=1)

        service.resolve_all(SITE, _ranges(5))

        assert connector.max_in_flight == 1

    def test_empty_ranges(self, fake_connector_cls) -> None:
        connector = fake_connector_cls()
        service = WeatherEnrichmentService(connector=connector)

        assert service.resolve_all(SITE, []) == {}
        assert connector.calls == []

    def test_progress_counts_every_range(self, fake_connector_cls) -> None:
        service = WeatherEnrichmentService(connector=fake_connector_cls(), concurrency=4)
        events: list[tuple[int, int]] = []

        service.resolve_all(SITE, _ranges(7), on_progress=lambda done, total: events.append((done, total)))

        assert [done for done, _ in events] == list(range(1, 8))
        assert {total for _, total in events} == {7}

    def test_cache_hit_skips_fetch(self, fake_connector_cls) -> None:
        cached_range = _ranges(1)[0]
        cached = WeatherReading(mean_temperature=27.0, climate_factor=0.85)
        connector = fake_connector_cls([10.0])
        service = WeatherEnrichmentService(connector=connector, cache={cached_range.key: cached})

        readings = service.resolve_all(SITE, [cached_range])

        assert connector.calls == []
        assert readings[cached_range.key] == cached

    def test_pool_drain_is_logged_with_cache_hits(self, fake_connector_cls, caplog) -> None:
        cached_range, fresh_range = _ranges(2)
        cached = WeatherReading(mean_temperature=27.0, climate_factor=0.85)
        service = WeatherEnrichmentService(
            connector=fake_connector_cls([10.0]), concurrency=4, cache={cached_range.key: cached}
        )

        with caplog.at_level(logging.INFO, logger="app.services.weather_enrichment_service"):
            service.resolve_all(SITE, [cached_range, fresh_range, fresh_range])

        drained = [
            json.loads(record.getMessage())
            for record in caplog.records
            if "weather_pool_drained" in record.getMessage()
        ]
        assert len(drained) == 1
        assert drained[0]["ranges"] == 2
        assert drained[0]["workers"] == 2
        assert drained[0]["cache_hits"] == 1
        assert drained[0]["outcome"] == "ok"

    def test_timeout_is_forwarded(self, fake_connector_cls) -> None:
        connector = fake_connector_cls()
        service = WeatherEnrichmentService(connector=connector, timeout_seconds=4.5)

        service.resolve_all(SITE, _ranges(2))

        assert connector.timeouts == [4.5, 4.5]


class TestFailures:
    def test_connector_error_yields_neutral_reading(self, fake_connector_cls) -> None:
        connector = fake_connector_cls(error=ConnectorRequestError("open_meteo: timeout"))
        service = WeatherEnrichmentService(connector=connector)

        readings = service.resolve_all(SITE, _ranges(2))

        assert all(reading == FAILED_READING for reading in readings.values())
        assert FAILED_READING.mean_temperature is None
        assert FAILED_READING.climate_factor == NEUTRAL_CLIMATE_FACTOR

    def test_empty_series_yields_neutral_reading(self, fake_connector_cls) -> None:
        service = WeatherEnrichmentService(connector=fake_connector_cls([]))

        readings = service.resolve_all(SITE, _ranges(1))

        assert list(readings.values()) == [FAILED_READING]

    def test_failures_are_cached_and_not_retried(self, fake_connector_cls) -> None:
        connector = fake_connector_cls(error=ConnectorRequestError("boom"))
        first = WeatherEnrichmentService(connector=connector)
        first.resolve_all(SITE, _ranges(2))

        second = WeatherEnrichmentService(connector=connector, cache=first.snapshot())
        second.resolve_all(SITE, _ranges(2))

        assert len(connector.calls) == 2

    def test_unexpected_error_propagates(self, fake_connector_cls) -> None:
        service = WeatherEnrichmentService(connector=fake_connector_cls(error=RuntimeError("bug")))

        with pytest.raises(RuntimeError, match="bug"):
            service.resolve_all(SITE, _ranges(3))


def test_snapshot_is_a_copy(fake_connector_cls) -> None:
    service = WeatherEnrichmentService(connector=fake_connector_cls())
    service.resolve_all(SITE, _ranges(1))

    snapshot = service.snapshot()
    snapshot.clear()

    assert len(service.snapshot()) == 1
