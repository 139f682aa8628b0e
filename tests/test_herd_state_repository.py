from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.domain.herd import WeatherReading
from app.repositories.herd_state_repository import STATE_KEY, WEATHER_CACHE_KEY, HerdStateRepository
from app.schemas.herd_state import HerdMeta, HerdState, Targets
from db.repositories.errors import KeyValueEncodingError, KeyValueStoreError
from db.repositories.kv_store import InMemoryKeyValueStore, SQLAlchemyKeyValueStore
from db.session import init_db
from tests.helpers import make_animal, make_group


class FailingStore:
    def get(self, key):
        raise KeyValueStoreError("read failed")

    def set(self, key, value):
        raise KeyValueStoreError("write failed")

    def delete(self, key):
        raise KeyValueStoreError("delete failed")


@pytest.fixture()
def sqlite_store() -> SQLAlchemyKeyValueStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return SQLAlchemyKeyValueStore(sessionmaker(bind=engine, expire_on_commit=False))


def _state() -> HerdState:
    return HerdState(
        today=date(2024, 3, 11),
        meta=HerdMeta(delimiter=";", lines=2, processed_ok=2),
        animals=[make_animal("A1"), make_animal("A2", bucket="warn")],
        groups=[make_group("G1", ok=1, warn=1, n=2, m=2, risk=0.5, sort_key=90)],
        group_mean_rates={"G1": 1.0, "G2": None},
        group_estimate_rates={"G1": 1.0, "G2": 1.1},
    )


class TestKeyValueStores:
    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    def test_set_get_delete(self, backend, sqlite_store) -> None:
        store = InMemoryKeyValueStore() if backend == "memory" else sqlite_store

        assert store.get("missing") is None
        store.set("k", {"a": [1, 2.5, None]})
        store.set("k", {"a": [3]})
        assert store.get("k") == {"a": [3]}
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None

    def test_non_finite_values_are_rejected(self) -> None:
        store = InMemoryKeyValueStore()

        with pytest.raises(KeyValueEncodingError):
            store.set("k", {"rate": float("nan")})
        assert store.get("k") is None

    def test_memory_store_returns_copies(self) -> None:
        store = InMemoryKeyValueStore()
        store.set("k", {"items": [1]})

        store.get("k")["items"].append(2)

        assert store.get("k") == {"items": [1]}


class TestHerdStateRepository:
    def test_state_round_trip_through_sqlite(self, sqlite_store) -> None:
        repository = HerdStateRepository(sqlite_store)
        state = _state()

        assert repository.save_state(state) is True
        loaded = repository.load_state()

        assert loaded == state

    def test_clear_state(self, repository) -> None:
        repository.save_state(_state())

        repository.clear_state()

        assert repository.load_state() is None
        assert repository.ensure_state() == HerdState()

    def test_malformed_state_is_ignored(self, store, repository) -> None:
        store.set(STATE_KEY, {"version": 2, "animals": [{"animal_id": "A1"}]})

        assert repository.load_state() is None

    def test_targets_default_and_update(self, repository) -> None:
        assert repository.get_targets() == Targets(male_kg=620.0, female_kg=520.0)

        repository.save_state(_state())
        repository.set_targets(650.0, float("nan"))

        assert repository.get_targets() == Targets(male_kg=650.0, female_kg=520.0)
        assert repository.load_state().animals == _state().animals

    def test_set_targets_without_state_creates_one(self, repository) -> None:
        repository.set_targets(700.0, 540.0)

        assert repository.load_state() is not None
        assert repository.get_targets().female_kg == 540.0

    def test_weather_cache_round_trip(self, repository) -> None:
        cache = {
            "2024-03-01|2024-03-11": WeatherReading(mean_temperature=18.5, climate_factor=1.0),
            "2024-02-01|2024-03-11": WeatherReading(mean_temperature=None, climate_factor=0.95),
        }

        repository.save_weather_cache(cache)

        assert repository.load_weather_cache() == cache

    def test_weather_cache_skips_bad_entries(self, store, repository) -> None:
        store.set(
            WEATHER_CACHE_KEY,
            {
                "2024-03-01|2024-03-11": {"mean_temperature": 18.0, "climate_factor": 1.0},
                "broken": "nope",
                "2024-02-01|2024-03-11": {"mean_temperature": "warm", "climate_factor": 1.0},
                "2024-01-01|2024-03-11": {"mean_temperature": 12.0},
            },
        )

        assert list(repository.load_weather_cache()) == ["2024-03-01|2024-03-11"]

    def test_clear_weather_cache(self, repository) -> None:
        repository.save_weather_cache({"k": WeatherReading(mean_temperature=None, climate_factor=0.95)})

        repository.clear_weather_cache()

        assert repository.load_weather_cache() == {}

    def test_store_failures_degrade(self) -> None:
        repository = HerdStateRepository(FailingStore())

        assert repository.load_state() is None
        assert repository.save_state(_state()) is False
        assert repository.load_weather_cache() == {}
        assert repository.save_weather_cache({}) is False
        assert repository.get_targets() == Targets()
        repository.clear_state()
        repository.clear_weather_cache()


def test_import_survives_failing_store(fake_connector_cls) -> None:
    from app.config import GrowthSettings, SiteSettings, WeatherHTTPSettings
    from app.domain.herd import HerdImportOptions
    from app.services.herd_ingestion_service import HerdIngestionService

    service = HerdIngestionService(
        repository=HerdStateRepository(FailingStore()),
        connector=fake_connector_cls([18.0]),
        site_settings=SiteSettings(latitude=38.0, longitude=-8.0),
        growth_settings=GrowthSettings(fallback_growth_rate=1.1),
        weather_settings=WeatherHTTPSettings(concurrency=2),
    )

    state = service.import_csv_text(
        "brinco;nome;sexo;grupo;data_peso_anterior;peso_anterior;data_peso_atual;peso_atual\n"
        "A1;;M;G1;2024-02-20;450;2024-03-01;460\n",
        HerdImportOptions(today=date(2024, 3, 11)),
    )

    assert state.animals[0].projected_weight == pytest.approx(470.0)
