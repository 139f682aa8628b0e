"""
app/repositories/herd_state_repository.py

Persistence of the herd snapshot, the weather cache and the target weights.

Store failures never reach the caller: reads degrade to "absent" and
writes report ``False``. Both are logged at WARNING.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping

from pydantic import ValidationError

from app.domain.herd import WeatherReading
from app.schemas.herd_state import HerdState, Targets
from db.repositories.errors import KeyValueStoreError
from db.repositories.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

STATE_KEY = "herd_growth_state_v2"
WEATHER_CACHE_KEY = "herd_growth_weather_cache_v2"


class HerdStateRepository:
    """
    Reads and writes herd documents through an injected :class:`KeyValueStore`.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def load_state(self) -> HerdState | None:
        raw = self._safe_get(STATE_KEY)
        if not isinstance(raw, dict):
            return None
        try:
            return HerdState.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Stored herd state is malformed; ignoring it. errors=%s", exc.error_count())
            return None

    def save_state(self, state: HerdState) -> bool:
        return self._safe_set(STATE_KEY, state.model_dump(mode="json"))

    def clear_state(self) -> None:
        self._safe_delete(STATE_KEY)

    def ensure_state(self) -> HerdState:
        return self.load_state() or HerdState()

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def get_targets(self) -> Targets:
        state = self.load_state()
        return state.targets if state is not None else Targets()

    def set_targets(self, male_kg: float | None, female_kg: float | None) -> Targets:
        """
        Store new targets on the snapshot; non-finite values fall back to defaults.
        """

        defaults = Targets()
        targets = Targets(
            male_kg=male_kg if _is_finite(male_kg) else defaults.male_kg,
            female_kg=female_kg if _is_finite(female_kg) else defaults.female_kg,
        )
        state = self.ensure_state()
        self.save_state(state.model_copy(update={"targets": targets}))
        return targets

    # ------------------------------------------------------------------
    # Weather cache
    # ------------------------------------------------------------------

    def load_weather_cache(self) -> dict[str, WeatherReading]:
        raw = self._safe_get(WEATHER_CACHE_KEY)
        if not isinstance(raw, dict):
            return {}
        cache: dict[str, WeatherReading] = {}
        for key, value in raw.items():
            if not isinstance(key, str) or not isinstance(value, dict):
                continue
            reading = WeatherReading.from_dict(value)
            if reading is not None:
                cache[key] = reading
        return cache

    def save_weather_cache(self, cache: Mapping[str, WeatherReading]) -> bool:
        return self._safe_set(
            WEATHER_CACHE_KEY,
            {key: reading.to_dict() for key, reading in cache.items()},
        )

    def clear_weather_cache(self) -> None:
        self._safe_delete(WEATHER_CACHE_KEY)

    # ------------------------------------------------------------------
    # Store access
    # ------------------------------------------------------------------

    def _safe_get(self, key: str) -> object | None:
        try:
            return self._store.get(key)
        except KeyValueStoreError as exc:
            logger.warning("Store read failed key=%s error=%s", key, exc)
            return None

    def _safe_set(self, key: str, value: object) -> bool:
        try:
            self._store.set(key, value)
            return True
        except KeyValueStoreError as exc:
            logger.warning("Store write failed key=%s error=%s", key, exc)
            return False

    def _safe_delete(self, key: str) -> None:
        try:
            self._store.delete(key)
        except KeyValueStoreError as exc:
            logger.warning("Store delete failed key=%s error=%s", key, exc)


def _is_finite(value: float | None) -> bool:
    return value is not None and isinstance(value, (int, float)) and math.isfinite(value)
