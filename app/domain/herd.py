"""
app/domain/herd.py

Domain models used by the weigh-in ingestion flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping

FEMALE = "F"
MALE = "M"
UNKNOWN = "—"


@dataclass(frozen=True)
class Site:
    """
    Coordinates of the farm used for weather lookups.
    """

    latitude: float
    longitude: float


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive calendar range; ``key`` is the weather cache key.
    """

    start: date
    end: date

    @property
    def key(self) -> str:
        return f"{self.start.isoformat()}|{self.end.isoformat()}"


@dataclass(frozen=True)
class WeighRecord:
    """
    One parsed CSV row. ``growth_rate`` is the observed gain per day, or
    ``None`` when dates/weights are missing or the dates are not ascending.
    """

    row_number: int
    animal_id: str
    sex: str
    group: str
    previous_date: date | None
    previous_weight: float | None
    current_date: date | None
    current_weight: float | None
    growth_rate: float | None

    @property
    def is_viable(self) -> bool:
        return self.current_date is not None and self.current_weight is not None


@dataclass(frozen=True)
class WeatherReading:
    """
    Cached weather outcome for one date range. ``mean_temperature`` is ``None``
    when the lookup failed or returned no data.
    """

    mean_temperature: float | None
    climate_factor: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "mean_temperature": self.mean_temperature,
            "climate_factor": self.climate_factor,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WeatherReading | None":
        factor = payload.get("climate_factor")
        mean = payload.get("mean_temperature")
        if isinstance(factor, bool) or not isinstance(factor, (int, float)):
            return None
        if mean is not None and (isinstance(mean, bool) or not isinstance(mean, (int, float))):
            return None
        return cls(
            mean_temperature=float(mean) if mean is not None else None,
            climate_factor=float(factor),
        )


@dataclass(frozen=True)
class ProgressEvent:
    """
    Observational progress notification; ``phase`` is "parsing" or "weather".
    """

    phase: str
    message: str
    done: int
    total: int


ProgressCallback = Callable[[ProgressEvent], None]


@dataclass(frozen=True)
class HerdImportOptions:
    """
    Per-run overrides. ``None`` fields fall back to environment settings;
    ``today`` defaults to the current UTC date.
    """

    site: Site | None = None
    fallback_growth_rate: float | None = None
    timeout_seconds: float | None = None
    concurrency: int | None = None
    on_progress: ProgressCallback | None = None
    today: date | None = None
