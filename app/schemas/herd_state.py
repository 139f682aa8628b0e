"""
app/schemas/herd_state.py

Persisted herd snapshot and its nested results.

Absent numeric values are ``None`` throughout; the snapshot round-trips
through JSON via ``model_dump(mode="json")`` / ``model_validate``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from app.config import DEFAULT_FALLBACK_GROWTH_RATE, DEFAULT_SITE_LATITUDE, DEFAULT_SITE_LONGITUDE

STATE_VERSION = 2
DEFAULT_TARGET_MALE_KG = 620.0
DEFAULT_TARGET_FEMALE_KG = 520.0

Bucket = Literal["ok", "warn", "bad", "none"]


class SiteConfig(BaseModel):
    latitude: float = DEFAULT_SITE_LATITUDE
    longitude: float = DEFAULT_SITE_LONGITUDE


class HerdConfig(BaseModel):
    site: SiteConfig = Field(default_factory=SiteConfig)
    fallback_growth_rate: float = Field(default=DEFAULT_FALLBACK_GROWTH_RATE, gt=0)


class HerdMeta(BaseModel):
    """
    Run bookkeeping. ``lines`` counts data rows (header excluded).
    """

    delimiter: str = ";"
    lines: int = Field(default=0, ge=0)
    processed_ok: int = Field(default=0, ge=0)
    processed_fail: int = Field(default=0, ge=0)


class Targets(BaseModel):
    """
    Target slaughter weights per sex, in kg.
    """

    male_kg: float = DEFAULT_TARGET_MALE_KG
    female_kg: float = DEFAULT_TARGET_FEMALE_KG


class AnimalResult(BaseModel):
    """
    Per-animal outcome of one ingestion pass.
    """

    model_config = ConfigDict(frozen=True)

    animal_id: str
    group: str
    sex: str
    current_weight: float | None = None
    current_weight_display: str = "—"
    current_date: date | None = None
    current_date_display: str = "—"
    mean_temperature: float | None = None
    temperature_display: str = "—"
    climate_factor: float | None = None
    growth_rate: float | None = None
    final_growth_rate: float | None = None
    projected_weight: float | None = None
    projected_weight_display: str = "—"
    confidence: str = "—"
    confidence_class: str = "muted"
    status: str
    status_class: str
    sort_rank: int = Field(ge=0)
    bucket: Bucket


class GroupAggregate(BaseModel):
    """
    Per-group sums, counts, and the averages derived from them.

    Averages are ``None`` whenever their count is zero.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    n: int = Field(default=0, ge=0)
    m: int = Field(default=0, ge=0)
    f: int = Field(default=0, ge=0)
    sum_weight_m: float = 0.0
    sum_weight_f: float = 0.0
    sum_projected_m: float = 0.0
    sum_projected_f: float = 0.0
    sum_rate_m: float = 0.0
    sum_rate_f: float = 0.0
    n_rate_m: int = Field(default=0, ge=0)
    n_rate_f: int = Field(default=0, ge=0)
    sum_temperature: float = 0.0
    n_temperature: int = Field(default=0, ge=0)
    ok: int = Field(default=0, ge=0)
    warn: int = Field(default=0, ge=0)
    bad: int = Field(default=0, ge=0)
    avg_weight_m: float | None = None
    avg_weight_f: float | None = None
    avg_projected_m: float | None = None
    avg_projected_f: float | None = None
    avg_rate_m: float | None = None
    avg_rate_f: float | None = None
    avg_temperature: float | None = None
    risk: float = Field(default=0.0, ge=0.0, le=1.0)
    sort_key: int = 0

    @property
    def classified(self) -> int:
        return self.ok + self.warn + self.bad


class HerdState(BaseModel):
    """
    The single persisted snapshot, replaced wholesale by every import.
    """

    version: int = STATE_VERSION
    generated_at: datetime | None = None
    config: HerdConfig = Field(default_factory=HerdConfig)
    meta: HerdMeta = Field(default_factory=HerdMeta)
    today: date | None = None
    animals: list[AnimalResult] = Field(default_factory=list)
    groups: list[GroupAggregate] = Field(default_factory=list)
    group_mean_rates: dict[str, float | None] = Field(default_factory=dict)
    group_estimate_rates: dict[str, float] = Field(default_factory=dict)
    targets: Targets = Field(default_factory=Targets)
