"""
app/schemas/herd_reports.py

Derived report rows (alerts and readiness forecast) and API request bodies.
"""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.herd_state import DEFAULT_TARGET_FEMALE_KG, DEFAULT_TARGET_MALE_KG


class AlertRow(BaseModel):
    level: Literal["red", "yellow"]
    group: str
    bad_fraction: float = Field(ge=0.0, le=1.0)
    risk_fraction: float = Field(ge=0.0, le=1.0)
    classified: int = Field(ge=1)
    message: str


class GroupForecast(BaseModel):
    """
    Readiness projection for one group. Per-sex values are ``None`` when the
    group has no animals of that sex or no usable rate.
    """

    name: str
    m: int = Field(ge=0)
    f: int = Field(ge=0)
    projected_m: float | None = None
    projected_f: float | None = None
    real_rate_m: float | None = None
    real_rate_f: float | None = None
    rate_used_m: float
    rate_used_f: float
    days_m: float | None = None
    days_f: float | None = None
    date_m: date | None = None
    date_f: date | None = None
    date_m_display: str = "—"
    date_f_display: str = "—"
    min_days: float | None = None
    status: str
    status_class: str


class TargetsUpdate(BaseModel):
    male_kg: float = Field(default=DEFAULT_TARGET_MALE_KG, gt=0)
    female_kg: float = Field(default=DEFAULT_TARGET_FEMALE_KG, gt=0)
