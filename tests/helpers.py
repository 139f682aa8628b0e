"""
Builders for schema objects used across tests.
"""

from __future__ import annotations

from datetime import date

from app.schemas.herd_state import AnimalResult, GroupAggregate

_STATUS_BY_BUCKET = {
    "ok": ("Normal", "ok", 3),
    "warn": ("To watch", "warn", 2),
    "bad": ("Delayed", "bad", 1),
    "none": ("— (no history)", "muted", 9),
}


def make_animal(
    animal_id: str,
    *,
    group: str = "G1",
    sex: str = "M",
    weight: float | None = 400.0,
    projected: float | None = None,
    rate: float | None = 1.0,
    bucket: str = "ok",
    temperature: float | None = 18.0,
) -> AnimalResult:
    label, css_class, rank = _STATUS_BY_BUCKET[bucket]
    if weight is None:
        rank = 99
    return AnimalResult(
        animal_id=animal_id,
        group=group,
        sex=sex,
        current_weight=weight,
        current_date=date(2024, 3, 1) if weight is not None else None,
        mean_temperature=temperature if weight is not None else None,
        growth_rate=rate,
        projected_weight=(projected if projected is not None else weight),
        status=label,
        status_class=css_class,
        sort_rank=rank,
        bucket=bucket,
    )


def make_group(name: str, *, ok: int = 0, warn: int = 0, bad: int = 0, **fields) -> GroupAggregate:
    return GroupAggregate(name=name, ok=ok, warn=warn, bad=bad, **fields)
