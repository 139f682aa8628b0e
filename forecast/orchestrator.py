"""
forecast/orchestrator.py

Readiness forecast per group: which rate to project with, how many days
until each sex reaches its target, and when.
"""

from __future__ import annotations

import logging
import math
from datetime import date

from app.config import DEFAULT_FALLBACK_GROWTH_RATE
from app.schemas.herd_reports import GroupForecast
from app.schemas.herd_state import GroupAggregate, HerdState, Targets
from app.validators.value_parsers import add_days, format_date, utc_today
from forecast.classifier import ReadinessClassifier

logger = logging.getLogger(__name__)


def pick_rate_used(real_rate: float | None, fallback_rate: float) -> float:
    """
    The group's observed rate when positive, otherwise the fallback.
    """

    if real_rate is not None and math.isfinite(real_rate) and real_rate > 0:
        return real_rate
    return fallback_rate


def days_to_target(projected_weight: float | None, target: float | None, rate: float | None) -> float | None:
    """
    ``(target - weight) / rate``, 0 once the target is reached. ``None`` when
    an input is missing or the rate is not positive.
    """

    if projected_weight is None or target is None or rate is None or rate <= 0:
        return None
    if projected_weight >= target:
        return 0.0
    return (target - projected_weight) / rate


def target_date(today: date, days: float | None) -> date | None:
    if days is None:
        return None
    return add_days(today, math.ceil(days))


class ForecastOrchestrator:
    """
    Builds and orders :class:`GroupForecast` rows from a herd snapshot.

    Order: groups with a sex already at target first, then ascending by the
    smaller of the two days-to-target (missing counts as infinite), then name.
    """

    def __init__(self, classifier: ReadinessClassifier | None = None) -> None:
        self._classifier = classifier or ReadinessClassifier()

    def compute_forecast(self, state: HerdState, targets: Targets | None = None) -> list[GroupForecast]:
        today = state.today or utc_today()
        targets = targets or state.targets
        fallback = state.config.fallback_growth_rate or DEFAULT_FALLBACK_GROWTH_RATE

        rows = [
            self._forecast_group(group, today=today, targets=targets, fallback=fallback)
            for group in state.groups
        ]
        rows.sort(key=self._sort_key)
        logger.debug("Forecast computed for %d groups", len(rows))
        return rows

    def _forecast_group(
        self,
        group: GroupAggregate,
        *,
        today: date,
        targets: Targets,
        fallback: float,
    ) -> GroupForecast:
        rate_m = pick_rate_used(group.avg_rate_m, fallback)
        rate_f = pick_rate_used(group.avg_rate_f, fallback)

        days_m = days_to_target(group.avg_projected_m, targets.male_kg, rate_m)
        days_f = days_to_target(group.avg_projected_f, targets.female_kg, rate_f)
        date_m = target_date(today, days_m)
        date_f = target_date(today, days_f)

        present = [days for days in (days_m, days_f) if days is not None]
        min_days = min(present) if present else None

        status = self._classifier.combine(
            males=group.m,
            females=group.f,
            male_state=self._classifier.classify(group.avg_projected_m, targets.male_kg),
            female_state=self._classifier.classify(group.avg_projected_f, targets.female_kg),
        )

        return GroupForecast(
            name=group.name,
            m=group.m,
            f=group.f,
            projected_m=group.avg_projected_m,
            projected_f=group.avg_projected_f,
            real_rate_m=group.avg_rate_m,
            real_rate_f=group.avg_rate_f,
            rate_used_m=rate_m,
            rate_used_f=rate_f,
            days_m=days_m,
            days_f=days_f,
            date_m=date_m,
            date_f=date_f,
            date_m_display=format_date(date_m),
            date_f_display=format_date(date_f),
            min_days=min_days,
            status=status.label,
            status_class=status.css_class,
        )

    @staticmethod
    def _sort_key(row: GroupForecast) -> tuple[int, float, str]:
        ready_rank = 0 if row.min_days == 0 else 1
        min_days = row.min_days if row.min_days is not None else math.inf
        return (ready_rank, min_days, row.name)
