"""
app/services/growth_model.py

Deterministic growth projection for one animal.

Formulas
--------
base rate        = own sample if > 0, else group estimate if > 0, else fallback
sex factor       = 0.92 for females, 1.00 otherwise
maturity factor  = 1.00 below the sex threshold (F 460 kg, others 520 kg),
                   0.90 within 60 kg above it, 0.80 beyond
final rate       = base rate x sex factor x maturity factor x climate factor
projected weight = current weight + final rate x days since the weigh-in

Every factor is a pure function of its inputs.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from app.domain.herd import FEMALE
from app.validators.value_parsers import clean

logger = logging.getLogger(__name__)

FEMALE_SEX_FACTOR = 0.92
DEFAULT_SEX_FACTOR = 1.00

FEMALE_MATURITY_THRESHOLD_KG = 460.0
DEFAULT_MATURITY_THRESHOLD_KG = 520.0
MATURITY_BAND_KG = 60.0
NEAR_MATURITY_FACTOR = 0.90
MATURE_FACTOR = 0.80


# ---------------------------------------------------------------------------
# Input / output dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GrowthInput:
    """
    Everything needed to project one animal's current weight.
    """

    current_weight: float
    days_elapsed: float
    growth_rate_sample: float | None
    group_average_rate: float | None
    fallback_rate: float
    sex: str
    climate_factor: float


@dataclass(frozen=True)
class GrowthProjection:
    """
    Projection result with each factor kept for inspection.
    """

    base_rate: float
    sex_factor: float
    maturity_factor: float
    climate_factor: float
    final_rate: float
    projected_weight: float


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


def _is_positive(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value > 0


class GrowthModel:
    """
    Stateless growth projection engine.

    Usage::

        model = GrowthModel()
        projection = model.project(GrowthInput(...))
        print(projection.projected_weight)
    """

    def base_rate(
        self,
        growth_rate_sample: float | None,
        group_average_rate: float | None,
        fallback_rate: float,
    ) -> float:
        if _is_positive(growth_rate_sample):
            return growth_rate_sample  # type: ignore[return-value]
        if _is_positive(group_average_rate):
            return group_average_rate  # type: ignore[return-value]
        return fallback_rate

    def sex_factor(self, sex: str) -> float:
        return FEMALE_SEX_FACTOR if clean(sex).upper() == FEMALE else DEFAULT_SEX_FACTOR

    def maturity_factor(self, weight: float, sex: str) -> float:
        """
        Diminishing growth as an animal approaches its mature weight.
        """

        threshold = (
            FEMALE_MATURITY_THRESHOLD_KG
            if clean(sex).upper() == FEMALE
            else DEFAULT_MATURITY_THRESHOLD_KG
        )
        if weight < threshold:
            return 1.00
        if weight < threshold + MATURITY_BAND_KG:
            return NEAR_MATURITY_FACTOR
        return MATURE_FACTOR

    def project(self, data: GrowthInput) -> GrowthProjection:
        base = self.base_rate(data.growth_rate_sample, data.group_average_rate, data.fallback_rate)
        sex = self.sex_factor(data.sex)
        maturity = self.maturity_factor(data.current_weight, data.sex)
        final_rate = base * sex * maturity * data.climate_factor
        projected = data.current_weight + final_rate * data.days_elapsed
        logger.debug(
            "Growth projection base=%.4f sex=%.2f maturity=%.2f climate=%.2f final=%.4f days=%s",
            base,
            sex,
            maturity,
            data.climate_factor,
            final_rate,
            data.days_elapsed,
        )
        return GrowthProjection(
            base_rate=base,
            sex_factor=sex,
            maturity_factor=maturity,
            climate_factor=data.climate_factor,
            final_rate=final_rate,
            projected_weight=projected,
        )


def projected_weight(
    current_weight: float,
    days_elapsed: float,
    growth_rate_sample: float | None,
    group_average_rate: float | None,
    fallback_rate: float,
    sex: str,
    climate_factor: float,
) -> float:
    """Shortcut returning only the projected weight."""
    return GrowthModel().project(
        GrowthInput(
            current_weight=current_weight,
            days_elapsed=days_elapsed,
            growth_rate_sample=growth_rate_sample,
            group_average_rate=group_average_rate,
            fallback_rate=fallback_rate,
            sex=sex,
            climate_factor=climate_factor,
        )
    ).projected_weight
