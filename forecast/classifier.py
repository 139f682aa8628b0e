"""
forecast/classifier.py

Readiness labels for projected weights against target weights.
No forecasting math, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

ALMOST_THERE_MARGIN_KG = 20.0


@dataclass(frozen=True)
class Readiness:
    label: str
    css_class: str


READY = Readiness("Ready", "ok")
ALMOST_THERE = Readiness("Almost there", "warn")
FATTENING = Readiness("Fattening", "muted")
UNKNOWN = Readiness("—", "muted")

BOTH_READY = Readiness("M and F ready", "ok")
PARTIALLY_READY = Readiness("Partially ready (mixed)", "warn")
ALMOST_THERE_MIXED = Readiness("Almost there (mixed)", "warn")
FATTENING_MIXED = Readiness("Fattening (mixed)", "muted")


class ReadinessClassifier:
    """
    Maps a projected weight and a target to a readiness state, and merges the
    per-sex states of a mixed group.

        projected weight           |  state
        ---------------------------|--------------
        >= target                  |  Ready
        >= target - 20 kg          |  Almost there
        below                      |  Fattening
    """

    def classify(self, projected_weight: float | None, target: float | None) -> Readiness:
        if projected_weight is None or target is None:
            return UNKNOWN
        if projected_weight >= target:
            return READY
        if projected_weight >= target - ALMOST_THERE_MARGIN_KG:
            return ALMOST_THERE
        return FATTENING

    def combine(
        self,
        *,
        males: int,
        females: int,
        male_state: Readiness,
        female_state: Readiness,
    ) -> Readiness:
        """
        Group-level readiness. Single-sex groups reuse that sex's state.
        """

        if males > 0 and females > 0:
            if male_state.css_class == "ok" and female_state.css_class == "ok":
                return BOTH_READY
            if male_state.css_class == "ok" or female_state.css_class == "ok":
                return PARTIALLY_READY
            if male_state.css_class == "warn" or female_state.css_class == "warn":
                return ALMOST_THERE_MIXED
            return FATTENING_MIXED
        if males > 0:
            return male_state
        if females > 0:
            return female_state
        return UNKNOWN
