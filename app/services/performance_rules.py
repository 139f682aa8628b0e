"""
app/services/performance_rules.py

Per-animal classification rules: performance status and confidence.
"""

from __future__ import annotations

from dataclasses import dataclass

NORMAL_RATIO = 0.95
WATCH_RATIO = 0.80

HIGH_CONFIDENCE_MAX_DAYS = 14
MEDIUM_CONFIDENCE_MAX_DAYS = 35

NO_HISTORY_LABEL = "— (no history)"


@dataclass(frozen=True)
class PerformanceStatus:
    """
    ``sort_rank`` orders worst first: bad 1, warn 2, ok 3, no history 9,
    incomplete row 99.
    """

    label: str
    css_class: str
    sort_rank: int
    bucket: str


@dataclass(frozen=True)
class Confidence:
    label: str
    css_class: str


NORMAL = PerformanceStatus("Normal", "ok", 3, "ok")
TO_WATCH = PerformanceStatus("To watch", "warn", 2, "warn")
DELAYED = PerformanceStatus("Delayed", "bad", 1, "bad")
NO_HISTORY = PerformanceStatus(NO_HISTORY_LABEL, "muted", 9, "none")
INCOMPLETE_ROW = PerformanceStatus(NO_HISTORY_LABEL, "muted", 99, "none")

UNKNOWN_CONFIDENCE = Confidence("—", "muted")


def performance_status(growth_rate: float | None, group_mean_rate: float | None) -> PerformanceStatus:
    """
    Compare an animal's sample with its group's mean sample.

    ratio >= 0.95 -> Normal; >= 0.80 -> To watch; else Delayed. Without a
    sample or a positive group mean the animal has no history.
    """

    if growth_rate is None or group_mean_rate is None or group_mean_rate <= 0:
        return NO_HISTORY
    ratio = growth_rate / group_mean_rate
    if ratio >= NORMAL_RATIO:
        return NORMAL
    if ratio >= WATCH_RATIO:
        return TO_WATCH
    return DELAYED


def confidence_by_days(days: int | None) -> Confidence:
    """
    Staler weigh-ins give lower confidence: < 14 days High, < 35 Medium, else Low.
    """

    if days is None:
        return UNKNOWN_CONFIDENCE
    if days < HIGH_CONFIDENCE_MAX_DAYS:
        return Confidence("High", "ok")
    if days < MEDIUM_CONFIDENCE_MAX_DAYS:
        return Confidence("Medium", "warn")
    return Confidence("Low", "bad")
