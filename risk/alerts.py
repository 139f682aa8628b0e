"""
risk/alerts.py

Group alerts derived from classification bucket fractions.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.schemas.herd_reports import AlertRow
from app.schemas.herd_state import GroupAggregate

# Both thresholds are inclusive.
RED_ALERT_BAD_FRACTION = 0.15
YELLOW_ALERT_RISK_FRACTION = 0.30

_LEVEL_ORDER = {"red": 0, "yellow": 1}


def alert_for_group(group: GroupAggregate) -> AlertRow | None:
    """
    Red when at least 15 % of classified animals are delayed, otherwise
    yellow when at least 30 % are delayed or to watch; else no alert.
    """

    total = group.classified
    if total == 0:
        return None

    bad_fraction = group.bad / total
    risk_fraction = (group.bad + group.warn) / total

    if bad_fraction >= RED_ALERT_BAD_FRACTION:
        return AlertRow(
            level="red",
            group=group.name,
            bad_fraction=bad_fraction,
            risk_fraction=risk_fraction,
            classified=total,
            message=(
                f"{group.name}: RED ALERT | delayed {bad_fraction * 100:.0f}% "
                f"| at risk {risk_fraction * 100:.0f}% | classified {total}"
            ),
        )
    if risk_fraction >= YELLOW_ALERT_RISK_FRACTION:
        return AlertRow(
            level="yellow",
            group=group.name,
            bad_fraction=bad_fraction,
            risk_fraction=risk_fraction,
            classified=total,
            message=(
                f"{group.name}: YELLOW ALERT | at risk {risk_fraction * 100:.0f}% "
                f"| classified {total}"
            ),
        )
    return None


def build_alerts(groups: Iterable[GroupAggregate]) -> list[AlertRow]:
    """
    Alerts for every group that crosses a threshold, red first, then by group name.
    """

    alerts = [alert for alert in (alert_for_group(group) for group in groups) if alert is not None]
    alerts.sort(key=lambda alert: (_LEVEL_ORDER[alert.level], alert.group))
    return alerts
