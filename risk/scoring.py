"""
risk/scoring.py

Group risk model and group ranking.
"""

from __future__ import annotations

from collections.abc import Iterable

from app.schemas.herd_state import GroupAggregate
from risk.base import BaseRiskModel


class GroupRiskModel(BaseRiskModel):
    """Risk from the share of classified animals outside the ``ok`` bucket.

    risk        = (warn + bad) / (ok + warn + bad), 0 with no classified animals
    ranking key = 1000 x bad + 100 x warn - 10 x ok

    One delayed animal outweighs any number of animals to watch.
    """

    BAD_WEIGHT: int = 1000
    WARN_WEIGHT: int = 100
    OK_WEIGHT: int = -10

    def compute(self, inputs: dict) -> float:
        ok, warn, bad = self._counts(inputs)
        total = ok + warn + bad
        if total == 0:
            return 0.0
        return (warn + bad) / total

    def ranking_key(self, inputs: dict) -> int:
        ok, warn, bad = self._counts(inputs)
        return bad * self.BAD_WEIGHT + warn * self.WARN_WEIGHT + ok * self.OK_WEIGHT

    @staticmethod
    def _counts(inputs: dict) -> tuple[int, int, int]:
        return (
            int(inputs.get("ok", 0)),
            int(inputs.get("warn", 0)),
            int(inputs.get("bad", 0)),
        )


def rank_groups(groups: Iterable[GroupAggregate]) -> list[GroupAggregate]:
    """
    Order by ranking key descending, then risk descending, then name ascending.
    """

    return sorted(groups, key=lambda group: (-group.sort_key, -group.risk, group.name))
