"""
risk/aggregator.py

Folds per-animal results into per-group statistics.

Counts and sums are accumulated in a mutable :class:`GroupAccumulator`;
averages, risk and ranking key are derived once in :meth:`finalize` and
frozen into a :class:`GroupAggregate`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from app.domain.herd import FEMALE, MALE
from app.schemas.herd_state import AnimalResult, GroupAggregate
from risk.base import BaseRiskModel
from risk.scoring import GroupRiskModel, rank_groups

logger = logging.getLogger(__name__)


def _mean(total: float, count: int) -> float | None:
    return total / count if count else None


@dataclass
class GroupAccumulator:
    name: str
    n: int = 0
    m: int = 0
    f: int = 0
    sum_weight_m: float = 0.0
    sum_weight_f: float = 0.0
    sum_projected_m: float = 0.0
    sum_projected_f: float = 0.0
    sum_rate_m: float = 0.0
    sum_rate_f: float = 0.0
    n_rate_m: int = 0
    n_rate_f: int = 0
    sum_temperature: float = 0.0
    n_temperature: int = 0
    ok: int = 0
    warn: int = 0
    bad: int = 0

    def add(self, result: AnimalResult) -> None:
        """
        Fold one viable animal. Weight sums are per sex; unknown sex only
        counts towards ``n`` and the temperature and bucket tallies.
        """

        if result.current_weight is None:
            return

        self.n += 1
        sex = result.sex.upper()
        if sex == MALE:
            self.m += 1
            self.sum_weight_m += result.current_weight
            if result.projected_weight is not None:
                self.sum_projected_m += result.projected_weight
        elif sex == FEMALE:
            self.f += 1
            self.sum_weight_f += result.current_weight
            if result.projected_weight is not None:
                self.sum_projected_f += result.projected_weight

        if result.mean_temperature is not None:
            self.sum_temperature += result.mean_temperature
            self.n_temperature += 1

        if result.growth_rate is None:
            return

        if sex == MALE:
            self.sum_rate_m += result.growth_rate
            self.n_rate_m += 1
        elif sex == FEMALE:
            self.sum_rate_f += result.growth_rate
            self.n_rate_f += 1

        if result.bucket == "ok":
            self.ok += 1
        elif result.bucket == "warn":
            self.warn += 1
        elif result.bucket == "bad":
            self.bad += 1

    def finalize(self, risk_model: BaseRiskModel) -> GroupAggregate:
        counts = {"ok": self.ok, "warn": self.warn, "bad": self.bad}
        return GroupAggregate(
            name=self.name,
            n=self.n,
            m=self.m,
            f=self.f,
            sum_weight_m=self.sum_weight_m,
            sum_weight_f=self.sum_weight_f,
            sum_projected_m=self.sum_projected_m,
            sum_projected_f=self.sum_projected_f,
            sum_rate_m=self.sum_rate_m,
            sum_rate_f=self.sum_rate_f,
            n_rate_m=self.n_rate_m,
            n_rate_f=self.n_rate_f,
            sum_temperature=self.sum_temperature,
            n_temperature=self.n_temperature,
            ok=self.ok,
            warn=self.warn,
            bad=self.bad,
            avg_weight_m=_mean(self.sum_weight_m, self.m),
            avg_weight_f=_mean(self.sum_weight_f, self.f),
            avg_projected_m=_mean(self.sum_projected_m, self.m),
            avg_projected_f=_mean(self.sum_projected_f, self.f),
            avg_rate_m=_mean(self.sum_rate_m, self.n_rate_m),
            avg_rate_f=_mean(self.sum_rate_f, self.n_rate_f),
            avg_temperature=_mean(self.sum_temperature, self.n_temperature),
            risk=risk_model.compute(counts),
            sort_key=risk_model.ranking_key(counts),
        )


class GroupAggregator:
    """
    Builds ranked :class:`GroupAggregate` rows from animal results.
    """

    def __init__(self, risk_model: BaseRiskModel | None = None) -> None:
        self._risk_model = risk_model or GroupRiskModel()

    def aggregate(self, animals: Iterable[AnimalResult]) -> list[GroupAggregate]:
        """
        Fold every viable animal (one with a current weight) and return the
        ranked groups. Incomplete rows never create a group.
        """

        accumulators: dict[str, GroupAccumulator] = {}
        for result in animals:
            if result.current_weight is None:
                continue
            accumulator = accumulators.get(result.group)
            if accumulator is None:
                accumulator = accumulators[result.group] = GroupAccumulator(name=result.group)
            accumulator.add(result)

        groups = [accumulator.finalize(self._risk_model) for accumulator in accumulators.values()]
        logger.debug("Aggregated %d animals into %d groups", sum(g.n for g in groups), len(groups))
        return rank_groups(groups)
