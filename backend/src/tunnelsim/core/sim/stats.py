from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from tunnelsim.core.engine.combat import TrialOutcome
from tunnelsim.core.engine.state import SIDES, Side


class SimulationStats(BaseModel):
    model_config = ConfigDict(extra="forbid")

    iterations: int
    seed: Optional[int] = None

    side1_win_rate: float
    side2_win_rate: float
    draw_rate: float
    timeout_rate: float

    avg_rounds: float

    avg_side1_casualties: float
    avg_side2_casualties: float

    side1_flawless_rate: float
    side2_flawless_rate: float

    side1_tpk_rate: float
    side2_tpk_rate: float

    avg_side1_hp_lost: float
    avg_side2_hp_lost: float
    avg_side1_hp_lost_percent: float
    avg_side2_hp_lost_percent: float

    # средние хиты сторон по формулам кубов (до боя, для сравнения сил)
    side1_expected_hp: float = 0.0
    side2_expected_hp: float = 0.0


def _zero() -> Dict[Side, int]:
    return {s: 0 for s in SIDES}


def _terms() -> Dict[Side, List[float]]:
    return {s: [] for s in SIDES}


@dataclass
class StatsAccumulator:
    """
    Частичные суммы по прогонам. merge() ассоциативен и коммутативен,
    поэтому воркеры можно сливать в любом порядке.
    Проценты храним слагаемыми и суммируем через fsum: итог не зависит
    от того, как прогоны были порезаны на чанки.
    """

    trials: int = 0
    draws: int = 0
    timeouts: int = 0
    rounds_total: int = 0

    wins: Dict[Side, int] = field(default_factory=_zero)
    casualties: Dict[Side, int] = field(default_factory=_zero)
    flawless: Dict[Side, int] = field(default_factory=_zero)
    tpk: Dict[Side, int] = field(default_factory=_zero)
    hp_lost: Dict[Side, int] = field(default_factory=_zero)
    hp_lost_percent: Dict[Side, List[float]] = field(default_factory=_terms)

    def add(self, outcome: TrialOutcome) -> None:
        self.trials += 1
        self.rounds_total += outcome.rounds

        if outcome.winner is None:
            self.draws += 1
            if outcome.timed_out:
                self.timeouts += 1
        else:
            self.wins[outcome.winner] += 1

        for side in SIDES:
            self.casualties[side] += outcome.casualties.get(side, 0)
            self.hp_lost[side] += outcome.hp_lost.get(side, 0)
            self.hp_lost_percent[side].append(outcome.hp_lost_percent(side))
            if outcome.is_flawless(side):
                self.flawless[side] += 1
            if outcome.is_tpk(side):
                self.tpk[side] += 1

    def merge(self, other: "StatsAccumulator") -> "StatsAccumulator":
        self.trials += other.trials
        self.draws += other.draws
        self.timeouts += other.timeouts
        self.rounds_total += other.rounds_total
        for bucket, theirs in (
            (self.wins, other.wins),
            (self.casualties, other.casualties),
            (self.flawless, other.flawless),
            (self.tpk, other.tpk),
            (self.hp_lost, other.hp_lost),
        ):
            for side in SIDES:
                bucket[side] += theirs[side]
        for side in SIDES:
            self.hp_lost_percent[side].extend(other.hp_lost_percent[side])
        return self

    def finalize(
        self, seed: Optional[int] = None, expected_hp: Optional[Dict[Side, float]] = None
    ) -> SimulationStats:
        expected = expected_hp or {}
        n = self.trials
        if n == 0:
            return SimulationStats(
                iterations=0,
                seed=seed,
                side1_expected_hp=expected.get("side1", 0.0),
                side2_expected_hp=expected.get("side2", 0.0),
                side1_win_rate=0.0,
                side2_win_rate=0.0,
                draw_rate=0.0,
                timeout_rate=0.0,
                avg_rounds=0.0,
                avg_side1_casualties=0.0,
                avg_side2_casualties=0.0,
                side1_flawless_rate=0.0,
                side2_flawless_rate=0.0,
                side1_tpk_rate=0.0,
                side2_tpk_rate=0.0,
                avg_side1_hp_lost=0.0,
                avg_side2_hp_lost=0.0,
                avg_side1_hp_lost_percent=0.0,
                avg_side2_hp_lost_percent=0.0,
            )

        def rate(count: float) -> float:
            return count / n * 100.0

        def avg(total: float) -> float:
            return total / n

        return SimulationStats(
            iterations=n,
            seed=seed,
            side1_expected_hp=expected.get("side1", 0.0),
            side2_expected_hp=expected.get("side2", 0.0),
            side1_win_rate=rate(self.wins["side1"]),
            side2_win_rate=rate(self.wins["side2"]),
            draw_rate=rate(self.draws),
            timeout_rate=rate(self.timeouts),
            avg_rounds=avg(self.rounds_total),
            avg_side1_casualties=avg(self.casualties["side1"]),
            avg_side2_casualties=avg(self.casualties["side2"]),
            side1_flawless_rate=rate(self.flawless["side1"]),
            side2_flawless_rate=rate(self.flawless["side2"]),
            side1_tpk_rate=rate(self.tpk["side1"]),
            side2_tpk_rate=rate(self.tpk["side2"]),
            avg_side1_hp_lost=avg(self.hp_lost["side1"]),
            avg_side2_hp_lost=avg(self.hp_lost["side2"]),
            avg_side1_hp_lost_percent=avg(math.fsum(self.hp_lost_percent["side1"])),
            avg_side2_hp_lost_percent=avg(math.fsum(self.hp_lost_percent["side2"])),
        )
