from __future__ import annotations

import hashlib
import logging
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass, field
from random import Random, SystemRandom
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from tunnelsim.core.engine.combat import TrialOutcome, run_combat
from tunnelsim.core.engine.config import EncounterConfig
from tunnelsim.core.engine.rules.validator import ensure_valid
from tunnelsim.core.engine.state import Side
from tunnelsim.core.sim.log import CombatLog, format_combat_log
from tunnelsim.core.sim.stats import SimulationStats, StatsAccumulator

logger = logging.getLogger(__name__)

ExecutorKind = Literal["process", "thread"]

DEFAULT_SAMPLE_COUNT = 5


class SimulationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stats: SimulationStats
    sample_combats: List[CombatLog] = Field(default_factory=list)


def derive_trial_seed(master_seed: int, index: int) -> int:
    """Стабильный сид прогона: не зависит от числа воркеров и порядка выполнения."""
    digest = hashlib.blake2b(f"{master_seed}:{index}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big")


def expected_side_hp(config: EncounterConfig) -> Dict[Side, float]:
    return {
        "side1": sum(t.hp.expected_value() for t in config.side1),
        "side2": sum(t.hp.expected_value() for t in config.side2),
    }


def new_master_seed() -> int:
    return SystemRandom().getrandbits(63)


def run_trial(
    config: EncounterConfig, master_seed: int, index: int, *, record: bool = False
) -> TrialOutcome:
    rng = Random(derive_trial_seed(master_seed, index))
    return run_combat(config, rng, record=record)


@dataclass
class ChunkResult:
    start: int
    stop: int
    stats: StatsAccumulator
    logs: List[CombatLog] = field(default_factory=list)


def run_chunk(
    config: EncounterConfig, master_seed: int, start: int, stop: int, sample_count: int
) -> ChunkResult:
    acc = StatsAccumulator()
    logs: List[CombatLog] = []
    for i in range(start, stop):
        record = i < sample_count
        outcome = run_trial(config, master_seed, i, record=record)
        acc.add(outcome)
        if record:
            logs.append(format_combat_log(i, outcome))
    return ChunkResult(start=start, stop=stop, stats=acc, logs=logs)


def _chunks(total: int, parts: int) -> List[Tuple[int, int]]:
    parts = max(1, min(parts, total))
    size, extra = divmod(total, parts)
    out: List[Tuple[int, int]] = []
    start = 0
    for p in range(parts):
        stop = start + size + (1 if p < extra else 0)
        out.append((start, stop))
        start = stop
    return out


def _make_executor(kind: ExecutorKind, workers: int) -> Executor:
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=workers)
    return ProcessPoolExecutor(max_workers=workers)


def run_simulation(
    config: EncounterConfig,
    *,
    iterations: Optional[int] = None,
    sample_count: int = DEFAULT_SAMPLE_COUNT,
    seed: Optional[int] = None,
    workers: int = 1,
    executor: ExecutorKind = "process",
) -> SimulationResult:
    """
    N независимых прогонов -> статистика + первые sample_count журналов.
    Конфиг проверяется один раз ДО старта; во время прогонов ошибок быть не должно.
    """
    ensure_valid(config)
    if sample_count < 0:
        raise ValueError("sample_count must not be negative")
    if workers < 1:
        raise ValueError("workers must be at least 1")

    total = config.iterations if iterations is None else iterations
    if total < 1:
        raise ValueError("iterations must be at least 1")

    master_seed = new_master_seed() if seed is None else seed

    logger.info(
        "simulation start: encounter=%r iterations=%d workers=%d seed=%d",
        config.name,
        total,
        workers,
        master_seed,
    )
    started = time.perf_counter()

    ranges = _chunks(total, workers)
    if len(ranges) == 1:
        results = [run_chunk(config, master_seed, 0, total, sample_count)]
    else:
        with _make_executor(executor, len(ranges)) as pool:
            futures = [
                pool.submit(run_chunk, config, master_seed, start, stop, sample_count)
                for start, stop in ranges
            ]
            # барьер: ждём все чанки, потом сводим
            results = [f.result() for f in futures]

    acc = StatsAccumulator()
    logs: List[CombatLog] = []
    for chunk in sorted(results, key=lambda c: c.start):
        acc.merge(chunk.stats)
        logs.extend(chunk.logs)

    if acc.trials != total:
        raise RuntimeError(f"Expected {total} trial outcomes, aggregated {acc.trials}")

    stats = acc.finalize(seed=master_seed, expected_hp=expected_side_hp(config))
    logger.info(
        "simulation done in %.2fs: side1=%.1f%% side2=%.1f%% draw=%.1f%% avg_rounds=%.2f",
        time.perf_counter() - started,
        stats.side1_win_rate,
        stats.side2_win_rate,
        stats.draw_rate,
        stats.avg_rounds,
    )
    return SimulationResult(stats=stats, sample_combats=logs)
