from __future__ import annotations

import logging
from dataclasses import dataclass, field
from random import Random
from typing import Dict, List, Optional, Set

from tunnelsim.core.engine.apl import select_attack, select_movement
from tunnelsim.core.engine.config import EncounterConfig
from tunnelsim.core.engine.events import ev_combat_ended, ev_round_started
from tunnelsim.core.engine.rules.apply import apply_command, begin_turn, skip_action
from tunnelsim.core.engine.scheduler import Step, plan_round
from tunnelsim.core.engine.state import SIDES, Actor, CombatState, Side, zone_name

logger = logging.getLogger(__name__)


@dataclass
class ActorSnapshot:
    id: int
    name: str
    side: Side
    hp_max: int
    hp_final: int
    alive: bool
    zone: str


@dataclass
class TrialOutcome:
    winner: Optional[Side]
    rounds: int
    timed_out: bool

    casualties: Dict[Side, int] = field(default_factory=dict)
    hp_lost: Dict[Side, int] = field(default_factory=dict)
    hp_start: Dict[Side, int] = field(default_factory=dict)
    actor_count: Dict[Side, int] = field(default_factory=dict)

    # только для записываемых прогонов
    events: Optional[List[dict]] = None
    final_state: Optional[List[ActorSnapshot]] = None

    def hp_lost_percent(self, side: Side) -> float:
        start = self.hp_start.get(side, 0)
        if start <= 0:
            return 0.0
        return self.hp_lost.get(side, 0) / start * 100.0

    def is_flawless(self, side: Side) -> bool:
        return self.winner == side and self.casualties.get(side, 0) == 0

    def is_tpk(self, side: Side) -> bool:
        return self.casualties.get(side, 0) == self.actor_count.get(side, 0)


def setup_combat(config: EncounterConfig, rng: Random, *, record: bool = False) -> CombatState:
    state = CombatState.from_config(config, rng, record=record)
    state.phase = "setup"
    return state


def is_over(state: CombatState) -> bool:
    return not (state.side_alive("side1") and state.side_alive("side2"))


def winner_of(state: CombatState) -> Optional[Side]:
    s1 = state.side_alive("side1")
    s2 = state.side_alive("side2")
    if s1 and not s2:
        return "side1"
    if s2 and not s1:
        return "side2"
    return None  # ничья: оба выбиты или таймаут


def _movement_part(state: CombatState, actor: Actor) -> List[dict]:
    cmd = select_movement(actor, state)
    if cmd is None:
        return skip_action(state, actor, "movement", "no matching entry or target")
    return apply_command(state, cmd)


def _attack_part(state: CombatState, actor: Actor) -> List[dict]:
    # пересчитываем APL уже после движения: позиция могла измениться
    cmd = select_attack(actor, state)
    if cmd is None:
        return skip_action(state, actor, "attack", "no matching entry or target in range")
    return apply_command(state, cmd)


def take_step(state: CombatState, step: Step, started: Set[int]) -> None:
    actor = state.actors[step.actor_id]
    if not actor.alive:
        return

    events: List[dict] = []
    if actor.id not in started:
        # первый выход актёра в этом раунде = начало его хода
        started.add(actor.id)
        events.extend(begin_turn(state, actor))

    if step.part in ("full", "movement"):
        events.extend(_movement_part(state, actor))
    if step.part in ("full", "attack"):
        events.extend(_attack_part(state, actor))

    if state.record:
        state.events.extend(events)


def run_round(state: CombatState, config: EncounterConfig) -> None:
    state.round += 1
    plan = plan_round(state, config.initiative)

    if state.record:
        # в фазовой инициативе актёр встречается в плане несколько раз; имена могут совпадать
        seen: Set[int] = set()
        order: List[str] = []
        for step in plan:
            if step.actor_id not in seen:
                seen.add(step.actor_id)
                order.append(state.actors[step.actor_id].name)
        state.events.append(
            ev_round_started(seq=state.bump(), round_=state.round, order=order).model_dump()
        )

    started: Set[int] = set()
    for step in plan:
        take_step(state, step, started)
        if is_over(state):
            return


def _outcome(state: CombatState) -> TrialOutcome:
    winner = winner_of(state)
    timed_out = not is_over(state)

    outcome = TrialOutcome(winner=winner, rounds=state.round, timed_out=timed_out)
    for side in SIDES:
        members = [a for a in state.actors if a.side == side]
        outcome.actor_count[side] = len(members)
        outcome.casualties[side] = sum(1 for a in members if not a.alive)
        outcome.hp_start[side] = sum(a.hp_max for a in members)
        outcome.hp_lost[side] = sum(a.hp_max - max(0, a.hp_current) for a in members)

    if state.record:
        outcome.events = state.events
        outcome.final_state = [
            ActorSnapshot(
                id=a.id,
                name=a.name,
                side=a.side,
                hp_max=a.hp_max,
                hp_final=max(0, a.hp_current),
                alive=a.alive,
                zone=zone_name(a.zone),
            )
            for a in state.actors
        ]
    return outcome


def run_combat(config: EncounterConfig, rng: Random, *, record: bool = False) -> TrialOutcome:
    """setup -> round_loop -> resolved. Всегда завершается: победа, ничья или лимит раундов."""
    state = setup_combat(config, rng, record=record)

    state.phase = "round_loop"
    while not is_over(state) and state.round < state.max_rounds:
        run_round(state, config)

    state.phase = "resolved"
    outcome = _outcome(state)

    if state.record:
        if outcome.timed_out:
            reason = "max_rounds"
        elif outcome.winner is None:
            reason = "mutual_wipeout"
        else:
            reason = "side_eliminated"
        state.events.append(
            ev_combat_ended(
                seq=state.bump(), round_=state.round, winner=outcome.winner, reason=reason
            ).model_dump()
        )
        logger.debug(
            "recorded trial: winner=%s rounds=%d events=%d",
            outcome.winner,
            outcome.rounds,
            len(state.events),
        )
    return outcome
