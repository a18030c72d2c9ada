from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

from tunnelsim.core.engine.config import InitiativeConfig
from tunnelsim.core.engine.state import Actor, CombatState, Side, opposite

StepPart = Literal["full", "movement", "attack"]


@dataclass(frozen=True)
class Step:
    actor_id: int
    part: StepPart = "full"
    phase: Optional[str] = None


def side_order(state: CombatState, initiative: InitiativeConfig) -> Tuple[Side, Side]:
    if initiative.side_order == "side1_first":
        first: Side = "side1"
    elif initiative.side_order == "side2_first":
        first = "side2"
    else:
        # по умолчанию 50/50 каждый раунд
        first = "side1" if state.rng.random() < 0.5 else "side2"
    return first, opposite(first)


def shuffled_side(state: CombatState, side: Side) -> List[Actor]:
    order = list(state.living(side))
    state.rng.shuffle(order)
    return order


def roll_initiative(state: CombatState, initiative: InitiativeConfig) -> List[Actor]:
    """
    Все живые бросают initiative.dice + модификатор, ходят по убыванию.
    Ничья: сохраняем исходный порядок (sorted стабилен, актёры идут по id).
    """
    rolled = [
        (initiative.dice.roll(state.rng) + a.initiative_modifier, a)
        for a in state.living()
    ]
    rolled.sort(key=lambda pair: -pair[0])
    return [a for _, a in rolled]


def _phase_steps(order: List[Actor], phase: str) -> List[Step]:
    if phase == "movement":
        return [Step(actor_id=a.id, part="movement", phase=phase) for a in order]
    # фаза атаки названа по классу оружия: ranged/reach/melee
    return [
        Step(actor_id=a.id, part="attack", phase=phase)
        for a in order
        if a.weapon_range == phase
    ]


def plan_round(state: CombatState, initiative: InitiativeConfig) -> List[Step]:
    """
    Полный план раунда. Умершие по ходу раунда пропускаются движком,
    план не пересчитывается.
    """
    kind = initiative.type

    if kind == "side":
        steps: List[Step] = []
        for side in side_order(state, initiative):
            steps.extend(Step(actor_id=a.id) for a in shuffled_side(state, side))
        return steps

    if kind == "individual":
        return [Step(actor_id=a.id) for a in roll_initiative(state, initiative)]

    if kind == "side_phases":
        # порядок внутри стороны тасуем один раз на раунд, во всех фазах он одинаковый
        orders = [shuffled_side(state, side) for side in side_order(state, initiative)]
        steps = []
        for phase in initiative.phases:
            for order in orders:
                steps.extend(_phase_steps(order, phase))
        return steps

    if kind == "individual_phases":
        order = roll_initiative(state, initiative)
        steps = []
        for phase in initiative.phases:
            steps.extend(_phase_steps(order, phase))
        return steps

    raise ValueError(f"Unknown initiative type: {kind!r}")
