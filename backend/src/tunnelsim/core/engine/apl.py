from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from tunnelsim.core.engine.commands import Attack, Guard, Move, MovementCommand
from tunnelsim.core.engine.state import Actor, CombatState, enemy_ranged_zone, own_ranged_zone
from tunnelsim.core.engine.zones import distance, in_weapon_range

ActionKind = Literal["attack", "move", "guard"]
ConditionKind = Literal["always", "never", "enemy_in_range", "no_enemy_in_range", "compare"]
Metric = Literal["self.health_percent", "self.hp", "enemy.count", "ally.count"]
TargetKind = Literal["nearest_enemy", "lowest_hp_enemy", "random_enemy", "forward", "backward"]

ACTIONS: Tuple[ActionKind, ...] = ("attack", "move", "guard")
MOVEMENT_ACTIONS: Tuple[ActionKind, ...] = ("move", "guard")

DIRECTION_TARGETS: Tuple[TargetKind, ...] = ("forward", "backward")

_TARGET_ALIASES: Dict[str, TargetKind] = {
    "nearest_enemy": "nearest_enemy",
    "nearest": "nearest_enemy",
    "lowest_hp_enemy": "lowest_hp_enemy",
    "lowest_hp": "lowest_hp_enemy",
    "weakest": "lowest_hp_enemy",
    "random_enemy": "random_enemy",
    "random": "random_enemy",
    "forward": "forward",
    "backward": "backward",
}

_METRIC_ALIASES: Dict[str, Metric] = {
    "self.health_percent": "self.health_percent",
    "self.hp_percent": "self.health_percent",
    "self.hp": "self.hp",
    "self.health": "self.hp",
    "enemy.count": "enemy.count",
    "ally.count": "ally.count",
}

_IN_RANGE = {"enemy.in_range", "enemy_in_range"}
_NOT_IN_RANGE = {"!enemy.in_range", "!enemy_in_range", "not enemy.in_range", "not enemy_in_range"}

_COMPARE_RE = re.compile(r"^([a-z_.]+)\s*([<>])\s*(-?\d+(?:\.\d+)?)$")


class AplParseError(ValueError):
    def __init__(self, code: str, message: str):
        self.code = code
        super().__init__(message)


@dataclass(frozen=True)
class Condition:
    kind: ConditionKind
    metric: Optional[Metric] = None
    op: Optional[Literal["<", ">"]] = None
    value: float = 0.0
    source: str = ""


ALWAYS = Condition(kind="always", source="true")


@dataclass(frozen=True)
class AplEntry:
    action: ActionKind
    condition: Condition = ALWAYS
    target: Optional[TargetKind] = None


# если APL не задан: атакуем ближайшего в досягаемости, иначе идём к ближайшему
DEFAULT_APL: Tuple[AplEntry, ...] = (
    AplEntry(
        action="attack",
        condition=Condition(kind="enemy_in_range", source="enemy.in_range"),
        target="nearest_enemy",
    ),
    AplEntry(action="move", target="nearest_enemy"),
)


# --- парсинг (один раз, при загрузке конфига) ---


def parse_action(text: str) -> ActionKind:
    action = (text or "").strip().lower()
    if action not in ACTIONS:
        raise AplParseError("UNKNOWN_ACTION", f"Unknown action {text!r}; expected one of {', '.join(ACTIONS)}")
    return action  # type: ignore[return-value]


def parse_condition(text: Optional[str]) -> Condition:
    if text is None:
        return ALWAYS
    cond = text.strip().lower()
    if cond in ("", "true"):
        return ALWAYS
    if cond == "false":
        return Condition(kind="never", source=cond)
    if cond in _IN_RANGE:
        return Condition(kind="enemy_in_range", source=cond)
    if cond in _NOT_IN_RANGE:
        return Condition(kind="no_enemy_in_range", source=cond)

    m = _COMPARE_RE.match(cond)
    if not m:
        raise AplParseError("UNKNOWN_CONDITION", f"Unknown condition {text!r}")

    metric = _METRIC_ALIASES.get(m.group(1))
    if metric is None:
        raise AplParseError("UNKNOWN_CONDITION", f"Unknown value {m.group(1)!r} in condition {text!r}")

    return Condition(
        kind="compare",
        metric=metric,
        op=m.group(2),  # type: ignore[arg-type]
        value=float(m.group(3)),
        source=cond,
    )


def parse_target(text: Optional[str], action: ActionKind) -> Optional[TargetKind]:
    if action == "guard":
        return None
    if text is None or text.strip() == "":
        return "nearest_enemy"

    target = _TARGET_ALIASES.get(text.strip().lower())
    if target is None:
        raise AplParseError("UNKNOWN_TARGET", f"Unknown target {text!r}")
    if action == "attack" and target in DIRECTION_TARGETS:
        raise AplParseError("TARGET_NOT_ALLOWED", f"Target {text!r} is only valid for move")
    return target


def parse_entry(action: str, condition: Optional[str] = None, target: Optional[str] = None) -> AplEntry:
    kind = parse_action(action)
    return AplEntry(
        action=kind,
        condition=parse_condition(condition),
        target=parse_target(target, kind),
    )


# --- вычисление против текущего состояния ---


def enemies_in_range(actor: Actor, state: CombatState) -> List[Actor]:
    return [
        e
        for e in state.enemies_of(actor)
        if in_weapon_range(actor.weapon_range, distance(actor.zone, e.zone))
    ]


def _metric_value(metric: Metric, actor: Actor, state: CombatState) -> float:
    if metric == "self.health_percent":
        return actor.health_percent
    if metric == "self.hp":
        return float(actor.hp_current)
    if metric == "enemy.count":
        return float(len(state.enemies_of(actor)))
    return float(len(state.allies_of(actor)))


def evaluate_condition(cond: Condition, actor: Actor, state: CombatState) -> bool:
    if cond.kind == "always":
        return True
    if cond.kind == "never":
        return False
    if cond.kind == "enemy_in_range":
        return bool(enemies_in_range(actor, state))
    if cond.kind == "no_enemy_in_range":
        return not enemies_in_range(actor, state)

    assert cond.metric is not None
    lhs = _metric_value(cond.metric, actor, state)
    if cond.op == "<":
        return lhs < cond.value
    return lhs > cond.value


def _pick(kind: TargetKind, actor: Actor, candidates: Sequence[Actor], state: CombatState) -> Optional[Actor]:
    if not candidates:
        return None
    # ничьи: по порядку добавления (id)
    if kind == "nearest_enemy":
        return min(candidates, key=lambda e: (distance(actor.zone, e.zone), e.id))
    if kind == "lowest_hp_enemy":
        return min(candidates, key=lambda e: (e.hp_current, e.id))
    return state.rng.choice(list(candidates))


def effective_apl(actor: Actor) -> Sequence[AplEntry]:
    return actor.apl or DEFAULT_APL


def first_match(
    actor: Actor, state: CombatState, kinds: Sequence[ActionKind]
) -> Optional[AplEntry]:
    for entry in effective_apl(actor):
        if entry.action not in kinds:
            continue
        if evaluate_condition(entry.condition, actor, state):
            return entry
    return None


def select_movement(actor: Actor, state: CombatState) -> Optional[MovementCommand]:
    """Первая подходящая move/guard запись; None: слот движения пропускается."""
    entry = first_match(actor, state, MOVEMENT_ACTIONS)
    if entry is None:
        return None
    if entry.action == "guard":
        return Guard(combatant_id=actor.id)

    target = entry.target or "nearest_enemy"
    if target == "forward":
        return Move(mover_id=actor.id, target_zone=enemy_ranged_zone(actor.side), toward="forward")
    if target == "backward":
        return Move(mover_id=actor.id, target_zone=own_ranged_zone(actor.side), toward="backward")

    enemy = _pick(target, actor, state.enemies_of(actor), state)
    if enemy is None:
        return None
    return Move(mover_id=actor.id, target_zone=enemy.zone, toward=enemy.name)


def select_attack(actor: Actor, state: CombatState) -> Optional[Attack]:
    entry = first_match(actor, state, ("attack",))
    if entry is None:
        return None

    enemy = _pick(entry.target or "nearest_enemy", actor, enemies_in_range(actor, state), state)
    if enemy is None:
        return None
    return Attack(attacker_id=actor.id, target_id=enemy.id)
