from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol

from tunnelsim.core.engine.state import GUARDING, Actor, CombatState

GUARD_AC_BONUS = 2


@dataclass(frozen=True)
class AcMod:
    name: str
    value: int


# --- middleware протокол: кто может поменять AC цели на момент атаки ---


class DefenseMiddleware(Protocol):
    def target_ac_mods(
        self,
        state: CombatState,
        attacker: Actor,
        target: Actor,
    ) -> List[AcMod]: ...


class GuardMiddleware:
    """guard: +2 AC до начала следующего хода владельца"""

    def target_ac_mods(
        self,
        state: CombatState,
        attacker: Actor,
        target: Actor,
    ) -> List[AcMod]:
        if GUARDING in target.statuses:
            return [AcMod(name="guard", value=GUARD_AC_BONUS)]
        return []


DEFAULT_DEFENSE_MIDDLEWARES: List[DefenseMiddleware] = [
    GuardMiddleware(),
]


def effective_ac(state: CombatState, attacker: Actor, target: Actor) -> int:
    ac = target.ac
    for mw in DEFAULT_DEFENSE_MIDDLEWARES:
        for mod in mw.target_ac_mods(state, attacker, target):
            ac += mod.value
    return ac
