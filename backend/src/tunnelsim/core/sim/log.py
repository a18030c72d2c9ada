from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tunnelsim.core.engine.combat import TrialOutcome


class CombatLogEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    seq: int
    round: int
    actor: str
    type: str
    description: str


class ActorFinalState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    side: str
    hp: str  # "3/12"
    alive: bool
    zone: str


class CombatLog(BaseModel):
    model_config = ConfigDict(extra="forbid")

    trial: int
    winner: Optional[str] = None
    rounds: int
    timed_out: bool = False
    events: List[CombatLogEntry] = Field(default_factory=list)
    final_state: List[ActorFinalState] = Field(default_factory=list)


def describe_event(ev: Dict[str, Any]) -> str:
    p = ev.get("payload") or {}
    kind = ev["type"]

    if kind == "RoundStarted":
        return f"round {p['round']} begins ({', '.join(p['order'])})"
    if kind == "Moved":
        return f"moves from {p['from']} to {p['to']} toward {p['toward']}"
    if kind == "MovementBlocked":
        return f"is blocked at {p['at']}: {p['blocked']} is full"
    if kind == "GuardApplied":
        return f"takes a guard stance (AC {p['ac_before']} -> {p['ac_after']})"
    if kind == "GuardExpired":
        return "lowers guard"
    if kind == "AttackResolved":
        if p["hit"]:
            return (
                f"attacks {p['target_name']} (rolled {p['total']} vs AC {p['target_ac']})"
                f" - HIT for {p['damage']} damage"
            )
        return f"attacks {p['target_name']} (rolled {p['total']} vs AC {p['target_ac']}) - MISS"
    if kind == "Died":
        return "dies!"
    if kind == "ActionSkipped":
        return f"skips {p['slot']}: {p['reason']}"
    if kind == "CombatEnded":
        if p["winner"] is None:
            return f"combat ends in a draw ({p['reason']})"
        return f"{p['winner']} wins ({p['reason']})"
    return kind


def format_combat_log(trial: int, outcome: TrialOutcome) -> CombatLog:
    if outcome.events is None or outcome.final_state is None:
        raise ValueError(f"Trial {trial} was not recorded")

    return CombatLog(
        trial=trial,
        winner=outcome.winner,
        rounds=outcome.rounds,
        timed_out=outcome.timed_out,
        events=[
            CombatLogEntry(
                seq=ev["seq"],
                round=ev["round"],
                actor=ev.get("actor_name") or "",
                type=ev["type"],
                description=describe_event(ev),
            )
            for ev in outcome.events
        ],
        final_state=[
            ActorFinalState(
                name=a.name,
                side=a.side,
                hp=f"{a.hp_final}/{a.hp_max}",
                alive=a.alive,
                zone=a.zone,
            )
            for a in outcome.final_state
        ],
    )
