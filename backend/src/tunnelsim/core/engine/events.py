from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # seq: "время" события внутри прогона (монотонно растёт)
    seq: int
    type: str

    round: int
    actor_id: Optional[int] = None
    actor_name: Optional[str] = None

    payload: dict[str, Any] = Field(default_factory=dict)


def ev_round_started(*, seq: int, round_: int, order: list[str]) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="RoundStarted",
        round=round_,
        payload={"round": round_, "order": order},
    )


def ev_guard_expired(
    *, seq: int, round_: int, actor_id: int, actor_name: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="GuardExpired",
        round=round_,
        actor_id=actor_id,
        actor_name=actor_name,
        payload={},
    )


def ev_guard_applied(
    *, seq: int, round_: int, actor_id: int, actor_name: str, ac_before: int, ac_after: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="GuardApplied",
        round=round_,
        actor_id=actor_id,
        actor_name=actor_name,
        payload={"ac_before": ac_before, "ac_after": ac_after},
    )


def ev_moved(
    *,
    seq: int,
    round_: int,
    actor_id: int,
    actor_name: str,
    from_zone: str,
    to_zone: str,
    steps: int,
    toward: str,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="Moved",
        round=round_,
        actor_id=actor_id,
        actor_name=actor_name,
        payload={
            "from": from_zone,
            "to": to_zone,
            "steps": steps,
            "toward": toward,
        },
    )


def ev_movement_blocked(
    *,
    seq: int,
    round_: int,
    actor_id: int,
    actor_name: str,
    at_zone: str,
    blocked_zone: str,
    frontage: int,
    remaining: Optional[int],
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="MovementBlocked",
        round=round_,
        actor_id=actor_id,
        actor_name=actor_name,
        payload={
            "at": at_zone,
            "blocked": blocked_zone,
            "frontage": frontage,
            "remaining": remaining,
        },
    )


def ev_action_skipped(
    *, seq: int, round_: int, actor_id: int, actor_name: str, slot: str, reason: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="ActionSkipped",
        round=round_,
        actor_id=actor_id,
        actor_name=actor_name,
        payload={"slot": slot, "reason": reason},
    )


def ev_attack_resolved(
    *,
    seq: int,
    round_: int,
    attacker_id: int,
    attacker_name: str,
    target_id: int,
    target_name: str,
    nat: int,
    total: int,
    target_ac: int,
    hit: bool,
    damage: int,
    damage_dice: list[int],
    hp_before: int,
    hp_after: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="AttackResolved",
        round=round_,
        actor_id=attacker_id,
        actor_name=attacker_name,
        payload={
            "target_id": target_id,
            "target_name": target_name,
            "nat": nat,
            "total": total,
            "target_ac": target_ac,
            "hit": hit,
            "damage": damage,
            "damage_dice": damage_dice,
            "hp_before": hp_before,
            "hp_after": hp_after,
        },
    )


def ev_died(
    *, seq: int, round_: int, target_id: int, target_name: str, killer_id: Optional[int]
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="Died",
        round=round_,
        actor_id=target_id,
        actor_name=target_name,
        payload={"killer_id": killer_id},
    )


def ev_combat_ended(
    *, seq: int, round_: int, winner: Optional[str], reason: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        type="CombatEnded",
        round=round_,
        payload={"winner": winner, "reason": reason},
    )
