from __future__ import annotations

from typing import List

from tunnelsim.core.engine.commands import Attack, Command, Guard, Move
from tunnelsim.core.engine.dice import roll_d20
from tunnelsim.core.engine.events import (
    ev_action_skipped,
    ev_attack_resolved,
    ev_died,
    ev_guard_applied,
    ev_guard_expired,
    ev_movement_blocked,
    ev_moved,
)
from tunnelsim.core.engine.rules.middleware import effective_ac
from tunnelsim.core.engine.state import GUARDING, Actor, CombatState, zone_name
from tunnelsim.core.engine.zones import distance, in_weapon_range
from tunnelsim.errors import EngineInvariantError


def begin_turn(state: CombatState, actor: Actor) -> List[dict]:
    """Начало хода: временные статусы (guard) спадают ДО выбора действий."""
    events: List[dict] = []
    if GUARDING in actor.statuses:
        actor.statuses.discard(GUARDING)
        if state.record:
            events.append(
                ev_guard_expired(
                    seq=state.bump(),
                    round_=state.round,
                    actor_id=actor.id,
                    actor_name=actor.name,
                ).model_dump()
            )
    return events


def skip_action(state: CombatState, actor: Actor, slot: str, reason: str) -> List[dict]:
    # пропуск: это не ошибка, а штатный исход; пишем только в журнал
    if not state.record:
        return []
    return [
        ev_action_skipped(
            seq=state.bump(),
            round_=state.round,
            actor_id=actor.id,
            actor_name=actor.name,
            slot=slot,
            reason=reason,
        ).model_dump()
    ]


def _resolve_move(state: CombatState, cmd: Move) -> List[dict]:
    events: List[dict] = []
    actor = state.actors[cmd.mover_id]

    result = state.track.move_toward(actor, cmd.target_zone)

    if not state.record:
        return events

    if result.moved:
        events.append(
            ev_moved(
                seq=state.bump(),
                round_=state.round,
                actor_id=actor.id,
                actor_name=actor.name,
                from_zone=zone_name(result.from_zone),
                to_zone=zone_name(result.to_zone),
                steps=result.steps,
                toward=cmd.toward,
            ).model_dump()
        )
    if result.blocked_at is not None:
        events.append(
            ev_movement_blocked(
                seq=state.bump(),
                round_=state.round,
                actor_id=actor.id,
                actor_name=actor.name,
                at_zone=zone_name(result.to_zone),
                blocked_zone=zone_name(result.blocked_at),
                frontage=actor.frontage,
                remaining=state.track.remaining(result.blocked_at),
            ).model_dump()
        )
    return events


def _resolve_guard(state: CombatState, cmd: Guard) -> List[dict]:
    actor = state.actors[cmd.combatant_id]
    ac_before = effective_ac(state, actor, actor)
    actor.statuses.add(GUARDING)

    if not state.record:
        return []
    return [
        ev_guard_applied(
            seq=state.bump(),
            round_=state.round,
            actor_id=actor.id,
            actor_name=actor.name,
            ac_before=ac_before,
            ac_after=effective_ac(state, actor, actor),
        ).model_dump()
    ]


def _resolve_attack(state: CombatState, cmd: Attack) -> List[dict]:
    events: List[dict] = []
    attacker = state.actors[cmd.attacker_id]
    target = state.actors[cmd.target_id]

    if not target.alive:
        raise EngineInvariantError(f"{attacker.name} attacks dead actor {target.name}")
    if not in_weapon_range(attacker.weapon_range, distance(attacker.zone, target.zone)):
        raise EngineInvariantError(f"{attacker.name} attacks {target.name} out of range")

    target_ac = effective_ac(state, attacker, target)
    nat, total = roll_d20(state.rng, attacker.attack_bonus)
    hit = total >= target_ac

    dice: List[int] = []
    damage = 0
    hp_before = target.hp_current
    if hit:
        dice, damage = attacker.damage.roll_with_dice(state.rng)
        target.hp_current = max(0, target.hp_current - damage)

    if state.record:
        events.append(
            ev_attack_resolved(
                seq=state.bump(),
                round_=state.round,
                attacker_id=attacker.id,
                attacker_name=attacker.name,
                target_id=target.id,
                target_name=target.name,
                nat=nat,
                total=total,
                target_ac=target_ac,
                hit=hit,
                damage=damage,
                damage_dice=dice,
                hp_before=hp_before,
                hp_after=target.hp_current,
            ).model_dump()
        )

    if hit and hp_before > 0 and target.hp_current == 0:
        # умер сразу: место в зоне освобождается, статусы больше не нужны
        target.statuses.clear()
        state.track.release(target)
        if state.record:
            events.append(
                ev_died(
                    seq=state.bump(),
                    round_=state.round,
                    target_id=target.id,
                    target_name=target.name,
                    killer_id=attacker.id,
                ).model_dump()
            )
    return events


def apply_command(state: CombatState, cmd: Command) -> List[dict]:
    """
    Применяем уже выбранную APL команду. Возвращаем события (пусто, если прогон не пишется).
    Мёртвые не действуют: это баг планировщика, а не штатная ситуация.
    """
    actor_id = cmd.attacker_id if isinstance(cmd, Attack) else (
        cmd.mover_id if isinstance(cmd, Move) else cmd.combatant_id
    )
    if not state.actors[actor_id].alive:
        raise EngineInvariantError(f"Dead actor {state.actors[actor_id].name} tried to act")

    if isinstance(cmd, Move):
        return _resolve_move(state, cmd)
    if isinstance(cmd, Guard):
        return _resolve_guard(state, cmd)
    if isinstance(cmd, Attack):
        return _resolve_attack(state, cmd)

    raise TypeError(f"Unsupported command: {cmd!r}")
