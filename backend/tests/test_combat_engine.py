import random

from tunnelsim.core.engine.apl import parse_entry
from tunnelsim.core.engine.combat import run_combat, run_round, setup_combat
from tunnelsim.core.engine.config import (
    ActorTemplate,
    EncounterConfig,
    InitiativeConfig,
    ZoneCapacities,
)
from tunnelsim.core.engine.dice import flat, parse_dice

ACTING = ("Moved", "MovementBlocked", "GuardApplied", "AttackResolved", "ActionSkipped")


def _t(name, **kw):
    base = dict(
        hp=parse_dice("2d8+4"),
        ac=13,
        attack_bonus=4,
        damage=parse_dice("1d8+2"),
        start_zone="melee",
    )
    base.update(kw)
    return ActorTemplate(name=name, **base)


def test_guaranteed_kill_in_one_round():
    hero = _t("Hero", hp=flat(10), ac=10, attack_bonus=100, damage=flat(20))
    orc = _t("Orc", hp=flat(10), ac=5, attack_bonus=0, damage=flat(1))
    config = EncounterConfig(
        side1=(hero,),
        side2=(orc,),
        initiative=InitiativeConfig(side_order="side1_first"),
    )

    outcome = run_combat(config, random.Random(1), record=True)
    assert outcome.winner == "side1"
    assert outcome.rounds == 1
    assert outcome.casualties == {"side1": 0, "side2": 1}
    assert outcome.is_flawless("side1")
    assert outcome.is_tpk("side2")

    types = [e["type"] for e in outcome.events]
    # шаг в зону врага, удар, смерть, конец
    assert types == ["RoundStarted", "Moved", "AttackResolved", "Died", "CombatEnded"]
    assert outcome.events[-1]["payload"] == {"winner": "side1", "reason": "side_eliminated"}


def test_hp_never_negative_and_dead_never_act():
    side1 = (_t("A"), _t("B", weapon_range="reach", start_zone="reach"), _t("C", weapon_range="ranged", start_zone="ranged"))
    side2 = (_t("X"), _t("Y", damage=parse_dice("3d10")), _t("Z", weapon_range="ranged", start_zone="ranged"))
    config = EncounterConfig(side1=side1, side2=side2)

    for seed in range(30):
        outcome = run_combat(config, random.Random(seed), record=True)
        dead = set()
        for ev in outcome.events:
            if ev["type"] in ACTING:
                assert ev["actor_id"] not in dead
            if ev["type"] == "AttackResolved":
                assert ev["payload"]["hp_after"] >= 0
                assert ev["payload"]["target_id"] not in dead
            if ev["type"] == "Died":
                dead.add(ev["actor_id"])
        for snap in outcome.final_state:
            assert snap.hp_final >= 0
            assert snap.alive == (snap.hp_final > 0)


def test_occupancy_matches_living_actors_every_round():
    side1 = tuple(_t(f"S{i}", start_zone="ranged", speed=2) for i in range(4))
    side2 = tuple(_t(f"T{i}", start_zone="ranged", speed=2) for i in range(4))
    config = EncounterConfig(
        side1=side1,
        side2=side2,
        zone_capacity=ZoneCapacities(reach=6, melee=6),
        initiative=InitiativeConfig(type="individual"),
    )

    for seed in range(10):
        state = setup_combat(config, random.Random(seed))
        while state.side_alive("side1") and state.side_alive("side2") and state.round < 50:
            run_round(state, config)
            state.track.check_invariants()
            expected = [0] * 6
            for a in state.living():
                expected[a.zone] += a.frontage
            assert state.track.occupancy == expected


def test_capacity_blocks_second_entrant():
    # три бойца по 3 у входа в зону вместимостью 5
    side1 = tuple(_t(f"S{i}", hp=flat(10), start_zone="reach") for i in range(3))
    dummy = _t("Dummy", hp=flat(10), start_zone="melee", apl=(parse_entry("guard"),))
    config = EncounterConfig(
        side1=side1,
        side2=(dummy,),
        zone_capacity=ZoneCapacities(melee=5),
        initiative=InitiativeConfig(side_order="side1_first"),
        max_rounds=1,
    )

    outcome = run_combat(config, random.Random(3), record=True)
    zones = [s.zone for s in outcome.final_state if s.side == "side1"]
    assert zones.count("side1_melee") == 1
    assert zones.count("side1_reach") == 2

    blocked = [e for e in outcome.events if e["type"] == "MovementBlocked"]
    assert len(blocked) == 2
    assert all(e["payload"]["blocked"] == "side1_melee" for e in blocked)


def test_round_cap_is_a_timeout_draw():
    idle = (parse_entry("attack", "false"), parse_entry("guard"))
    config = EncounterConfig(
        side1=(_t("A", apl=idle),),
        side2=(_t("B", apl=idle),),
        max_rounds=7,
    )
    outcome = run_combat(config, random.Random(2), record=True)
    assert outcome.winner is None
    assert outcome.timed_out
    assert outcome.rounds == 7
    assert outcome.events[-1]["payload"]["reason"] == "max_rounds"
    assert outcome.hp_lost == {"side1": 0, "side2": 0}


def test_first_kill_ends_combat_mid_round():
    # оба дерутся копьями из соседних зон, один удар убивает
    a = _t("A", hp=flat(1), ac=1, attack_bonus=50, damage=flat(5), weapon_range="reach")
    b = _t("B", hp=flat(1), ac=1, attack_bonus=50, damage=flat(5), weapon_range="reach")
    config = EncounterConfig(side1=(a,), side2=(b,))
    outcome = run_combat(config, random.Random(4))
    # первый ходящий убивает второго до его хода
    assert outcome.winner in ("side1", "side2")
    assert outcome.rounds == 1
    assert not outcome.timed_out


def test_same_seed_same_outcome():
    config = EncounterConfig(side1=(_t("A"), _t("B")), side2=(_t("X"), _t("Y")))
    a = run_combat(config, random.Random(77), record=True)
    b = run_combat(config, random.Random(77), record=True)
    assert a.events == b.events
    assert (a.winner, a.rounds) == (b.winner, b.rounds)


def test_round_order_lists_same_named_actors_separately():
    goblins = tuple(_t("Goblin", start_zone="ranged") for _ in range(3))
    config = EncounterConfig(
        side1=goblins,
        side2=(_t("Hero", start_zone="ranged"),),
        initiative=InitiativeConfig(type="side_phases", side_order="side1_first"),
        max_rounds=1,
    )
    outcome = run_combat(config, random.Random(6), record=True)
    started = outcome.events[0]
    assert started["type"] == "RoundStarted"
    # фазы повторяют актёров в плане, но в порядке хода каждый один раз
    assert started["payload"]["order"] == ["Goblin", "Goblin", "Goblin", "Hero"]
