import pytest

from tunnelsim.core.engine.apl import parse_entry
from tunnelsim.core.engine.config import ActorTemplate, EncounterConfig, InitiativeConfig
from tunnelsim.core.engine.dice import flat, parse_dice
from tunnelsim.core.sim.runner import derive_trial_seed, run_simulation
from tunnelsim.errors import ConfigurationError


def _fighter(name, **kw):
    base = dict(
        hp=parse_dice("2d8+4"),
        ac=13,
        attack_bonus=4,
        damage=parse_dice("1d8+2"),
        start_zone="melee",
    )
    base.update(kw)
    return ActorTemplate(name=name, **base)


def _skirmish(iterations=200):
    return EncounterConfig(
        side1=(_fighter("A"), _fighter("B", weapon_range="ranged", start_zone="ranged")),
        side2=(_fighter("X"), _fighter("Y", weapon_range="reach", start_zone="reach")),
        initiative=InitiativeConfig(type="individual"),
        iterations=iterations,
    )


def test_rates_sum_to_hundred_and_samples_recorded():
    res = run_simulation(_skirmish(), sample_count=3, seed=42)
    s = res.stats
    assert s.iterations == 200
    assert s.seed == 42
    assert s.side1_win_rate + s.side2_win_rate + s.draw_rate == pytest.approx(100.0)
    assert s.timeout_rate <= s.draw_rate

    assert [log.trial for log in res.sample_combats] == [0, 1, 2]
    for log in res.sample_combats:
        assert log.events[0].type == "RoundStarted"
        assert log.events[-1].type == "CombatEnded"
        assert len(log.final_state) == 4


def test_same_seed_is_reproducible():
    a = run_simulation(_skirmish(), sample_count=2, seed=7)
    b = run_simulation(_skirmish(), sample_count=2, seed=7)
    assert a.model_dump_json() == b.model_dump_json()


def test_worker_count_does_not_change_result():
    one = run_simulation(_skirmish(), sample_count=4, seed=99, workers=1)
    threads = run_simulation(_skirmish(), sample_count=4, seed=99, workers=3, executor="thread")
    assert one.model_dump_json() == threads.model_dump_json()


def test_process_pool_matches_sequential():
    one = run_simulation(_skirmish(60), sample_count=2, seed=5, workers=1)
    procs = run_simulation(_skirmish(60), sample_count=2, seed=5, workers=2, executor="process")
    assert one.model_dump_json() == procs.model_dump_json()


def test_unseeded_run_reports_reusable_seed():
    first = run_simulation(_skirmish(50), sample_count=1)
    assert first.stats.seed is not None
    again = run_simulation(_skirmish(50), sample_count=1, seed=first.stats.seed)
    assert again.model_dump_json() == first.model_dump_json()


def test_trial_seeds_differ():
    seeds = {derive_trial_seed(1, i) for i in range(1000)}
    assert len(seeds) == 1000
    assert derive_trial_seed(1, 0) != derive_trial_seed(2, 0)


def test_guaranteed_kill_is_always_flawless():
    hero = _fighter("Hero", hp=flat(10), ac=10, attack_bonus=100, damage=flat(20))
    orc = _fighter("Orc", hp=flat(10), ac=5, attack_bonus=0, damage=flat(1))
    config = EncounterConfig(
        side1=(hero,),
        side2=(orc,),
        initiative=InitiativeConfig(side_order="side1_first"),
        iterations=500,
    )
    s = run_simulation(config, sample_count=0, seed=1).stats
    assert s.side1_win_rate == 100.0
    assert s.side1_flawless_rate == 100.0
    assert s.side2_tpk_rate == 100.0
    assert s.avg_rounds == 1.0
    assert s.avg_side1_casualties == 0.0
    assert s.avg_side1_hp_lost == 0.0


def test_mirror_match_is_roughly_even():
    config = EncounterConfig(side1=(_fighter("A"),), side2=(_fighter("B"),), iterations=3000)
    s = run_simulation(config, sample_count=0, seed=2024).stats
    assert 42.0 <= s.side1_win_rate <= 58.0
    assert 42.0 <= s.side2_win_rate <= 58.0


def test_stalemate_hits_round_cap():
    idle = (parse_entry("guard"),)
    config = EncounterConfig(
        side1=(_fighter("A", apl=idle),),
        side2=(_fighter("B", apl=idle),),
        max_rounds=5,
        iterations=20,
    )
    s = run_simulation(config, sample_count=1, seed=3).stats
    assert s.draw_rate == 100.0
    assert s.timeout_rate == 100.0
    assert s.avg_rounds == 5.0


def test_invalid_config_rejected_before_any_trial():
    config = EncounterConfig(side1=(), side2=(_fighter("B"),))
    with pytest.raises(ConfigurationError) as ei:
        run_simulation(config, seed=1)
    assert [i.code for i in ei.value.issues] == ["EMPTY_SIDE"]


def test_bad_runner_arguments():
    with pytest.raises(ValueError):
        run_simulation(_skirmish(), iterations=0)
    with pytest.raises(ValueError):
        run_simulation(_skirmish(), workers=0)
    with pytest.raises(ValueError):
        run_simulation(_skirmish(), sample_count=-1)


def test_stats_report_expected_side_hp():
    s = run_simulation(_skirmish(20), sample_count=0, seed=8).stats
    # 2d8+4 -> 13 в среднем, по два бойца на сторону
    assert s.side1_expected_hp == 26.0
    assert s.side2_expected_hp == 26.0

    lopsided = EncounterConfig(
        side1=(_fighter("Giant", hp=parse_dice("10d10+20")),),
        side2=(_fighter("Rat", hp=flat(3)),),
        iterations=10,
    )
    s = run_simulation(lopsided, sample_count=0, seed=1).stats
    assert s.side1_expected_hp == 75.0
    assert s.side2_expected_hp == 3.0
