import random

import pytest

from tunnelsim.core.engine.dice import DiceExpr, parse_dice, roll_d20
from tunnelsim.errors import DiceParseError


def test_parse_dice_forms():
    assert parse_dice("2d6") == DiceExpr(count=2, sides=6, modifier=0)
    assert parse_dice("1d8+3") == DiceExpr(count=1, sides=8, modifier=3)
    assert parse_dice("3d4-1") == DiceExpr(count=3, sides=4, modifier=-1)
    assert parse_dice(" 1D12 + 2 ") == DiceExpr(count=1, sides=12, modifier=2)


def test_flat_values():
    d = parse_dice("7")
    assert d.is_flat
    assert d.roll(random.Random(1)) == 7
    assert parse_dice(12).roll(random.Random(1)) == 12
    assert str(parse_dice(5)) == "5"


@pytest.mark.parametrize("formula", ["", "d6", "2x6", "1d", "0d6", "2d0", "-3", "1d6+", "abc"])
def test_bad_formulas_rejected(formula):
    with pytest.raises(DiceParseError):
        parse_dice(formula)


def test_negative_int_and_bool_rejected():
    with pytest.raises(DiceParseError):
        parse_dice(-1)
    with pytest.raises(DiceParseError):
        parse_dice(True)


def test_roll_bounds_and_clamp():
    rng = random.Random(42)
    d = parse_dice("2d6+1")
    for _ in range(200):
        v = d.roll(rng)
        assert 3 <= v <= 13

    # итог не уходит в минус
    low = parse_dice("1d4-10")
    for _ in range(50):
        dice, total = low.roll_with_dice(rng)
        assert len(dice) == 1
        assert total == 0


def test_expected_value_and_str():
    d = parse_dice("2d6+2")
    assert d.expected_value() == 9.0
    assert str(d) == "2d6+2"
    assert str(parse_dice("1d8-1")) == "1d8-1"
    assert str(parse_dice("4d4")) == "4d4"


def test_roll_d20_is_nat_plus_bonus():
    rng = random.Random(3)
    for _ in range(50):
        nat, total = roll_d20(rng, 5)
        assert 1 <= nat <= 20
        assert total == nat + 5
