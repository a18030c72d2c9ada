from __future__ import annotations

import re
from dataclasses import dataclass
from random import Random
from typing import List, Tuple

from tunnelsim.errors import DiceParseError

_DICE_RE = re.compile(r"^\s*(\d+)\s*d\s*(\d+)\s*(?:([+-])\s*(\d+))?\s*$", re.IGNORECASE)
_FLAT_RE = re.compile(r"^\s*(\d+)\s*$")


@dataclass(frozen=True)
class DiceExpr:
    count: int
    sides: int
    modifier: int = 0

    @property
    def is_flat(self) -> bool:
        return self.count == 0

    def roll_with_dice(self, rng: Random) -> Tuple[List[int], int]:
        """Возвращает (кубы, итог). Итог не бывает отрицательным."""
        dice = [rng.randint(1, self.sides) for _ in range(self.count)]
        return dice, max(0, sum(dice) + self.modifier)

    def roll(self, rng: Random) -> int:
        total = self.modifier
        for _ in range(self.count):
            total += rng.randint(1, self.sides)
        return max(0, total)

    def expected_value(self) -> float:
        return self.count * (self.sides + 1) / 2 + self.modifier

    def __str__(self) -> str:
        if self.is_flat:
            return str(self.modifier)
        if self.modifier > 0:
            return f"{self.count}d{self.sides}+{self.modifier}"
        if self.modifier < 0:
            return f"{self.count}d{self.sides}{self.modifier}"
        return f"{self.count}d{self.sides}"


def flat(value: int) -> DiceExpr:
    # "1d0" не бывает, поэтому фиксированное значение = 0 кубов
    return DiceExpr(count=0, sides=1, modifier=value)


def parse_dice(formula: str | int) -> DiceExpr:
    if isinstance(formula, bool):
        raise DiceParseError(str(formula))
    if isinstance(formula, int):
        if formula < 0:
            raise DiceParseError(str(formula), "flat value must be non-negative")
        return flat(formula)

    m = _FLAT_RE.match(formula)
    if m:
        return flat(int(m.group(1)))

    m = _DICE_RE.match(formula)
    if not m:
        raise DiceParseError(formula)

    n = int(m.group(1))
    d = int(m.group(2))
    if n < 1:
        raise DiceParseError(formula, "dice count must be at least 1")
    if d < 1:
        raise DiceParseError(formula, "die must have at least 1 side")

    k = 0
    if m.group(3):
        k = int(m.group(4))
        if m.group(3) == "-":
            k = -k
    return DiceExpr(count=n, sides=d, modifier=k)


def roll_d20(rng: Random, bonus: int) -> Tuple[int, int]:
    """(nat, total)"""
    nat = rng.randint(1, 20)
    return nat, nat + bonus
