from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Literal, Optional, Sequence

from tunnelsim.errors import EngineInvariantError

if TYPE_CHECKING:
    from tunnelsim.core.engine.state import Actor

ZONE_COUNT = 6

RangeCategory = Literal["melee", "reach", "ranged"]


def distance(a: int, b: int) -> int:
    return abs(a - b)


def range_category(dist: int) -> RangeCategory:
    if dist <= 0:
        return "melee"
    if dist == 1:
        return "reach"
    return "ranged"


def in_weapon_range(weapon_range: str, dist: int) -> bool:
    """
    melee -> только своя зона (0)
    reach -> своя или соседняя (<=1)
    ranged -> любая дистанция (то, что стрелки стоят на 2+, решает APL, а не движок)
    """
    if weapon_range == "melee":
        return dist == 0
    if weapon_range == "reach":
        return dist <= 1
    return True


@dataclass(frozen=True)
class MoveResult:
    from_zone: int
    to_zone: int
    steps: int
    # зона, в которую не пустили (None: дошли или скорость кончилась)
    blocked_at: Optional[int] = None

    @property
    def moved(self) -> bool:
        return self.to_zone != self.from_zone


class ZoneTrack:
    """
    Учёт позиций и вместимости. capacity=None: бесконечная зона.
    Занятость = сумма frontage живых актёров в зоне.
    """

    def __init__(self, capacities: Sequence[Optional[int]]):
        if len(capacities) != ZONE_COUNT:
            raise ValueError(f"Zone track needs {ZONE_COUNT} capacities, got {len(capacities)}")
        self.capacities: List[Optional[int]] = list(capacities)
        self.occupancy: List[int] = [0] * ZONE_COUNT

    def capacity(self, zone: int) -> Optional[int]:
        return self.capacities[zone]

    def remaining(self, zone: int) -> Optional[int]:
        cap = self.capacities[zone]
        if cap is None:
            return None
        return cap - self.occupancy[zone]

    def fits(self, zone: int, frontage: int) -> bool:
        cap = self.capacities[zone]
        return cap is None or self.occupancy[zone] + frontage <= cap

    def can_enter(self, zone: int, actor: "Actor") -> bool:
        if zone < 0 or zone >= ZONE_COUNT:
            return False
        return self.fits(zone, actor.frontage)

    def place(self, actor: "Actor", zone: int) -> None:
        # стартовая расстановка: переполнение ловит валидатор конфига
        actor.zone = zone
        self.occupancy[zone] += actor.frontage
        self._check_zone(zone)

    def release(self, actor: "Actor") -> None:
        """Мёртвые место не занимают."""
        self.occupancy[actor.zone] -= actor.frontage
        self._check_zone(actor.zone)

    def move_toward(self, actor: "Actor", target_zone: int) -> MoveResult:
        start = actor.zone
        current = start
        steps = 0
        blocked_at: Optional[int] = None

        for _ in range(actor.speed):
            if current == target_zone:
                break
            nxt = current + 1 if target_zone > current else current - 1
            if not self.fits(nxt, actor.frontage):
                blocked_at = nxt
                break
            self.occupancy[current] -= actor.frontage
            self.occupancy[nxt] += actor.frontage
            current = nxt
            steps += 1

        actor.zone = current
        self._check_zone(current)
        return MoveResult(from_zone=start, to_zone=current, steps=steps, blocked_at=blocked_at)

    def _check_zone(self, zone: int) -> None:
        cap = self.capacities[zone]
        occ = self.occupancy[zone]
        if occ < 0 or (cap is not None and occ > cap):
            raise EngineInvariantError(
                f"Zone {zone} occupancy {occ} violates capacity {cap}"
            )

    def check_invariants(self) -> None:
        for zone in range(ZONE_COUNT):
            self._check_zone(zone)
