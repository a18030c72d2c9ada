from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import TYPE_CHECKING, Dict, Iterator, List, Literal, Optional, Tuple

from tunnelsim.core.engine.dice import DiceExpr
from tunnelsim.core.engine.zones import ZoneTrack

if TYPE_CHECKING:
    from tunnelsim.core.engine.apl import AplEntry
    from tunnelsim.core.engine.config import ActorTemplate, EncounterConfig

Side = Literal["side1", "side2"]
SIDES: Tuple[Side, Side] = ("side1", "side2")

WeaponRange = Literal["melee", "reach", "ranged"]
ZoneClass = Literal["ranged", "reach", "melee"]

# линейная дорожка из 6 зон
ZONE_NAMES: Tuple[str, ...] = (
    "side1_ranged",
    "side1_reach",
    "side1_melee",
    "side2_melee",
    "side2_reach",
    "side2_ranged",
)

_SIDE1_ZONES: Dict[ZoneClass, int] = {"ranged": 0, "reach": 1, "melee": 2}
_SIDE2_ZONES: Dict[ZoneClass, int] = {"melee": 3, "reach": 4, "ranged": 5}

GUARDING = "guarding"


def opposite(side: Side) -> Side:
    return "side2" if side == "side1" else "side1"


def zone_index(side: Side, zone_class: ZoneClass) -> int:
    return (_SIDE1_ZONES if side == "side1" else _SIDE2_ZONES)[zone_class]


def zone_class_of(index: int) -> ZoneClass:
    return ("ranged", "reach", "melee", "melee", "reach", "ranged")[index]  # type: ignore[return-value]


def zone_name(index: int) -> str:
    return ZONE_NAMES[index]


def own_ranged_zone(side: Side) -> int:
    return zone_index(side, "ranged")


def enemy_ranged_zone(side: Side) -> int:
    return zone_index(opposite(side), "ranged")


@dataclass
class Actor:
    id: int
    name: str
    side: Side
    hp_max: int
    hp_current: int
    ac: int
    attack_bonus: int
    damage: DiceExpr
    speed: int = 1
    weapon_range: WeaponRange = "melee"
    zone: int = 0
    frontage: int = 3
    initiative_modifier: int = 0

    # временные статусы ("guarding" до начала следующего хода)
    statuses: set[str] = field(default_factory=set)

    apl: Tuple["AplEntry", ...] = ()

    @property
    def alive(self) -> bool:
        return self.hp_current > 0

    @property
    def health_percent(self) -> float:
        if self.hp_max <= 0:
            return 0.0
        return self.hp_current / self.hp_max * 100.0

    @classmethod
    def spawn(
        cls, actor_id: int, template: "ActorTemplate", side: Side, rng: Random
    ) -> "Actor":
        hp = template.hp.roll(rng)
        if not template.hp.is_flat:
            hp = max(1, hp)  # случайные хиты не меньше 1
        return cls(
            id=actor_id,
            name=template.name,
            side=side,
            hp_max=hp,
            hp_current=hp,
            ac=template.ac,
            attack_bonus=template.attack_bonus,
            damage=template.damage,
            speed=template.speed,
            weapon_range=template.weapon_range,
            zone=zone_index(side, template.start_zone),
            frontage=template.frontage,
            initiative_modifier=template.initiative_modifier,
            apl=template.apl,
        )


@dataclass
class CombatState:
    actors: List[Actor]
    track: ZoneTrack
    rng: Random
    max_rounds: int = 100

    round: int = 0
    phase: str = "setup"  # setup | round_loop | resolved

    # журнал событий пишем только для выбранных прогонов
    record: bool = False
    seq: int = 0
    events: List[dict] = field(default_factory=list)

    @classmethod
    def from_config(
        cls, config: "EncounterConfig", rng: Random, *, record: bool = False
    ) -> "CombatState":
        actors: List[Actor] = []
        for side, templates in (("side1", config.side1), ("side2", config.side2)):
            for template in templates:
                actors.append(Actor.spawn(len(actors), template, side, rng))  # type: ignore[arg-type]

        track = ZoneTrack(config.zone_capacity.as_track())
        for a in actors:
            track.place(a, a.zone)

        return cls(
            actors=actors,
            track=track,
            rng=rng,
            max_rounds=config.max_rounds,
            record=record,
        )

    def bump(self) -> int:
        self.seq += 1
        return self.seq

    def living(self, side: Optional[Side] = None) -> Iterator[Actor]:
        for a in self.actors:
            if a.alive and (side is None or a.side == side):
                yield a

    def enemies_of(self, actor: Actor) -> List[Actor]:
        return [a for a in self.actors if a.alive and a.side != actor.side]

    def allies_of(self, actor: Actor) -> List[Actor]:
        return [
            a
            for a in self.actors
            if a.alive and a.side == actor.side and a.id != actor.id
        ]

    def side_alive(self, side: Side) -> bool:
        return any(True for _ in self.living(side))
