from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

from tunnelsim.core.engine.apl import AplEntry
from tunnelsim.core.engine.dice import DiceExpr
from tunnelsim.core.engine.state import WeaponRange, ZoneClass, zone_class_of
from tunnelsim.core.engine.zones import ZONE_COUNT

InitiativeType = Literal["side", "individual", "side_phases", "individual_phases"]
Phase = Literal["movement", "ranged", "reach", "melee"]
SideOrder = Literal["random", "side1_first", "side2_first"]

DEFAULT_PHASES: Tuple[Phase, ...] = ("movement", "ranged", "reach", "melee")
DEFAULT_ITERATIONS = 30000
DEFAULT_MAX_ROUNDS = 100


@dataclass(frozen=True)
class ZoneCapacities:
    # None = бесконечная вместимость; единицы: frontage (по умолчанию 3 актёра по 3)
    ranged: Optional[int] = None
    reach: Optional[int] = 9
    melee: Optional[int] = 9

    def capacity_for(self, zone: int) -> Optional[int]:
        cls: ZoneClass = zone_class_of(zone)
        return getattr(self, cls)

    def as_track(self) -> Tuple[Optional[int], ...]:
        return tuple(self.capacity_for(z) for z in range(ZONE_COUNT))


@dataclass(frozen=True)
class InitiativeConfig:
    type: InitiativeType = "side"
    dice: DiceExpr = DiceExpr(count=1, sides=20)
    phases: Tuple[Phase, ...] = DEFAULT_PHASES
    side_order: SideOrder = "random"


@dataclass(frozen=True)
class ActorTemplate:
    name: str
    hp: DiceExpr
    ac: int
    attack_bonus: int
    damage: DiceExpr
    speed: int = 1
    weapon_range: WeaponRange = "melee"
    start_zone: ZoneClass = "ranged"
    frontage: int = 3
    initiative_modifier: int = 0
    apl: Tuple[AplEntry, ...] = ()


@dataclass(frozen=True)
class EncounterConfig:
    """Уже провалидированный и скомпилированный энкаунтер: то, что ест движок."""

    side1: Tuple[ActorTemplate, ...]
    side2: Tuple[ActorTemplate, ...]
    zone_capacity: ZoneCapacities = ZoneCapacities()
    initiative: InitiativeConfig = InitiativeConfig()
    iterations: int = DEFAULT_ITERATIONS
    max_rounds: int = DEFAULT_MAX_ROUNDS
    name: Optional[str] = None
