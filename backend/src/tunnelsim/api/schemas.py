from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from tunnelsim.settings import settings

WeaponRange = Literal["melee", "reach", "ranged"]
StartZone = Literal["ranged", "reach", "melee"]
InitiativeType = Literal["side", "individual", "side_phases", "individual_phases"]
SideOrder = Literal["random", "side1_first", "side2_first"]


# ---- Encounter payload (то, что приходит с фронта и кладём в data_json) ----


class AplEntrySpec(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    # action/if/target оставляем строками: маппер сам проверит и скажет,
    # в какой записи какого актёра ошибка
    action: str
    # в JSON ключ "if", внутри condition
    condition: Optional[str] = Field(default=None, alias="if")
    target: Optional[str] = None


class ActorSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    # число или кубы ("2d8+2")
    hp: Union[int, str]
    ac: int
    attack_bonus: int = 0
    damage: str
    speed: int = 1
    range: WeaponRange = "melee"
    start_zone: StartZone = "ranged"
    frontage: int = 3
    initiative_modifier: int = 0
    apl: List[AplEntrySpec] = Field(default_factory=list)


class ZoneCapacitySpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # null = бесконечно
    ranged: Optional[int] = None
    reach: Optional[int] = 9
    melee: Optional[int] = 9


class InitiativeSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: InitiativeType = "side"
    dice: str = "1d20"
    phases: List[str] = Field(default_factory=lambda: ["movement", "ranged", "reach", "melee"])
    side_order: SideOrder = "random"


class EncounterSpec(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    side1: List[ActorSpec]
    side2: List[ActorSpec]
    iterations: int = Field(default=settings.default_iterations, ge=1, le=1_000_000)
    max_rounds: int = Field(default=settings.max_rounds, ge=1, le=10_000)
    zone_capacity: ZoneCapacitySpec = Field(default_factory=ZoneCapacitySpec)
    initiative: InitiativeSpec = Field(default_factory=InitiativeSpec)


# ---- API DTOs ----


class SimulateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # одно из двух: готовый JSON или YAML-текст (как его шлёт фронт)
    encounter: Optional[EncounterSpec] = None
    encounter_yaml: Optional[str] = None
    sample_count: int = Field(default=settings.default_sample_count, ge=0, le=100)
    seed: Optional[int] = Field(default=None, ge=0)
    workers: Optional[int] = Field(default=None, ge=1, le=64)


class SimulateSavedRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sample_count: int = Field(default=settings.default_sample_count, ge=0, le=100)
    seed: Optional[int] = Field(default=None, ge=0)
    iterations: Optional[int] = Field(default=None, ge=1, le=1_000_000)


class EncounterCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    encounter: EncounterSpec


class EncounterOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    encounter: EncounterSpec
    created_at: datetime
    updated_at: datetime
