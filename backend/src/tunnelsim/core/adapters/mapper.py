from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from tunnelsim.api.schemas import ActorSpec, EncounterSpec  # wire-схема -> конфиг движка
from tunnelsim.core.engine.apl import AplEntry, AplParseError, parse_entry
from tunnelsim.core.engine.config import (
    ActorTemplate,
    EncounterConfig,
    InitiativeConfig,
    ZoneCapacities,
)
from tunnelsim.core.engine.dice import DiceExpr, parse_dice
from tunnelsim.core.engine.rules.validator import validate_encounter_config
from tunnelsim.core.engine.state import Side
from tunnelsim.errors import ConfigIssue, ConfigurationError, DiceParseError

logger = logging.getLogger(__name__)


def _dice(
    issues: List[ConfigIssue],
    formula,
    *,
    field_name: str,
    side: Optional[str] = None,
    actor: Optional[str] = None,
) -> Optional[DiceExpr]:
    try:
        return parse_dice(formula)
    except DiceParseError as e:
        issues.append(
            ConfigIssue(
                code="BAD_DICE",
                message=f"{field_name}: {e}",
                side=side,
                actor=actor,
                meta={"field": field_name, "formula": str(formula)},
            )
        )
        return None


def _apl(issues: List[ConfigIssue], spec: ActorSpec, side: Side) -> Tuple[AplEntry, ...]:
    entries: List[AplEntry] = []
    for i, raw in enumerate(spec.apl):
        try:
            entries.append(parse_entry(raw.action, raw.condition, raw.target))
        except AplParseError as e:
            issues.append(
                ConfigIssue(
                    code=e.code,
                    message=str(e),
                    side=side,
                    actor=spec.name,
                    entry_index=i,
                    meta={"action": raw.action, "if": raw.condition, "target": raw.target},
                )
            )
    return tuple(entries)


def actor_template_from_spec(
    spec: ActorSpec, side: Side, issues: List[ConfigIssue]
) -> Optional[ActorTemplate]:
    hp = _dice(issues, spec.hp, field_name="hp", side=side, actor=spec.name)
    damage = _dice(issues, spec.damage, field_name="damage", side=side, actor=spec.name)
    apl = _apl(issues, spec, side)
    if hp is None or damage is None:
        return None

    return ActorTemplate(
        name=spec.name,
        hp=hp,
        ac=spec.ac,
        attack_bonus=spec.attack_bonus,
        damage=damage,
        speed=spec.speed,
        weapon_range=spec.range,
        start_zone=spec.start_zone,
        frontage=spec.frontage,
        initiative_modifier=spec.initiative_modifier,
        apl=apl,
    )


def encounter_config_from_spec(spec: EncounterSpec) -> EncounterConfig:
    """
    Компилируем wire-схему в EncounterConfig.
    Все проблемы собираем и кидаем одним ConfigurationError: симуляция не стартует.
    """
    issues: List[ConfigIssue] = []

    sides: dict[str, List[ActorTemplate]] = {"side1": [], "side2": []}
    for side, actors in (("side1", spec.side1), ("side2", spec.side2)):
        for a in actors:
            t = actor_template_from_spec(a, side, issues)  # type: ignore[arg-type]
            if t is not None:
                sides[side].append(t)

    ini_dice = _dice(issues, spec.initiative.dice, field_name="initiative.dice")

    config = EncounterConfig(
        name=spec.name,
        side1=tuple(sides["side1"]),
        side2=tuple(sides["side2"]),
        zone_capacity=ZoneCapacities(
            ranged=spec.zone_capacity.ranged,
            reach=spec.zone_capacity.reach,
            melee=spec.zone_capacity.melee,
        ),
        initiative=InitiativeConfig(
            type=spec.initiative.type,
            dice=ini_dice or DiceExpr(count=1, sides=20),
            phases=tuple(p.strip().lower() for p in spec.initiative.phases),  # type: ignore[misc]
            side_order=spec.initiative.side_order,
        ),
        iterations=spec.iterations,
        max_rounds=spec.max_rounds,
    )

    # структурные проверки гоняем только если парсинг прошёл: иначе
    # актёр с битыми кубами дал бы ложный EMPTY_SIDE
    if not issues:
        issues.extend(validate_encounter_config(config).errors)

    if issues:
        logger.warning("encounter %r failed validation: %d issue(s)", spec.name, len(issues))
        raise ConfigurationError(issues)
    return config
