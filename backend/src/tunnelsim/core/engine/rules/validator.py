from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from tunnelsim.core.engine.config import DEFAULT_PHASES, EncounterConfig
from tunnelsim.core.engine.state import SIDES, ZONE_NAMES, zone_index
from tunnelsim.core.engine.zones import ZONE_COUNT
from tunnelsim.errors import ConfigIssue, ConfigurationError

logger = logging.getLogger(__name__)

_INITIATIVE_TYPES = ("side", "individual", "side_phases", "individual_phases")
_SIDE_ORDERS = ("random", "side1_first", "side2_first")
_WEAPON_RANGES = ("melee", "reach", "ranged")
_ZONE_CLASSES = ("ranged", "reach", "melee")


@dataclass
class ValidationResult:
    ok: bool
    errors: List[ConfigIssue] = field(default_factory=list)


def _err(issues: List[ConfigIssue], code: str, message: str, **kw) -> None:
    issues.append(ConfigIssue(code=code, message=message, **kw))


def validate_encounter_config(config: EncounterConfig) -> ValidationResult:
    """
    Структурные проверки уже скомпилированного конфига.
    Синтаксис кубов/APL проверяет маппер при компиляции.
    """
    issues: List[ConfigIssue] = []

    if config.iterations < 1:
        _err(issues, "BAD_ITERATIONS", "iterations must be at least 1", meta={"iterations": config.iterations})
    if config.max_rounds < 1:
        _err(issues, "BAD_MAX_ROUNDS", "max_rounds must be at least 1", meta={"max_rounds": config.max_rounds})

    for cls in _ZONE_CLASSES:
        cap = getattr(config.zone_capacity, cls)
        if cap is not None and cap <= 0:
            _err(issues, "BAD_CAPACITY", f"{cls} zone capacity must be positive or null (infinite)", meta={"zone": cls, "capacity": cap})

    ini = config.initiative
    if ini.type not in _INITIATIVE_TYPES:
        _err(issues, "UNKNOWN_INITIATIVE", f"Unknown initiative type {ini.type!r}")
    if ini.side_order not in _SIDE_ORDERS:
        _err(issues, "UNKNOWN_SIDE_ORDER", f"Unknown side order {ini.side_order!r}")
    if ini.type in ("side_phases", "individual_phases"):
        if not ini.phases:
            _err(issues, "NO_PHASES", "Phased initiative needs at least one phase")
        for i, phase in enumerate(ini.phases):
            if phase not in DEFAULT_PHASES:
                _err(issues, "UNKNOWN_PHASE", f"Unknown phase {phase!r}", meta={"index": i})

    occupancy: Dict[int, int] = {z: 0 for z in range(ZONE_COUNT)}

    for side in SIDES:
        templates = config.side1 if side == "side1" else config.side2
        if not templates:
            _err(issues, "EMPTY_SIDE", "Side must have at least one actor", side=side)
            continue

        for t in templates:
            where = {"side": side, "actor": t.name}
            if not t.name:
                _err(issues, "BAD_NAME", "Actor name must not be empty", **where)
            # фиксированные 0 хитов = актёр мёртв ещё до первого раунда
            if t.hp.is_flat and t.hp.modifier < 1:
                _err(issues, "BAD_HP", "hp must be at least 1", meta={"hp": t.hp.modifier}, **where)
            if t.frontage <= 0:
                _err(issues, "BAD_FRONTAGE", "frontage must be positive", meta={"frontage": t.frontage}, **where)
            if t.speed < 0:
                _err(issues, "BAD_SPEED", "speed must not be negative", meta={"speed": t.speed}, **where)
            if t.weapon_range not in _WEAPON_RANGES:
                _err(issues, "UNKNOWN_RANGE", f"Unknown weapon range {t.weapon_range!r}", **where)
                continue
            if t.start_zone not in _ZONE_CLASSES:
                _err(issues, "UNKNOWN_START_ZONE", f"Unknown start zone {t.start_zone!r}", **where)
                continue
            if t.frontage > 0:
                occupancy[zone_index(side, t.start_zone)] += t.frontage

    # стартовая расстановка не должна переполнять зоны
    for z, occ in occupancy.items():
        cap = config.zone_capacity.capacity_for(z)
        if cap is not None and cap > 0 and occ > cap:
            _err(
                issues,
                "START_ZONE_OVERFLOW",
                f"Starting actors need {occ} frontage in {ZONE_NAMES[z]} but capacity is {cap}",
                meta={"zone": ZONE_NAMES[z], "occupancy": occ, "capacity": cap},
            )

    return ValidationResult(ok=not issues, errors=issues)


def ensure_valid(config: EncounterConfig) -> EncounterConfig:
    vr = validate_encounter_config(config)
    if not vr.ok:
        logger.warning("encounter %r rejected: %d configuration issue(s)", config.name, len(vr.errors))
        raise ConfigurationError(vr.errors)
    return config
