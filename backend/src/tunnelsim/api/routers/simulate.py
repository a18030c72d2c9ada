from __future__ import annotations

import logging
from typing import Optional

import yaml
from fastapi import APIRouter, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from tunnelsim.api.schemas import EncounterSpec, SimulateRequest
from tunnelsim.core.adapters.mapper import encounter_config_from_spec
from tunnelsim.core.sim.runner import SimulationResult, run_simulation
from tunnelsim.errors import ConfigurationError
from tunnelsim.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["simulate"])


def encounter_spec_from_yaml(text: str) -> EncounterSpec:
    """YAML-текст энкаунтера -> EncounterSpec. Синтаксис -> 400, схема -> 422."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise HTTPException(status_code=400, detail=f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Invalid YAML: encounter must be a mapping")

    try:
        return EncounterSpec.model_validate(data)
    except ValidationError as e:
        # тот же формат 422, что и у JSON-тела
        raise RequestValidationError(e.errors(include_url=False)) from e


def simulate_spec(
    spec: EncounterSpec,
    *,
    sample_count: int,
    seed: Optional[int] = None,
    workers: Optional[int] = None,
    iterations: Optional[int] = None,
) -> SimulationResult:
    try:
        config = encounter_config_from_spec(spec)
    except ConfigurationError as e:
        # ошибки конфига: единственное, что видит пользователь
        raise HTTPException(
            status_code=422,
            detail=[issue.as_dict() for issue in e.issues],
        ) from e

    return run_simulation(
        config,
        iterations=iterations,
        sample_count=sample_count,
        seed=seed,
        workers=workers or settings.workers,
    )


@router.post("/simulate", response_model=SimulationResult)
def simulate(payload: SimulateRequest):
    if (payload.encounter is None) == (payload.encounter_yaml is None):
        raise HTTPException(status_code=422, detail="Provide exactly one of encounter or encounter_yaml")

    spec = payload.encounter
    if spec is None:
        spec = encounter_spec_from_yaml(payload.encounter_yaml)

    return simulate_spec(
        spec,
        sample_count=payload.sample_count,
        seed=payload.seed,
        workers=payload.workers,
    )
