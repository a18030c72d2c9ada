from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from tunnelsim.api.routers.simulate import simulate_spec
from tunnelsim.api.schemas import (
    EncounterCreate,
    EncounterOut,
    EncounterSpec,
    SimulateSavedRequest,
)
from tunnelsim.core.sim.runner import SimulationResult
from tunnelsim.db.deps import get_db
from tunnelsim.db.models import Encounter

router = APIRouter(prefix="/encounters", tags=["encounters"])


def _out(obj: Encounter) -> EncounterOut:
    return EncounterOut(
        id=obj.id,
        name=obj.name,
        encounter=EncounterSpec.model_validate(obj.data_json),
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


@router.get("", response_model=list[EncounterOut])
def list_encounters(db: Session = Depends(get_db)):
    items = db.query(Encounter).order_by(Encounter.created_at.desc()).all()
    return [_out(e) for e in items]


@router.post("", response_model=EncounterOut)
def create_encounter(payload: EncounterCreate, db: Session = Depends(get_db)):
    obj = Encounter(
        name=payload.name,
        data_json=payload.encounter.model_dump(by_alias=True),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _out(obj)


@router.get("/{encounter_id}", response_model=EncounterOut)
def get_encounter(encounter_id: str, db: Session = Depends(get_db)):
    obj = db.get(Encounter, encounter_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return _out(obj)


@router.delete("/{encounter_id}", status_code=204)
def delete_encounter(encounter_id: str, db: Session = Depends(get_db)):
    obj = db.get(Encounter, encounter_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Encounter not found")
    db.delete(obj)
    db.commit()


@router.post("/{encounter_id}/simulate", response_model=SimulationResult)
def simulate_encounter(
    encounter_id: str,
    payload: SimulateSavedRequest,
    db: Session = Depends(get_db),
):
    obj = db.get(Encounter, encounter_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Encounter not found")

    return simulate_spec(
        EncounterSpec.model_validate(obj.data_json),
        sample_count=payload.sample_count,
        seed=payload.seed,
        iterations=payload.iterations,
    )
