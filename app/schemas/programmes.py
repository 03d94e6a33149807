#app/schemas/programmes.py
from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import ProgramStatus
from app.models.phase import Phase
from app.models.program import Program


class ProgramCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nom: str = Field(..., min_length=1)
    description: Optional[str] = None
    # validated by the service so an unknown type is a 400, not a 422
    type: str
    date_debut: date
    date_fin: date
    is_template: bool = False


class ProgramOut(BaseModel):
    id: int
    nom: str
    description: Optional[str] = None
    type: str
    date_debut: date
    date_fin: date
    status: ProgramStatus
    is_template: bool


class ProgramStatusRequest(BaseModel):
    status: ProgramStatus
    is_template: Optional[bool] = None


class PhaseCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nom: str = Field(..., min_length=1)
    description: Optional[str] = None
    date_debut: date
    date_fin: date


class PhaseOut(BaseModel):
    id: int
    programmeId: int
    nom: str
    description: Optional[str] = None
    date_debut: date
    date_fin: date
    gagnantCandidatureId: Optional[int] = None


class MentorAttachRequest(BaseModel):
    mentor_id: int


class MentorLinkOut(BaseModel):
    programmeId: int
    mentor_id: int


def program_to_schema(p: Program) -> ProgramOut:
    return ProgramOut(
        id=p.id,
        nom=p.name,
        description=p.description,
        type=p.type,
        date_debut=p.start_date,
        date_fin=p.end_date,
        status=ProgramStatus(p.status),
        is_template=bool(p.is_template),
    )


def phase_to_schema(ph: Phase) -> PhaseOut:
    return PhaseOut(
        id=ph.id,
        programmeId=ph.program_id,
        nom=ph.name,
        description=ph.description,
        date_debut=ph.start_date,
        date_fin=ph.end_date,
        gagnantCandidatureId=ph.winner_candidature_id,
    )
