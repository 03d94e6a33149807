#app/schemas/candidatures.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.candidature import Candidature
from app.models.enums import EntityKind
from app.models.submission import Submission
from app.schemas.programmes import PhaseOut


class CandidatureCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nom: str = Field(..., min_length=1)
    description: Optional[str] = None
    programmeId: int
    soumissionId: List[int]


class CandidatureOut(BaseModel):
    id: int
    nom: str
    description: Optional[str] = None
    programmeId: int
    type: str


class MembersOut(BaseModel):
    candidatureId: int
    membres: List[int]


class MemberOut(BaseModel):
    soumissionId: int
    userId: int
    role: str


class CurrentPhaseOut(BaseModel):
    candidatureId: int
    phase: Optional[PhaseOut] = None


class PhaseHistoryEntry(BaseModel):
    phase: PhaseOut
    date_passage: datetime


class PhaseHistoryOut(BaseModel):
    candidatureId: int
    historique: List[PhaseHistoryEntry]


class AdvanceRequest(BaseModel):
    """
    Unified advance.
    entiteType=equipe -> entiteId is a candidature id
    entiteType=startup -> entiteId is a submission id
    """
    entiteType: EntityKind
    entiteId: int
    phaseNextId: int
    programmeId: int
    nom_entreprise: Optional[str] = None


class AdvanceOut(BaseModel):
    nom: str
    entiteType: EntityKind
    entiteId: int
    anciennePhase: Optional[str] = None
    nouvellePhase: str
    candidatureId: int


class DeclareWinnerRequest(BaseModel):
    phaseId: int
    candidatureId: int


class WinnerOut(BaseModel):
    programmeId: int
    phase: PhaseOut
    candidature: CandidatureOut
    membres: List[MemberOut]


def candidature_to_schema(c: Candidature) -> CandidatureOut:
    return CandidatureOut(
        id=c.id,
        nom=c.name,
        description=c.description,
        programmeId=c.program_id,
        type=c.kind,
    )


def member_to_schema(s: Submission) -> MemberOut:
    return MemberOut(soumissionId=s.id, userId=s.user_id, role=s.role)
