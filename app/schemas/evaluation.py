#app/schemas/evaluation.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.criterion import Criterion
from app.models.phase_final_score import PhaseFinalScore
from app.models.response import Response
from app.services.criterion_engine import CriterionAnswer


# -----------------------
# Criteria
# -----------------------

class CritereCreateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nom_critere: str = Field(..., min_length=1)
    # checked by the engine so an unknown type is a 400
    type: str
    poids: float
    accessible_mentors: bool = True
    accessible_equipes: bool = True
    rempli_par: str
    necessite_validation: bool = False


class CritereOut(BaseModel):
    id: int
    phase_id: int
    nom_critere: str
    type: str
    poids: float
    accessible_mentors: bool
    accessible_equipes: bool
    rempli_par: str
    necessite_validation: bool


# -----------------------
# Responses
# -----------------------

class ReponseIn(BaseModel):
    critere_id: int
    # typed per criterion by the engine
    valeur: Any


class TeamResponsesRequest(BaseModel):
    candidature_id: int
    reponses: List[ReponseIn] = Field(..., min_length=1)


class MentorResponsesRequest(BaseModel):
    candidature_id: int
    mentor_id: int
    reponses: List[ReponseIn] = Field(..., min_length=1)


class AmendementIn(BaseModel):
    critere_id: int
    nouvelle_valeur: Optional[Any] = None


class ValidateRequest(BaseModel):
    candidature_id: int
    mentor_id: int
    reponses: List[AmendementIn] = Field(..., min_length=1)


class ReponseOut(BaseModel):
    id: int
    candidature_id: int
    critere_id: int
    valeur: str
    rempli_par_mentor_id: Optional[int] = None
    valide: bool
    valide_par_mentor_id: Optional[int] = None


class CritereReponseOut(BaseModel):
    critere: CritereOut
    reponse: Optional[ReponseOut] = None


class MentorGroupOut(BaseModel):
    mentor_id: int
    reponses: List[CritereReponseOut]


# -----------------------
# Final phase score
# -----------------------

class FinalScoreRequest(BaseModel):
    phase_id: int
    candidature_id: int
    mentor_id: int
    # must be a number; checked by the service
    note: Any


class FinalScoreOut(BaseModel):
    id: int
    phase_id: int
    candidature_id: int
    mentor_id: int
    note: float
    created_at: datetime


def criterion_to_schema(c: Criterion) -> CritereOut:
    return CritereOut(
        id=c.id,
        phase_id=c.phase_id,
        nom_critere=c.name,
        type=c.type,
        poids=c.weight,
        accessible_mentors=bool(c.visible_to_mentors),
        accessible_equipes=bool(c.visible_to_teams),
        rempli_par=c.fill_role,
        necessite_validation=bool(c.requires_validation),
    )


def response_to_schema(r: Response) -> ReponseOut:
    return ReponseOut(
        id=r.id,
        candidature_id=r.candidature_id,
        critere_id=r.criterion_id,
        valeur=r.value,
        rempli_par_mentor_id=r.filled_by_mentor_id,
        valide=bool(r.validated),
        valide_par_mentor_id=r.validated_by_mentor_id,
    )


def answer_to_schema(a: CriterionAnswer) -> CritereReponseOut:
    return CritereReponseOut(
        critere=criterion_to_schema(a.criterion),
        reponse=response_to_schema(a.response) if a.response is not None else None,
    )


def final_score_to_schema(s: PhaseFinalScore) -> FinalScoreOut:
    return FinalScoreOut(
        id=s.id,
        phase_id=s.phase_id,
        candidature_id=s.candidature_id,
        mentor_id=s.mentor_id,
        note=s.score,
        created_at=s.created_at,
    )
