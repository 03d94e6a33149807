# app/api/v1/note.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.core.errors import ForbiddenError
from app.db.session import get_db
from app.models.enums import ActorRole
from app.policies.rbac import (
    ACTION_SUBMIT_MENTOR_RESPONSES,
    ACTION_SUBMIT_TEAM_RESPONSES,
    ACTION_VALIDATE_RESPONSES,
    Principal,
    require_action,
)
from app.schemas.evaluation import (
    CritereReponseOut,
    MentorGroupOut,
    MentorResponsesRequest,
    ReponseOut,
    TeamResponsesRequest,
    ValidateRequest,
    answer_to_schema,
    response_to_schema,
)
from app.services.audit_service import AuditAction, AuditService
from app.services.criterion_engine import CriterionEvaluationEngine
from app.services.lookups import get_candidature, member_submissions

router = APIRouter(prefix="/note")


# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────

def _require_member_or_admin(db: Session, principal: Principal, candidature_id: int) -> None:
    get_candidature(db, candidature_id)
    if principal.role == ActorRole.ADMIN:
        return
    if principal.user_id not in {s.user_id for s in member_submissions(db, candidature_id)}:
        raise ForbiddenError("Only members of the candidature may answer for it.")


def _require_self(principal: Principal, mentor_id: int) -> None:
    if principal.user_id != mentor_id:
        raise ForbiddenError("Mentors may only act under their own id.")


def _audit(db: Session, request: Request, principal: Principal, action: str, candidature_id: int, details: dict) -> None:
    AuditService().write(
        db,
        action=action,
        actor_user_id=principal.user_id,
        program_id=get_candidature(db, candidature_id).program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"candidature_id": candidature_id, **details},
    )


# ─────────────────────────────────────────────────────────────
# WRITE
# ─────────────────────────────────────────────────────────────

@router.post("/reponsesEquipe", response_model=List[ReponseOut], status_code=201)
def submit_team_responses(
    payload: TeamResponsesRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_SUBMIT_TEAM_RESPONSES)
    _require_member_or_admin(db, principal, payload.candidature_id)

    rows = CriterionEvaluationEngine().submit_team_responses(
        db,
        candidature_id=payload.candidature_id,
        answers=[(r.critere_id, r.valeur) for r in payload.reponses],
    )

    _audit(
        db, request, principal, AuditAction.TEAM_RESPONSES_SUBMITTED, payload.candidature_id,
        {"criterion_ids": [r.criterion_id for r in rows]},
    )
    return [response_to_schema(r) for r in rows]


@router.post("/submit/mentor", response_model=List[ReponseOut], status_code=201)
def submit_mentor_responses(
    payload: MentorResponsesRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_SUBMIT_MENTOR_RESPONSES)
    _require_self(principal, payload.mentor_id)

    rows = CriterionEvaluationEngine().submit_mentor_responses(
        db,
        candidature_id=payload.candidature_id,
        mentor_id=payload.mentor_id,
        answers=[(r.critere_id, r.valeur) for r in payload.reponses],
    )

    _audit(
        db, request, principal, AuditAction.MENTOR_RESPONSES_SUBMITTED, payload.candidature_id,
        {"criterion_ids": [r.criterion_id for r in rows]},
    )
    return [response_to_schema(r) for r in rows]


@router.post("/valider-ou-modifier", response_model=List[ReponseOut])
def validate_or_amend(
    payload: ValidateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_VALIDATE_RESPONSES)
    _require_self(principal, payload.mentor_id)

    rows = CriterionEvaluationEngine().validate_or_amend(
        db,
        candidature_id=payload.candidature_id,
        mentor_id=payload.mentor_id,
        amendments=[(r.critere_id, r.nouvelle_valeur) for r in payload.reponses],
    )

    _audit(
        db, request, principal, AuditAction.RESPONSES_VALIDATED, payload.candidature_id,
        {"criterion_ids": [r.criterion_id for r in rows]},
    )
    return [response_to_schema(r) for r in rows]


# ─────────────────────────────────────────────────────────────
# READ PROJECTIONS
# ─────────────────────────────────────────────────────────────

@router.get("/equipe/{candidature_id}/{phase_id}", response_model=List[CritereReponseOut])
def team_criteria(
    candidature_id: int,
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    answers = CriterionEvaluationEngine().team_criteria(db, candidature_id=candidature_id, phase_id=phase_id)
    return [answer_to_schema(a) for a in answers]


@router.get("/validees/{candidature_id}/{phase_id}", response_model=List[CritereReponseOut])
def validated_responses(
    candidature_id: int,
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    answers = CriterionEvaluationEngine().validated_responses(db, candidature_id=candidature_id, phase_id=phase_id)
    return [answer_to_schema(a) for a in answers]


@router.get("/mentors/{candidature_id}/{phase_id}", response_model=List[MentorGroupOut])
def mentor_responses(
    candidature_id: int,
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    grouped = CriterionEvaluationEngine().mentor_responses(db, candidature_id=candidature_id, phase_id=phase_id)
    return [
        MentorGroupOut(mentor_id=mentor_id, reponses=[answer_to_schema(a) for a in answers])
        for mentor_id, answers in sorted(grouped.items())
    ]


@router.get("/combinees/{candidature_id}/{phase_id}", response_model=List[CritereReponseOut])
def combined_responses(
    candidature_id: int,
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    answers = CriterionEvaluationEngine().combined_responses(db, candidature_id=candidature_id, phase_id=phase_id)
    return [answer_to_schema(a) for a in answers]


@router.get("/mentor/{mentor_id}/{candidature_id}/{phase_id}", response_model=List[CritereReponseOut])
def touched_by_mentor(
    mentor_id: int,
    candidature_id: int,
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    answers = CriterionEvaluationEngine().touched_by_mentor(
        db, candidature_id=candidature_id, phase_id=phase_id, mentor_id=mentor_id
    )
    return [answer_to_schema(a) for a in answers]


@router.get("/retours/{candidature_id}/{phase_id}", response_model=List[CritereReponseOut])
def team_feedback(
    candidature_id: int,
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    answers = CriterionEvaluationEngine().team_feedback(db, candidature_id=candidature_id, phase_id=phase_id)
    return [answer_to_schema(a) for a in answers]
