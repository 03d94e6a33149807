# app/api/v1/note_phase.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.core.errors import ForbiddenError
from app.db.session import get_db
from app.policies.rbac import ACTION_SUBMIT_FINAL_SCORE, Principal, require_action
from app.schemas.evaluation import FinalScoreOut, FinalScoreRequest, final_score_to_schema
from app.services.audit_service import AuditAction, AuditService
from app.services.lookups import get_candidature
from app.services.phase_score_service import PhaseScoreService

router = APIRouter(prefix="/note-phase")


@router.post("", response_model=FinalScoreOut, status_code=201)
def submit_final_score(
    payload: FinalScoreRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_SUBMIT_FINAL_SCORE)
    if principal.user_id != payload.mentor_id:
        raise ForbiddenError("Mentors may only score under their own id.")

    row = PhaseScoreService().submit_final_score(
        db,
        phase_id=payload.phase_id,
        candidature_id=payload.candidature_id,
        mentor_id=payload.mentor_id,
        score=payload.note,
    )

    AuditService().write(
        db,
        action=AuditAction.FINAL_SCORE_SUBMITTED,
        actor_user_id=principal.user_id,
        program_id=get_candidature(db, payload.candidature_id).program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"phase_id": payload.phase_id, "candidature_id": payload.candidature_id, "score": row.score},
    )
    return final_score_to_schema(row)


@router.get("/{phase_id}/{candidature_id}", response_model=FinalScoreOut)
def get_final_score(
    phase_id: int,
    candidature_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return final_score_to_schema(
        PhaseScoreService().get_final_score(db, phase_id=phase_id, candidature_id=candidature_id)
    )
