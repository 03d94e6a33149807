# app/api/v1/criteres.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.db.session import get_db
from app.policies.rbac import ACTION_MANAGE_CRITERIA, Principal, require_action
from app.schemas.evaluation import CritereCreateRequest, CritereOut, criterion_to_schema
from app.services.audit_service import AuditAction, AuditService
from app.services.criterion_engine import CriterionEvaluationEngine
from app.services.lookups import get_phase

router = APIRouter(prefix="/phases/{phase_id}/criteres")


@router.post("", response_model=CritereOut, status_code=201)
def create_criterion(
    phase_id: int,
    payload: CritereCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_MANAGE_CRITERIA)

    crit = CriterionEvaluationEngine().create_criterion(
        db,
        phase_id=phase_id,
        name=payload.nom_critere,
        type=payload.type,
        weight=payload.poids,
        fill_role=payload.rempli_par,
        visible_to_mentors=payload.accessible_mentors,
        visible_to_teams=payload.accessible_equipes,
        requires_validation=payload.necessite_validation,
    )

    AuditService().write(
        db,
        action=AuditAction.CRITERION_CREATED,
        actor_user_id=principal.user_id,
        program_id=get_phase(db, phase_id).program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"phase_id": phase_id, "criterion_id": crit.id, "type": crit.type},
    )
    return criterion_to_schema(crit)


@router.get("", response_model=List[CritereOut])
def list_criteria(
    phase_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return [criterion_to_schema(c) for c in CriterionEvaluationEngine().list_criteria(db, phase_id=phase_id)]


@router.delete("/{critere_id}")
def delete_criterion(
    phase_id: int,
    critere_id: int,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_MANAGE_CRITERIA)

    program_id = get_phase(db, phase_id).program_id
    CriterionEvaluationEngine().delete_criterion(db, phase_id=phase_id, criterion_id=critere_id)

    AuditService().write(
        db,
        action=AuditAction.CRITERION_DELETED,
        actor_user_id=principal.user_id,
        program_id=program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"phase_id": phase_id, "criterion_id": critere_id},
    )
    return {"deleted": True, "critereId": critere_id}
