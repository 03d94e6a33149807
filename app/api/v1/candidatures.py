# app/api/v1/candidatures.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.db.session import get_db
from app.policies.rbac import ACTION_MANAGE_CANDIDATURES, Principal, require_action
from app.schemas.candidatures import (
    CandidatureCreateRequest,
    CandidatureOut,
    MembersOut,
    candidature_to_schema,
)
from app.services.audit_service import AuditAction, AuditService
from app.services.candidature_registry import CandidatureRegistry
from app.services.lookups import get_candidature
from app.services.notification_dispatcher import NotificationDispatcher, get_notification_dispatcher

router = APIRouter(prefix="/candidatures")


@router.post("", response_model=CandidatureOut, status_code=201)
def create_candidature(
    payload: CandidatureCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    require_action(principal, ACTION_MANAGE_CANDIDATURES)

    cand = CandidatureRegistry(dispatcher).create_candidature(
        db,
        name=payload.nom,
        description=payload.description,
        program_id=payload.programmeId,
        submission_ids=payload.soumissionId,
    )

    AuditService().write(
        db,
        action=AuditAction.CANDIDATURE_CREATED,
        actor_user_id=principal.user_id,
        program_id=cand.program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"candidature_id": cand.id, "submission_ids": payload.soumissionId},
    )
    return candidature_to_schema(cand)


@router.get("/{candidature_id}/membres", response_model=MembersOut)
def get_members(
    candidature_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    members = CandidatureRegistry().get_members(db, candidature_id=candidature_id)
    return MembersOut(candidatureId=candidature_id, membres=members)


@router.delete("/{candidature_id}")
def delete_candidature(
    candidature_id: int,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    require_action(principal, ACTION_MANAGE_CANDIDATURES)

    program_id = get_candidature(db, candidature_id).program_id
    CandidatureRegistry(dispatcher).delete_candidature(db, candidature_id=candidature_id)

    AuditService().write(
        db,
        action=AuditAction.CANDIDATURE_DELETED,
        actor_user_id=principal.user_id,
        program_id=program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"candidature_id": candidature_id},
    )
    return {"deleted": True, "candidatureId": candidature_id}
