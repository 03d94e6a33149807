# app/api/v1/programmes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.db.session import get_db
from app.policies.rbac import ACTION_MANAGE_PROGRAMS, Principal, require_action
from app.schemas.candidatures import WinnerOut, candidature_to_schema, member_to_schema
from app.schemas.programmes import (
    MentorAttachRequest,
    MentorLinkOut,
    PhaseCreateRequest,
    PhaseOut,
    ProgramCreateRequest,
    ProgramOut,
    ProgramStatusRequest,
    phase_to_schema,
    program_to_schema,
)
from app.services.audit_service import AuditAction, AuditService
from app.services.notification_dispatcher import NotificationDispatcher, get_notification_dispatcher
from app.services.program_admin_service import ProgramAdminService
from app.services.program_status_machine import ProgramStatusMachine
from app.services.winner_service import WinnerDeclarationService

router = APIRouter()


def _audit(db: Session, request: Request, principal: Principal, action: str, program_id: int, details: dict) -> None:
    AuditService().write(
        db,
        action=action,
        actor_user_id=principal.user_id,
        program_id=program_id,
        request_id=getattr(request.state, "request_id", None),
        details=details,
    )


# ─────────────────────────────────────────────────────────────
# WINNER (read)
# ─────────────────────────────────────────────────────────────

@router.get("/programme/{programme_id}/gagnant", response_model=WinnerOut)
def get_program_winner(
    programme_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    winner = WinnerDeclarationService().get_program_winner(db, program_id=programme_id)
    return WinnerOut(
        programmeId=programme_id,
        phase=phase_to_schema(winner.phase),
        candidature=candidature_to_schema(winner.candidature),
        membres=[member_to_schema(s) for s in winner.members],
    )


# ─────────────────────────────────────────────────────────────
# STATUS
# ─────────────────────────────────────────────────────────────

@router.put("/programmes/{programme_id}/status", response_model=ProgramOut)
def update_program_status(
    programme_id: int,
    payload: ProgramStatusRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    require_action(principal, ACTION_MANAGE_PROGRAMS)

    program = ProgramStatusMachine(dispatcher).update_status(
        db,
        program_id=programme_id,
        status=payload.status,
        is_template=payload.is_template,
    )

    _audit(
        db, request, principal, AuditAction.PROGRAM_STATUS_CHANGED, programme_id,
        {"status": payload.status.value, "is_template": payload.is_template},
    )
    return program_to_schema(program)


# ─────────────────────────────────────────────────────────────
# ADMINISTRATION
# ─────────────────────────────────────────────────────────────

@router.post("/programmes", response_model=ProgramOut, status_code=201)
def create_program(
    payload: ProgramCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_MANAGE_PROGRAMS)

    program = ProgramAdminService().create_program(
        db,
        name=payload.nom,
        description=payload.description,
        type=payload.type,
        start_date=payload.date_debut,
        end_date=payload.date_fin,
        is_template=payload.is_template,
    )

    _audit(db, request, principal, AuditAction.PROGRAM_CREATED, program.id, {"type": program.type})
    return program_to_schema(program)


@router.post("/programmes/{programme_id}/phases", response_model=PhaseOut, status_code=201)
def add_phase(
    programme_id: int,
    payload: PhaseCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_MANAGE_PROGRAMS)

    phase = ProgramAdminService().add_phase(
        db,
        program_id=programme_id,
        name=payload.nom,
        description=payload.description,
        start_date=payload.date_debut,
        end_date=payload.date_fin,
    )

    _audit(db, request, principal, AuditAction.PHASE_ADDED, programme_id, {"phase_id": phase.id})
    return phase_to_schema(phase)


@router.post("/programmes/{programme_id}/mentors", response_model=MentorLinkOut)
def attach_mentor(
    programme_id: int,
    payload: MentorAttachRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    require_action(principal, ACTION_MANAGE_PROGRAMS)

    link = ProgramAdminService(dispatcher).attach_mentor(
        db, program_id=programme_id, mentor_id=payload.mentor_id
    )

    _audit(db, request, principal, AuditAction.MENTOR_ATTACHED, programme_id, {"mentor_id": payload.mentor_id})
    return MentorLinkOut(programmeId=link.program_id, mentor_id=link.mentor_id)


@router.delete("/programmes/{programme_id}")
def delete_program(
    programme_id: int,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    require_action(principal, ACTION_MANAGE_PROGRAMS)

    ProgramAdminService().delete_program(db, program_id=programme_id)

    _audit(db, request, principal, AuditAction.PROGRAM_DELETED, programme_id, {})
    return {"deleted": True, "programmeId": programme_id}
