# app/api/v1/phases.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.auth_deps import get_current_principal
from app.db.session import get_db
from app.policies.rbac import ACTION_ADVANCE, ACTION_DECLARE_WINNER, Principal, require_action
from app.schemas.candidatures import (
    AdvanceOut,
    AdvanceRequest,
    CurrentPhaseOut,
    DeclareWinnerRequest,
    PhaseHistoryEntry,
    PhaseHistoryOut,
)
from app.schemas.programmes import PhaseOut, phase_to_schema
from app.services.audit_service import AuditAction, AuditService
from app.services.lookups import get_candidature
from app.services.notification_dispatcher import NotificationDispatcher, get_notification_dispatcher
from app.services.phase_tracker import PhaseTracker
from app.services.winner_service import WinnerDeclarationService

router = APIRouter(prefix="/phases")


# ─────────────────────────────────────────────────────────────
# READ: current phase / history
# ─────────────────────────────────────────────────────────────

@router.get("/candidature/{candidature_id}/actuelle", response_model=CurrentPhaseOut)
def get_current_phase(
    candidature_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    get_candidature(db, candidature_id)
    phase = PhaseTracker().get_current_phase(db, candidature_id=candidature_id)
    return CurrentPhaseOut(
        candidatureId=candidature_id,
        phase=phase_to_schema(phase) if phase else None,
    )


@router.get("/candidature/{candidature_id}/historique", response_model=PhaseHistoryOut)
def get_phase_history(
    candidature_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    rows = PhaseTracker().history(db, candidature_id=candidature_id)
    return PhaseHistoryOut(
        candidatureId=candidature_id,
        historique=[PhaseHistoryEntry(phase=phase_to_schema(p), date_passage=at) for p, at in rows],
    )


# ─────────────────────────────────────────────────────────────
# WRITE: advance / declare winner (admin)
# ─────────────────────────────────────────────────────────────

@router.post("/avancer", response_model=AdvanceOut)
def advance_entity(
    payload: AdvanceRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    require_action(principal, ACTION_ADVANCE)

    result = PhaseTracker(dispatcher).advance_entity(
        db,
        entity_kind=payload.entiteType,
        entity_id=payload.entiteId,
        target_phase_id=payload.phaseNextId,
        program_id=payload.programmeId,
        fallback_name=payload.nom_entreprise,
    )

    AuditService().write(
        db,
        action=AuditAction.ENTITY_ADVANCED,
        actor_user_id=principal.user_id,
        program_id=payload.programmeId,
        request_id=getattr(request.state, "request_id", None),
        details={
            "entity_kind": payload.entiteType.value,
            "entity_id": payload.entiteId,
            "phase_id": payload.phaseNextId,
            "candidature_id": result.candidature_id,
        },
    )

    return AdvanceOut(
        nom=result.name,
        entiteType=result.entity_kind,
        entiteId=result.entity_id,
        anciennePhase=result.previous_phase,
        nouvellePhase=result.new_phase,
        candidatureId=result.candidature_id,
    )


@router.post("/declarer-gagnant", response_model=PhaseOut)
def declare_winner(
    payload: DeclareWinnerRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    require_action(principal, ACTION_DECLARE_WINNER)

    phase = WinnerDeclarationService(dispatcher).declare_winner(
        db, phase_id=payload.phaseId, candidature_id=payload.candidatureId
    )

    AuditService().write(
        db,
        action=AuditAction.WINNER_DECLARED,
        actor_user_id=principal.user_id,
        program_id=phase.program_id,
        request_id=getattr(request.state, "request_id", None),
        details={"phase_id": phase.id, "candidature_id": payload.candidatureId},
    )
    return phase_to_schema(phase)
