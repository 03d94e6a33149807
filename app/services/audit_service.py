from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog


class AuditAction:
    # Candidatures
    CANDIDATURE_CREATED = "CANDIDATURE_CREATED"
    CANDIDATURE_DELETED = "CANDIDATURE_DELETED"

    # Phases
    ENTITY_ADVANCED = "ENTITY_ADVANCED"
    WINNER_DECLARED = "WINNER_DECLARED"

    # Programs
    PROGRAM_CREATED = "PROGRAM_CREATED"
    PROGRAM_DELETED = "PROGRAM_DELETED"
    PROGRAM_STATUS_CHANGED = "PROGRAM_STATUS_CHANGED"
    PHASE_ADDED = "PHASE_ADDED"
    MENTOR_ATTACHED = "MENTOR_ATTACHED"

    # Evaluation
    CRITERION_CREATED = "CRITERION_CREATED"
    CRITERION_DELETED = "CRITERION_DELETED"
    TEAM_RESPONSES_SUBMITTED = "TEAM_RESPONSES_SUBMITTED"
    MENTOR_RESPONSES_SUBMITTED = "MENTOR_RESPONSES_SUBMITTED"
    RESPONSES_VALIDATED = "RESPONSES_VALIDATED"
    FINAL_SCORE_SUBMITTED = "FINAL_SCORE_SUBMITTED"


class AuditService:
    def write(
        self,
        db: Session,
        *,
        action: str,
        actor_user_id: Optional[int],
        program_id: Optional[int],
        request_id: Optional[str],
        details: Dict[str, Any],
    ) -> None:
        row = AuditLog(
            action=action,
            actor_user_id=actor_user_id,
            program_id=program_id,
            request_id=request_id,
            details_json=details,
            created_at=datetime.now(timezone.utc),
        )
        db.add(row)
        db.commit()
