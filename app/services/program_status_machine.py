# app/services/program_status_machine.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import InvalidTransitionError
from app.core.program_status_graph import rejection_reason
from app.db.unit_of_work import unit_of_work
from app.models.candidature import Candidature, CandidatureMember
from app.models.enums import ActorRole, NotificationType, ProgramStatus
from app.models.program import Program
from app.models.submission import ProgramSubmission, Submission
from app.services.lookups import (
    Recipient,
    dedupe,
    lock_program,
    member_recipients_by_candidature,
    mentor_recipients,
)
from app.services.notification_dispatcher import (
    NotificationDispatcher,
    NotificationRequest,
    get_notification_dispatcher,
)

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class ProgramStatusMachine:
    """
    Draft -> Active -> Completed lifecycle of a program.

    Allowed moves live in app.core.program_status_graph. Entering
    Completed notifies everyone involved in the program once the new
    status is committed.
    """

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None) -> None:
        self.dispatcher = dispatcher or get_notification_dispatcher()

    def _completion_recipients(self, db: Session, program: Program) -> List[Recipient]:
        recipients: List[Recipient] = list(mentor_recipients(db, program.id))

        # pool startups that never joined a candidature
        lone_startups = db.execute(
            select(Submission.user_id, Submission.role)
            .join(ProgramSubmission, ProgramSubmission.submission_id == Submission.id)
            .outerjoin(CandidatureMember, CandidatureMember.submission_id == Submission.id)
            .where(
                ProgramSubmission.program_id == program.id,
                Submission.role == ActorRole.STARTUP.value,
                CandidatureMember.id.is_(None),
            )
            .order_by(Submission.id.asc())
        ).all()
        recipients.extend((user_id, role) for user_id, role in lone_startups)

        cand_ids = db.execute(
            select(Candidature.id).where(Candidature.program_id == program.id).order_by(Candidature.id.asc())
        ).scalars().all()
        for members in member_recipients_by_candidature(db, cand_ids).values():
            recipients.extend(members)

        return dedupe(recipients)

    def update_status(
        self,
        db: Session,
        *,
        program_id: int,
        status: ProgramStatus,
        is_template: Optional[bool] = None,
    ) -> Program:
        with unit_of_work(db):
            program = lock_program(db, program_id)
            current = ProgramStatus(program.status)

            reason = rejection_reason(current, status)
            if reason:
                raise InvalidTransitionError(current.value, status.value, reason)

            program.status = status.value
            if is_template is not None:
                program.is_template = is_template
            program.updated_at = _now()

            requests: List[NotificationRequest] = []
            if status == ProgramStatus.COMPLETED and current != ProgramStatus.COMPLETED:
                requests = [
                    NotificationRequest(
                        user_id=user_id,
                        user_role=role,
                        type=NotificationType.PROGRAM_COMPLETED,
                        title="Program completed",
                        message=f"The program '{program.name}' is now completed.",
                        related_id=program.id,
                    )
                    for user_id, role in self._completion_recipients(db, program)
                ]
            db.flush()

        logger.info(
            "program status updated",
            extra={"program_id": program_id, "from": current.value, "to": status.value},
        )
        self.dispatcher.dispatch(db, requests)
        return program
