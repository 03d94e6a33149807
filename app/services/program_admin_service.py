# app/services/program_admin_service.py
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from app.core.errors import InvalidError
from app.db.unit_of_work import unit_of_work
from app.models.candidature import Candidature, CandidatureMember
from app.models.candidature_phase import CandidaturePhase
from app.models.criterion import Criterion
from app.models.enums import NotificationType, ProgramStatus, ProgramType
from app.models.phase import Phase
from app.models.phase_final_score import PhaseFinalScore
from app.models.program import Program, ProgramMentor
from app.models.response import Response
from app.models.submission import Form, ProgramSubmission, Submission
from app.services.lookups import get_mentor, lock_program
from app.services.notification_dispatcher import (
    NotificationDispatcher,
    NotificationRequest,
    get_notification_dispatcher,
)

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class ProgramAdminService:
    """
    Program setup and teardown.

    Public methods:
    - create_program(db, ...) -> Program
    - add_phase(db, program_id, ...) -> Phase
    - attach_mentor(db, program_id, mentor_id) -> ProgramMentor (idempotent)
    - delete_program(db, program_id) -> None (cascades)
    """

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None) -> None:
        self.dispatcher = dispatcher or get_notification_dispatcher()

    def create_program(
        self,
        db: Session,
        *,
        name: str,
        description: Optional[str],
        type: str,
        start_date: date,
        end_date: date,
        is_template: bool = False,
    ) -> Program:
        try:
            ptype = ProgramType(type)
        except ValueError:
            raise InvalidError("Invalid program type.", {"type": type, "allowed": [t.value for t in ProgramType]})
        if not name or not name.strip():
            raise InvalidError("Program name is required.")
        if start_date > end_date:
            raise InvalidError("Program start date must not be after its end date.")

        now = _now()
        with unit_of_work(db):
            program = Program(
                name=name.strip(),
                description=description,
                type=ptype.value,
                start_date=start_date,
                end_date=end_date,
                status=ProgramStatus.DRAFT.value,
                is_template=is_template,
                created_at=now,
                updated_at=now,
            )
            db.add(program)
            db.flush()

        logger.info("program created", extra={"program_id": program.id, "type": ptype.value})
        return program

    def add_phase(
        self,
        db: Session,
        *,
        program_id: int,
        name: str,
        description: Optional[str],
        start_date: date,
        end_date: date,
    ) -> Phase:
        if not name or not name.strip():
            raise InvalidError("Phase name is required.")
        if start_date >= end_date:
            raise InvalidError("Phase start date must be before its end date.")

        with unit_of_work(db):
            lock_program(db, program_id)
            phase = Phase(
                program_id=program_id,
                name=name.strip(),
                description=description,
                start_date=start_date,
                end_date=end_date,
            )
            db.add(phase)
            db.flush()

        logger.info("phase added", extra={"program_id": program_id, "phase_id": phase.id})
        return phase

    def attach_mentor(self, db: Session, *, program_id: int, mentor_id: int) -> ProgramMentor:
        with unit_of_work(db, conflict_message="Mentor is already attached to this program."):
            program = lock_program(db, program_id)
            get_mentor(db, mentor_id)

            link = db.execute(
                select(ProgramMentor).where(
                    ProgramMentor.program_id == program_id,
                    ProgramMentor.mentor_id == mentor_id,
                )
            ).scalar_one_or_none()

            requests = []
            if link is None:
                link = ProgramMentor(program_id=program_id, mentor_id=mentor_id, added_at=_now())
                db.add(link)
                db.flush()
                requests.append(
                    NotificationRequest(
                        user_id=mentor_id,
                        user_role="mentor",
                        type=NotificationType.PROGRAM_INVITATION,
                        title="Program invitation",
                        message=f"You have been added as a mentor to the program '{program.name}'.",
                        related_id=program_id,
                    )
                )

        if requests:
            logger.info("mentor attached", extra={"program_id": program_id, "mentor_id": mentor_id})
        self.dispatcher.dispatch(db, requests)
        return link

    def delete_program(self, db: Session, *, program_id: int) -> None:
        """Delete a program with its phases, criteria, forms, submissions and candidatures."""
        with unit_of_work(db):
            lock_program(db, program_id)

            phase_ids = select(Phase.id).where(Phase.program_id == program_id)
            cand_ids = select(Candidature.id).where(Candidature.program_id == program_id)
            form_ids = select(Form.id).where(Form.program_id == program_id)
            criterion_ids = select(Criterion.id).where(Criterion.phase_id.in_(phase_ids))
            submission_ids = select(Submission.id).where(Submission.form_id.in_(form_ids))

            db.execute(
                update(Phase).where(Phase.program_id == program_id).values(winner_candidature_id=None)
            )
            db.execute(
                delete(Response).where(
                    or_(Response.candidature_id.in_(cand_ids), Response.criterion_id.in_(criterion_ids))
                )
            )
            db.execute(
                delete(PhaseFinalScore).where(
                    or_(PhaseFinalScore.candidature_id.in_(cand_ids), PhaseFinalScore.phase_id.in_(phase_ids))
                )
            )
            db.execute(
                delete(CandidaturePhase).where(
                    or_(CandidaturePhase.candidature_id.in_(cand_ids), CandidaturePhase.phase_id.in_(phase_ids))
                )
            )
            db.execute(
                delete(CandidatureMember).where(
                    or_(
                        CandidatureMember.candidature_id.in_(cand_ids),
                        CandidatureMember.submission_id.in_(submission_ids),
                    )
                )
            )
            db.execute(
                delete(ProgramSubmission).where(
                    or_(
                        ProgramSubmission.program_id == program_id,
                        ProgramSubmission.submission_id.in_(submission_ids),
                    )
                )
            )
            db.execute(delete(Candidature).where(Candidature.program_id == program_id))
            db.execute(delete(Criterion).where(Criterion.phase_id.in_(phase_ids)))
            db.execute(delete(Phase).where(Phase.program_id == program_id))
            db.execute(delete(Submission).where(Submission.form_id.in_(form_ids)))
            db.execute(delete(Form).where(Form.program_id == program_id))
            db.execute(delete(ProgramMentor).where(ProgramMentor.program_id == program_id))
            db.execute(delete(Program).where(Program.id == program_id))

        logger.info("program deleted", extra={"program_id": program_id})
