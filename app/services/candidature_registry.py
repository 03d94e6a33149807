# app/services/candidature_registry.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidError, NotFoundError
from app.db.unit_of_work import unit_of_work
from app.models.candidature import Candidature, CandidatureMember
from app.models.candidature_phase import CandidaturePhase
from app.models.enums import CandidatureKind, MembershipOrigin, NotificationType
from app.models.phase import Phase
from app.models.phase_final_score import PhaseFinalScore
from app.models.response import Response
from app.models.submission import Form, ProgramSubmission, Submission
from app.services.lookups import get_candidature, lock_candidature, lock_program
from app.services.notification_dispatcher import (
    NotificationDispatcher,
    NotificationRequest,
    get_notification_dispatcher,
)

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


def ensure_in_pool(db: Session, *, program_id: int, submission_id: int) -> None:
    """Add a submission to the program's pool unless it is already there."""
    exists = db.execute(
        select(ProgramSubmission.id).where(
            ProgramSubmission.program_id == program_id,
            ProgramSubmission.submission_id == submission_id,
        )
    ).first()
    if not exists:
        db.add(
            ProgramSubmission(
                program_id=program_id,
                submission_id=submission_id,
                added_at=_now(),
            )
        )


class CandidatureRegistry:
    """
    Team / individual candidatures and their submission membership.

    Public methods:
    - create_candidature(db, name, description, program_id, submission_ids) -> Candidature
    - get_members(db, candidature_id) -> List[int]
    - delete_candidature(db, candidature_id) -> None
    """

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None) -> None:
        self.dispatcher = dispatcher or get_notification_dispatcher()

    def create_candidature(
        self,
        db: Session,
        *,
        name: str,
        description: Optional[str],
        program_id: int,
        submission_ids: Sequence[int],
    ) -> Candidature:
        # keep caller order, drop repeats
        ids = list(dict.fromkeys(submission_ids))
        if not ids:
            raise InvalidError("At least one submission is required to form a candidature.")
        if not name or not name.strip():
            raise InvalidError("Candidature name is required.")

        with unit_of_work(db, conflict_message="A submission already belongs to a candidature."):
            lock_program(db, program_id)

            rows = db.execute(
                select(Submission, Form.program_id)
                .join(Form, Form.id == Submission.form_id)
                .where(Submission.id.in_(ids))
            ).all()
            found = {sub.id: (sub, form_program_id) for sub, form_program_id in rows}

            for sid in ids:
                if sid not in found or found[sid][1] != program_id:
                    raise NotFoundError("Submission", sid)

            taken = db.execute(
                select(CandidatureMember.submission_id)
                .where(CandidatureMember.submission_id.in_(ids))
            ).scalars().all()
            if taken:
                raise ConflictError(
                    "A submission already belongs to a candidature.",
                    {"submission_ids": sorted(set(taken))},
                )

            now = _now()
            cand = Candidature(
                name=name.strip(),
                description=description,
                program_id=program_id,
                kind=CandidatureKind.TEAM.value,
                created_at=now,
            )
            db.add(cand)
            db.flush()

            for sid in ids:
                ensure_in_pool(db, program_id=program_id, submission_id=sid)
                db.add(
                    CandidatureMember(
                        candidature_id=cand.id,
                        submission_id=sid,
                        origin=MembershipOrigin.FORMATION.value,
                        created_at=now,
                    )
                )
            db.flush()

            requests = [
                NotificationRequest(
                    user_id=found[sid][0].user_id,
                    user_role=found[sid][0].role,
                    type=NotificationType.TEAM_CREATION,
                    title="Team created",
                    message=f"You have been added to the team '{cand.name}'.",
                    related_id=cand.id,
                )
                for sid in ids
            ]

        logger.info(
            "candidature created",
            extra={"candidature_id": cand.id, "program_id": program_id, "members": len(ids)},
        )
        self.dispatcher.dispatch(db, requests)
        return cand

    def get_members(self, db: Session, *, candidature_id: int) -> List[int]:
        get_candidature(db, candidature_id)
        return list(
            db.execute(
                select(CandidatureMember.submission_id)
                .where(CandidatureMember.candidature_id == candidature_id)
                .order_by(CandidatureMember.id.asc())
            ).scalars().all()
        )

    def delete_candidature(self, db: Session, *, candidature_id: int) -> None:
        """
        Remove a candidature and everything hanging off it.

        Submissions that joined through formation or individual enrolment
        are deleted with it, and so are the forked candidatures those
        submissions carried. A forked candidature deleted on its own only
        drops its fork link; the submission stays with its team.
        """
        with unit_of_work(db):
            cand = lock_candidature(db, candidature_id)

            links = db.execute(
                select(CandidatureMember, Submission)
                .join(Submission, Submission.id == CandidatureMember.submission_id)
                .where(CandidatureMember.candidature_id == candidature_id)
                .order_by(CandidatureMember.id.asc())
            ).all()

            # prepared before the rows disappear
            requests = [
                NotificationRequest(
                    user_id=sub.user_id,
                    user_role=sub.role,
                    type=NotificationType.CANDIDATURE_REMOVED,
                    title="Candidature removed",
                    message=f"The candidature '{cand.name}' has been removed from the program.",
                    related_id=cand.program_id,
                )
                for _, sub in links
            ]
            owned_ids = [
                sub.id for member, sub in links if member.origin != MembershipOrigin.FORK.value
            ]

            # forks hold a single submission, so they go with it
            fork_ids: List[int] = []
            if owned_ids:
                fork_ids = list(
                    db.execute(
                        select(CandidatureMember.candidature_id)
                        .where(
                            CandidatureMember.submission_id.in_(owned_ids),
                            CandidatureMember.origin == MembershipOrigin.FORK.value,
                            CandidatureMember.candidature_id != candidature_id,
                        )
                        .distinct()
                    ).scalars().all()
                )
            doomed = [candidature_id, *fork_ids]

            db.execute(
                update(Phase)
                .where(Phase.winner_candidature_id.in_(doomed))
                .values(winner_candidature_id=None)
            )
            db.execute(delete(Response).where(Response.candidature_id.in_(doomed)))
            db.execute(delete(PhaseFinalScore).where(PhaseFinalScore.candidature_id.in_(doomed)))
            db.execute(delete(CandidaturePhase).where(CandidaturePhase.candidature_id.in_(doomed)))

            member_filter = CandidatureMember.candidature_id.in_(doomed)
            if owned_ids:
                member_filter = or_(member_filter, CandidatureMember.submission_id.in_(owned_ids))
            db.execute(delete(CandidatureMember).where(member_filter))

            if owned_ids:
                db.execute(delete(ProgramSubmission).where(ProgramSubmission.submission_id.in_(owned_ids)))
                db.execute(delete(Submission).where(Submission.id.in_(owned_ids)))

            db.execute(delete(Candidature).where(Candidature.id.in_(doomed)))

        logger.info(
            "candidature deleted",
            extra={
                "candidature_id": candidature_id,
                "submissions_removed": len(owned_ids),
                "forks_removed": len(fork_ids),
            },
        )
        self.dispatcher.dispatch(db, requests)
