# app/services/winner_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, InvalidError, NotFoundError
from app.db.unit_of_work import unit_of_work
from app.models.candidature import Candidature
from app.models.enums import NotificationType
from app.models.phase import Phase
from app.models.program import Program
from app.models.submission import Submission
from app.services.lookups import (
    dedupe,
    get_candidature,
    lock_phase,
    member_recipients_by_candidature,
    member_submissions,
    mentor_recipients,
)
from app.services.notification_dispatcher import (
    NotificationDispatcher,
    NotificationRequest,
    get_notification_dispatcher,
)
from app.services.phase_tracker import PhaseTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProgramWinner:
    phase: Phase
    candidature: Candidature
    members: List[Submission]


class WinnerDeclarationService:
    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None) -> None:
        self.dispatcher = dispatcher or get_notification_dispatcher()
        self.tracker = PhaseTracker(dispatcher=self.dispatcher)

    def declare_winner(self, db: Session, *, phase_id: int, candidature_id: int) -> Phase:
        """
        Bind the winner of a program to its last phase.

        Checks, in order: phase and candidature exist, the phase is the
        program's last, both belong to the same program. A previous winner
        is replaced.
        """
        with unit_of_work(db):
            phase = lock_phase(db, phase_id)
            cand = get_candidature(db, candidature_id)

            if not self.tracker.is_last_phase(db, phase_id=phase_id):
                raise InvalidError(
                    "A winner can only be declared on the last phase of the program.",
                    {"phase_id": phase_id},
                )
            if phase.program_id != cand.program_id:
                raise ConflictError(
                    "Phase and candidature belong to different programs.",
                    {"phase_program_id": phase.program_id, "candidature_program_id": cand.program_id},
                )

            phase.winner_candidature_id = cand.id
            db.flush()

            program_name = db.execute(
                select(Program.name).where(Program.id == phase.program_id)
            ).scalar_one()
            cand_ids = db.execute(
                select(Candidature.id).where(Candidature.program_id == phase.program_id).order_by(Candidature.id.asc())
            ).scalars().all()
            members = member_recipients_by_candidature(db, cand_ids)
            winners = members.get(cand.id, [])
            is_team = len(winners) > 1

            if is_team:
                win_msg = f"Congratulations! Your team '{cand.name}' has won the program '{program_name}'."
                info_msg = f"The team '{cand.name}' has won the program '{program_name}'."
            else:
                win_msg = f"Congratulations! You have won the program '{program_name}'."
                info_msg = f"'{cand.name}' has won the program '{program_name}'."

            requests = [
                NotificationRequest(
                    user_id=user_id, user_role=role,
                    type=NotificationType.WINNER_ANNOUNCEMENT,
                    title="You won!", message=win_msg, related_id=phase.program_id,
                )
                for user_id, role in dedupe(winners)
            ]
            notified = set(dedupe(winners))

            others = [r for cid, rs in members.items() if cid != cand.id for r in rs]
            for user_id, role in dedupe(others + mentor_recipients(db, phase.program_id)):
                if (user_id, role) in notified:
                    continue
                requests.append(
                    NotificationRequest(
                        user_id=user_id, user_role=role,
                        type=NotificationType.WINNER_ANNOUNCEMENT,
                        title="Winner announced", message=info_msg, related_id=phase.program_id,
                    )
                )

        logger.info(
            "winner declared",
            extra={"phase_id": phase_id, "candidature_id": candidature_id, "team": is_team},
        )
        self.dispatcher.dispatch(db, requests)
        return phase

    def get_program_winner(self, db: Session, *, program_id: int) -> ProgramWinner:
        if not db.get(Program, program_id):
            raise NotFoundError("Program", program_id)

        phase = db.execute(
            select(Phase)
            .where(Phase.program_id == program_id, Phase.winner_candidature_id.is_not(None))
            .order_by(Phase.end_date.desc(), Phase.id.desc())
            .limit(1)
        ).scalar_one_or_none()
        if not phase:
            raise NotFoundError("Winner", program_id)

        cand = get_candidature(db, phase.winner_candidature_id)
        return ProgramWinner(phase=phase, candidature=cand, members=member_submissions(db, cand.id))
