# app/services/phase_tracker.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.db.unit_of_work import unit_of_work
from app.models.candidature import Candidature, CandidatureMember
from app.models.candidature_phase import CandidaturePhase
from app.models.enums import CandidatureKind, EntityKind, MembershipOrigin, NotificationType
from app.models.phase import Phase
from app.models.submission import Form, Submission
from app.models.user import StartupProfile
from app.services.candidature_registry import ensure_in_pool
from app.services.lookups import (
    Recipient,
    get_candidature,
    get_submission,
    lock_candidature,
    lock_program,
    member_recipients_by_candidature,
)
from app.services.notification_dispatcher import (
    NotificationDispatcher,
    NotificationRequest,
    get_notification_dispatcher,
)

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AdvanceResult:
    name: str
    entity_kind: EntityKind
    entity_id: int
    previous_phase: Optional[str]
    new_phase: str
    candidature_id: int


class PhaseTracker:
    """
    Reads and moves the phase position of candidatures.

    Public methods:
    - get_current_phase(db, candidature_id) -> Optional[Phase]
    - history(db, candidature_id) -> List[(Phase, passed_at)] (ascending)
    - is_last_phase(db, phase_id) -> bool
    - advance(db, candidature_id, phase_id) -> CandidaturePhase
    - advance_entity(db, entity_kind, entity_id, target_phase_id, program_id, fallback_name) -> AdvanceResult
    """

    def __init__(self, dispatcher: Optional[NotificationDispatcher] = None) -> None:
        self.dispatcher = dispatcher or get_notification_dispatcher()

    # ─────────────────────────────────────────────
    # READS
    # ─────────────────────────────────────────────

    def get_current_phase(self, db: Session, *, candidature_id: int) -> Optional[Phase]:
        """
        Phase of the most recent history row.
        None if the candidature never advanced.
        """
        return db.execute(
            select(Phase)
            .join(CandidaturePhase, CandidaturePhase.phase_id == Phase.id)
            .where(CandidaturePhase.candidature_id == candidature_id)
            .order_by(CandidaturePhase.passed_at.desc(), CandidaturePhase.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def history(self, db: Session, *, candidature_id: int) -> List[Tuple[Phase, datetime]]:
        get_candidature(db, candidature_id)
        rows = db.execute(
            select(Phase, CandidaturePhase.passed_at)
            .join(CandidaturePhase, CandidaturePhase.phase_id == Phase.id)
            .where(CandidaturePhase.candidature_id == candidature_id)
            .order_by(CandidaturePhase.passed_at.asc(), CandidaturePhase.id.asc())
        ).all()
        return [(phase, passed_at) for phase, passed_at in rows]

    def is_last_phase(self, db: Session, *, phase_id: int) -> bool:
        """
        True when the phase ends on the latest end date of its program.
        Phases tied on that date are all last. Unknown phase -> False.
        """
        phase = db.get(Phase, phase_id)
        if not phase:
            return False
        max_end = db.execute(
            select(func.max(Phase.end_date)).where(Phase.program_id == phase.program_id)
        ).scalar_one()
        return phase.end_date == max_end

    # ─────────────────────────────────────────────
    # WRITES
    # ─────────────────────────────────────────────

    def _record_passage(self, db: Session, *, candidature_id: int, phase_id: int) -> CandidaturePhase:
        # upsert: re-entering a phase refreshes passed_at
        row = db.execute(
            select(CandidaturePhase)
            .where(
                CandidaturePhase.candidature_id == candidature_id,
                CandidaturePhase.phase_id == phase_id,
            )
            .with_for_update()
        ).scalar_one_or_none()

        now = _now()
        if row:
            row.passed_at = now
        else:
            row = CandidaturePhase(candidature_id=candidature_id, phase_id=phase_id, passed_at=now)
            db.add(row)
        db.flush()
        return row

    def _phase_in_program(self, db: Session, *, phase_id: int, program_id: int) -> Phase:
        phase = db.execute(
            select(Phase).where(Phase.id == phase_id, Phase.program_id == program_id)
        ).scalar_one_or_none()
        if not phase:
            raise NotFoundError("Phase", phase_id)
        return phase

    def advance(self, db: Session, *, candidature_id: int, phase_id: int) -> CandidaturePhase:
        """
        Move a candidature into a phase of its own program.
        Ordering is not enforced: any phase of the program may be targeted.
        """
        with unit_of_work(db, conflict_message="Concurrent advance on the same candidature."):
            cand = lock_candidature(db, candidature_id)
            self._phase_in_program(db, phase_id=phase_id, program_id=cand.program_id)
            row = self._record_passage(db, candidature_id=cand.id, phase_id=phase_id)

        logger.info("candidature advanced", extra={"candidature_id": candidature_id, "phase_id": phase_id})
        return row

    def _startup_name(self, db: Session, sub: Submission, fallback_name: Optional[str]) -> str:
        company = db.execute(
            select(StartupProfile.company_name).where(StartupProfile.user_id == sub.user_id)
        ).scalar_one_or_none()
        if company and company.strip():
            return company.strip()
        if fallback_name and fallback_name.strip():
            return fallback_name.strip()
        return f"Startup {sub.id}"

    def _spin_off(
        self,
        db: Session,
        *,
        sub: Submission,
        program_id: int,
        origin: MembershipOrigin,
        fallback_name: Optional[str],
    ) -> Candidature:
        name = self._startup_name(db, sub, fallback_name)
        now = _now()
        cand = Candidature(
            name=name,
            description=f"Individual candidature of {name}",
            program_id=program_id,
            kind=CandidatureKind.INDIVIDUAL.value,
            created_at=now,
        )
        db.add(cand)
        db.flush()
        db.add(
            CandidatureMember(
                candidature_id=cand.id,
                submission_id=sub.id,
                origin=origin.value,
                created_at=now,
            )
        )
        ensure_in_pool(db, program_id=program_id, submission_id=sub.id)
        db.flush()
        return cand

    def _resolve_startup_candidature(
        self,
        db: Session,
        *,
        sub: Submission,
        program_id: int,
        fallback_name: Optional[str],
    ) -> Candidature:
        """
        Candidature that carries a startup's individual track.

        - no candidature yet: enrol it in a new individual one
        - alone in its candidature: that candidature
        - part of a team: a forked individual candidature, reused on later advances
        """
        primary = db.execute(
            select(CandidatureMember)
            .where(
                CandidatureMember.submission_id == sub.id,
                CandidatureMember.origin != MembershipOrigin.FORK.value,
            )
            .order_by(CandidatureMember.id.asc())
            .limit(1)
        ).scalar_one_or_none()

        if primary is None:
            return self._spin_off(
                db, sub=sub, program_id=program_id,
                origin=MembershipOrigin.INDIVIDUAL, fallback_name=fallback_name,
            )

        cand = lock_candidature(db, primary.candidature_id)
        size = db.execute(
            select(func.count(CandidatureMember.id)).where(CandidatureMember.candidature_id == cand.id)
        ).scalar_one()
        if size <= 1:
            return cand

        fork = db.execute(
            select(Candidature)
            .join(CandidatureMember, CandidatureMember.candidature_id == Candidature.id)
            .where(
                CandidatureMember.submission_id == sub.id,
                CandidatureMember.origin == MembershipOrigin.FORK.value,
                Candidature.program_id == program_id,
            )
            .order_by(Candidature.id.asc())
            .limit(1)
        ).scalar_one_or_none()
        # the fork is the startup's parallel individual track, reused on every later advance
        if fork:
            return fork

        return self._spin_off(
            db, sub=sub, program_id=program_id,
            origin=MembershipOrigin.FORK, fallback_name=fallback_name,
        )

    def advance_entity(
        self,
        db: Session,
        *,
        entity_kind: EntityKind,
        entity_id: int,
        target_phase_id: int,
        program_id: int,
        fallback_name: Optional[str] = None,
    ) -> AdvanceResult:
        """
        Advance a team (by candidature id) or a startup (by submission id).

        A startup without a candidature is enrolled individually; a startup
        inside a team gets its own forked candidature and the team stays
        where it is.
        """
        with unit_of_work(db, conflict_message="Concurrent advance on the same candidature."):
            program = lock_program(db, program_id)
            phase = self._phase_in_program(db, phase_id=target_phase_id, program_id=program_id)

            recipients: List[Recipient]
            if entity_kind == EntityKind.TEAM:
                cand = lock_candidature(db, entity_id)
                if cand.program_id != program_id:
                    raise NotFoundError("Phase", target_phase_id)
                recipients = member_recipients_by_candidature(db, [cand.id])[cand.id]
            else:
                sub = get_submission(db, entity_id)
                form_program_id = db.execute(
                    select(Form.program_id).where(Form.id == sub.form_id)
                ).scalar_one_or_none()
                if form_program_id != program_id:
                    raise NotFoundError("Submission", entity_id)
                cand = self._resolve_startup_candidature(
                    db, sub=sub, program_id=program_id, fallback_name=fallback_name
                )
                recipients = [(sub.user_id, sub.role)]

            previous = self.get_current_phase(db, candidature_id=cand.id)
            self._record_passage(db, candidature_id=cand.id, phase_id=phase.id)

            result = AdvanceResult(
                name=cand.name,
                entity_kind=entity_kind,
                entity_id=entity_id,
                previous_phase=previous.name if previous else None,
                new_phase=phase.name,
                candidature_id=cand.id,
            )
            if cand.kind == CandidatureKind.TEAM.value:
                message = (
                    f"Your team '{cand.name}' has advanced to the phase '{phase.name}' "
                    f"of the program '{program.name}'."
                )
            else:
                message = (
                    f"Your individual startup '{cand.name}' has advanced to the phase '{phase.name}' "
                    f"of the program '{program.name}'."
                )
            requests = [
                NotificationRequest(
                    user_id=user_id,
                    user_role=role,
                    type=NotificationType.PHASE_ADVANCEMENT,
                    title="Phase advancement",
                    message=message,
                    related_id=phase.id,
                )
                for user_id, role in recipients
            ]

        logger.info(
            "entity advanced",
            extra={
                "entity_kind": entity_kind.value,
                "entity_id": entity_id,
                "candidature_id": result.candidature_id,
                "phase_id": target_phase_id,
            },
        )
        self.dispatcher.dispatch(db, requests)
        return result
