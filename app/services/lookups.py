# app/services/lookups.py
"""
Row loaders and recipient queries shared by the workflow services.

Loaders raise NotFoundError; the `lock_*` variants take a row lock
(SELECT ... FOR UPDATE) that is held until the surrounding unit of work
commits.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.candidature import Candidature, CandidatureMember
from app.models.enums import ActorRole
from app.models.phase import Phase
from app.models.program import Program, ProgramMentor
from app.models.submission import Submission
from app.models.user import User

# (user_id, user_role) of a notification recipient
Recipient = Tuple[int, str]


def lock_program(db: Session, program_id: int) -> Program:
    program = db.execute(
        select(Program).where(Program.id == program_id).with_for_update()
    ).scalar_one_or_none()
    if not program:
        raise NotFoundError("Program", program_id)
    return program


def lock_candidature(db: Session, candidature_id: int) -> Candidature:
    cand = db.execute(
        select(Candidature).where(Candidature.id == candidature_id).with_for_update()
    ).scalar_one_or_none()
    if not cand:
        raise NotFoundError("Candidature", candidature_id)
    return cand


def lock_phase(db: Session, phase_id: int) -> Phase:
    phase = db.execute(
        select(Phase).where(Phase.id == phase_id).with_for_update()
    ).scalar_one_or_none()
    if not phase:
        raise NotFoundError("Phase", phase_id)
    return phase


def get_candidature(db: Session, candidature_id: int) -> Candidature:
    cand = db.get(Candidature, candidature_id)
    if not cand:
        raise NotFoundError("Candidature", candidature_id)
    return cand


def get_phase(db: Session, phase_id: int) -> Phase:
    phase = db.get(Phase, phase_id)
    if not phase:
        raise NotFoundError("Phase", phase_id)
    return phase


def get_submission(db: Session, submission_id: int) -> Submission:
    sub = db.get(Submission, submission_id)
    if not sub:
        raise NotFoundError("Submission", submission_id)
    return sub


def get_mentor(db: Session, mentor_id: int) -> User:
    user = db.get(User, mentor_id)
    if not user or user.role != ActorRole.MENTOR.value:
        raise NotFoundError("Mentor", mentor_id)
    return user


def is_mentor_attached(db: Session, *, program_id: int, mentor_id: int) -> bool:
    row = db.execute(
        select(ProgramMentor.id).where(
            ProgramMentor.program_id == program_id,
            ProgramMentor.mentor_id == mentor_id,
        )
    ).first()
    return row is not None


def member_submissions(db: Session, candidature_id: int) -> List[Submission]:
    """Submissions linked to a candidature, in link order."""
    return list(
        db.execute(
            select(Submission)
            .join(CandidatureMember, CandidatureMember.submission_id == Submission.id)
            .where(CandidatureMember.candidature_id == candidature_id)
            .order_by(CandidatureMember.id.asc())
        ).scalars().all()
    )


def member_recipients_by_candidature(
    db: Session, candidature_ids: Iterable[int]
) -> Dict[int, List[Recipient]]:
    ids = list(candidature_ids)
    out: Dict[int, List[Recipient]] = {cid: [] for cid in ids}
    if not ids:
        return out

    rows = db.execute(
        select(CandidatureMember.candidature_id, Submission.user_id, Submission.role)
        .join(Submission, Submission.id == CandidatureMember.submission_id)
        .where(CandidatureMember.candidature_id.in_(ids))
        .order_by(CandidatureMember.id.asc())
    ).all()
    for cid, user_id, role in rows:
        out[cid].append((user_id, role))
    return out


def mentor_recipients(db: Session, program_id: int) -> List[Recipient]:
    mentor_ids = db.execute(
        select(ProgramMentor.mentor_id)
        .where(ProgramMentor.program_id == program_id)
        .order_by(ProgramMentor.id.asc())
    ).scalars().all()
    return [(mid, ActorRole.MENTOR.value) for mid in mentor_ids]


def dedupe(recipients: Iterable[Recipient]) -> List[Recipient]:
    seen = set()
    out: List[Recipient] = []
    for r in recipients:
        if r in seen:
            continue
        seen.add(r)
        out.append(r)
    return out
