# app/services/phase_score_service.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ForbiddenError, InvalidError, NotFoundError
from app.db.unit_of_work import unit_of_work
from app.models.phase_final_score import PhaseFinalScore
from app.services.lookups import get_phase, is_mentor_attached, lock_candidature

logger = logging.getLogger(__name__)


def _now():
    return datetime.now(timezone.utc)


class PhaseScoreService:
    """One final score per (phase, candidature), set once by an attached mentor."""

    def submit_final_score(
        self,
        db: Session,
        *,
        phase_id: int,
        candidature_id: int,
        mentor_id: int,
        score: Any,
    ) -> PhaseFinalScore:
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise InvalidError("Score must be a number.", {"score": score})

        with unit_of_work(db, conflict_message="A final score already exists for this phase."):
            cand = lock_candidature(db, candidature_id)
            phase = get_phase(db, phase_id)
            if phase.program_id != cand.program_id:
                raise NotFoundError("Phase", phase_id)

            if not is_mentor_attached(db, program_id=cand.program_id, mentor_id=mentor_id):
                raise ForbiddenError(
                    "Mentor is not attached to this program.",
                    {"program_id": cand.program_id, "mentor_id": mentor_id},
                )

            existing = db.execute(
                select(PhaseFinalScore.id).where(
                    PhaseFinalScore.phase_id == phase_id,
                    PhaseFinalScore.candidature_id == candidature_id,
                )
            ).first()
            if existing:
                raise ConflictError(
                    "A final score already exists for this phase.",
                    {"phase_id": phase_id, "candidature_id": candidature_id},
                )

            row = PhaseFinalScore(
                phase_id=phase_id,
                candidature_id=candidature_id,
                mentor_id=mentor_id,
                score=float(score),
                created_at=_now(),
            )
            db.add(row)
            db.flush()

        logger.info(
            "final score recorded",
            extra={"phase_id": phase_id, "candidature_id": candidature_id, "mentor_id": mentor_id},
        )
        return row

    def get_final_score(self, db: Session, *, phase_id: int, candidature_id: int) -> PhaseFinalScore:
        row = db.execute(
            select(PhaseFinalScore).where(
                PhaseFinalScore.phase_id == phase_id,
                PhaseFinalScore.candidature_id == candidature_id,
            )
        ).scalar_one_or_none()
        if not row:
            raise NotFoundError("Final score", f"{phase_id}/{candidature_id}")
        return row
