# app/services/criterion_engine.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, ForbiddenError, InvalidError, NotFoundError
from app.db.unit_of_work import unit_of_work
from app.models.criterion import Criterion
from app.models.enums import CriterionType, FillRole
from app.models.response import Response
from app.services.lookups import get_candidature, get_phase, is_mentor_attached, lock_candidature, lock_phase

logger = logging.getLogger(__name__)

_TRUE_WORDS = {"true", "1", "yes", "oui"}
_FALSE_WORDS = {"false", "0", "no", "non"}

MAX_STARS = 5


def _now():
    return datetime.now(timezone.utc)


def normalize_value(criterion_type: CriterionType, value: Any) -> str:
    """
    Coerce a submitted value to the stored text form of its criterion type.

        numeric -> finite number       ("12", "3.5")
        stars   -> integer in 0..5     ("4")
        bool    -> "true" / "false"
        select  -> non-empty text

    Raises InvalidError on anything else.
    """
    if value is None:
        raise InvalidError("A value is required.", {"type": criterion_type.value})

    if criterion_type == CriterionType.NUMERIC:
        if isinstance(value, bool):
            raise InvalidError("Numeric criterion expects a number.", {"value": value})
        try:
            number = float(str(value).strip())
        except ValueError:
            raise InvalidError("Numeric criterion expects a number.", {"value": value})
        if not math.isfinite(number):
            raise InvalidError("Numeric criterion expects a finite number.", {"value": value})
        return str(int(number)) if number.is_integer() else str(number)

    if criterion_type == CriterionType.STARS:
        if isinstance(value, bool):
            raise InvalidError("Star rating expects an integer from 0 to 5.", {"value": value})
        try:
            number = float(str(value).strip())
        except ValueError:
            raise InvalidError("Star rating expects an integer from 0 to 5.", {"value": value})
        if not number.is_integer() or not 0 <= number <= MAX_STARS:
            raise InvalidError("Star rating expects an integer from 0 to 5.", {"value": value})
        return str(int(number))

    if criterion_type == CriterionType.BOOL:
        if isinstance(value, bool):
            return "true" if value else "false"
        word = str(value).strip().lower()
        if word in _TRUE_WORDS:
            return "true"
        if word in _FALSE_WORDS:
            return "false"
        raise InvalidError("Yes/no criterion expects true or false.", {"value": value})

    # select
    text = str(value).strip()
    if not text:
        raise InvalidError("Select criterion expects a non-empty choice.")
    return text


@dataclass(frozen=True)
class CriterionAnswer:
    criterion: Criterion
    response: Optional[Response]


class CriterionEvaluationEngine:
    """
    Evaluation criteria of a phase and the responses recorded against them.

    Response lifecycle (per candidature, criterion):
        absent -> unvalidated (filled by team or mentor) -> validated
    Validation applies to team-filled responses only and happens once.
    """

    # ─────────────────────────────────────────────
    # CRITERIA
    # ─────────────────────────────────────────────

    def create_criterion(
        self,
        db: Session,
        *,
        phase_id: int,
        name: str,
        type: str,
        weight: Any,
        fill_role: str,
        visible_to_mentors: bool = True,
        visible_to_teams: bool = True,
        requires_validation: bool = False,
    ) -> Criterion:
        try:
            ctype = CriterionType(type)
        except ValueError:
            raise InvalidError("Invalid criterion type.", {"type": type, "allowed": [t.value for t in CriterionType]})
        try:
            role = FillRole(fill_role)
        except ValueError:
            raise InvalidError("Invalid fill role.", {"fill_role": fill_role})
        if not name or not name.strip():
            raise InvalidError("Criterion name is required.")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight <= 0:
            raise InvalidError("Criterion weight must be a positive number.", {"weight": weight})

        with unit_of_work(db):
            lock_phase(db, phase_id)
            row = Criterion(
                phase_id=phase_id,
                name=name.strip(),
                type=ctype.value,
                weight=float(weight),
                visible_to_mentors=visible_to_mentors,
                visible_to_teams=visible_to_teams,
                fill_role=role.value,
                requires_validation=requires_validation,
            )
            db.add(row)
            db.flush()

        logger.info("criterion created", extra={"criterion_id": row.id, "phase_id": phase_id})
        return row

    def list_criteria(self, db: Session, *, phase_id: int) -> List[Criterion]:
        get_phase(db, phase_id)
        return list(
            db.execute(
                select(Criterion).where(Criterion.phase_id == phase_id).order_by(Criterion.id.asc())
            ).scalars().all()
        )

    def delete_criterion(self, db: Session, *, phase_id: int, criterion_id: int) -> None:
        with unit_of_work(db):
            crit = db.execute(
                select(Criterion)
                .where(Criterion.id == criterion_id, Criterion.phase_id == phase_id)
                .with_for_update()
            ).scalar_one_or_none()
            if not crit:
                raise NotFoundError("Criterion", criterion_id)
            db.execute(delete(Response).where(Response.criterion_id == criterion_id))
            db.execute(delete(Criterion).where(Criterion.id == criterion_id))

        logger.info("criterion deleted", extra={"criterion_id": criterion_id, "phase_id": phase_id})

    # ─────────────────────────────────────────────
    # RESPONSES
    # ─────────────────────────────────────────────

    def _criterion(self, db: Session, criterion_id: int) -> Criterion:
        crit = db.get(Criterion, criterion_id)
        if not crit:
            raise NotFoundError("Criterion", criterion_id)
        return crit

    def _existing(self, db: Session, *, candidature_id: int, criterion_id: int) -> Optional[Response]:
        return db.execute(
            select(Response)
            .where(
                Response.candidature_id == candidature_id,
                Response.criterion_id == criterion_id,
            )
            .with_for_update()
        ).scalar_one_or_none()

    def _require_attached(self, db: Session, *, program_id: int, mentor_id: int) -> None:
        if not is_mentor_attached(db, program_id=program_id, mentor_id=mentor_id):
            raise ForbiddenError(
                "Mentor is not attached to this program.",
                {"program_id": program_id, "mentor_id": mentor_id},
            )

    def _insert_responses(
        self,
        db: Session,
        *,
        candidature_id: int,
        answers: Sequence[Tuple[int, Any]],
        fill_role: FillRole,
        mentor_id: Optional[int],
    ) -> List[Response]:
        if not answers:
            raise InvalidError("At least one response is required.")

        created: List[Response] = []
        seen = set()
        now = _now()

        for criterion_id, value in answers:
            crit = self._criterion(db, criterion_id)

            if crit.fill_role != fill_role.value:
                raise ForbiddenError(
                    f"Criterion is filled by {crit.fill_role}, not {fill_role.value}.",
                    {"criterion_id": criterion_id},
                )
            if fill_role == FillRole.TEAM and not crit.visible_to_teams:
                raise ForbiddenError("Criterion is not visible to teams.", {"criterion_id": criterion_id})

            if criterion_id in seen or self._existing(db, candidature_id=candidature_id, criterion_id=criterion_id):
                raise ConflictError(
                    "A response already exists for this criterion.",
                    {"candidature_id": candidature_id, "criterion_id": criterion_id},
                )
            seen.add(criterion_id)

            row = Response(
                candidature_id=candidature_id,
                criterion_id=criterion_id,
                value=normalize_value(CriterionType(crit.type), value),
                filled_by_mentor_id=mentor_id,
                validated=False,
                created_at=now,
            )
            db.add(row)
            created.append(row)

        db.flush()
        return created

    def submit_team_responses(
        self,
        db: Session,
        *,
        candidature_id: int,
        answers: Sequence[Tuple[int, Any]],
    ) -> List[Response]:
        """All answers are stored or none are."""
        with unit_of_work(db, conflict_message="A response already exists for this criterion."):
            lock_candidature(db, candidature_id)
            created = self._insert_responses(
                db, candidature_id=candidature_id, answers=answers,
                fill_role=FillRole.TEAM, mentor_id=None,
            )

        logger.info("team responses submitted", extra={"candidature_id": candidature_id, "count": len(created)})
        return created

    def submit_team_response(self, db: Session, *, candidature_id: int, criterion_id: int, value: Any) -> Response:
        return self.submit_team_responses(db, candidature_id=candidature_id, answers=[(criterion_id, value)])[0]

    def submit_mentor_responses(
        self,
        db: Session,
        *,
        candidature_id: int,
        mentor_id: int,
        answers: Sequence[Tuple[int, Any]],
    ) -> List[Response]:
        with unit_of_work(db, conflict_message="A response already exists for this criterion."):
            cand = lock_candidature(db, candidature_id)
            self._require_attached(db, program_id=cand.program_id, mentor_id=mentor_id)
            created = self._insert_responses(
                db, candidature_id=candidature_id, answers=answers,
                fill_role=FillRole.MENTOR, mentor_id=mentor_id,
            )

        logger.info(
            "mentor responses submitted",
            extra={"candidature_id": candidature_id, "mentor_id": mentor_id, "count": len(created)},
        )
        return created

    def submit_mentor_response(
        self, db: Session, *, candidature_id: int, mentor_id: int, criterion_id: int, value: Any
    ) -> Response:
        return self.submit_mentor_responses(
            db, candidature_id=candidature_id, mentor_id=mentor_id, answers=[(criterion_id, value)]
        )[0]

    def validate_or_amend(
        self,
        db: Session,
        *,
        candidature_id: int,
        mentor_id: int,
        amendments: Sequence[Tuple[int, Optional[Any]]],
    ) -> List[Response]:
        """
        Validate team-filled responses, optionally replacing their value.

        Each amendment is (criterion_id, new_value); a None new_value keeps
        the team's answer. A response can be validated once only.
        """
        if not amendments:
            raise InvalidError("At least one response is required.")

        with unit_of_work(db):
            cand = lock_candidature(db, candidature_id)
            self._require_attached(db, program_id=cand.program_id, mentor_id=mentor_id)

            now = _now()
            updated: List[Response] = []
            for criterion_id, new_value in amendments:
                crit = self._criterion(db, criterion_id)
                if crit.fill_role != FillRole.TEAM.value:
                    raise ForbiddenError(
                        "Only team-filled responses can be validated.",
                        {"criterion_id": criterion_id, "fill_role": crit.fill_role},
                    )
                resp = self._existing(db, candidature_id=candidature_id, criterion_id=criterion_id)
                if resp is None or resp.filled_by_mentor_id is not None:
                    raise NotFoundError("Response", criterion_id)
                if resp.validated:
                    raise ForbiddenError(
                        "Response has already been validated.",
                        {"candidature_id": candidature_id, "criterion_id": criterion_id},
                    )

                if new_value is not None:
                    resp.value = normalize_value(CriterionType(crit.type), new_value)
                resp.validated = True
                resp.validated_by_mentor_id = mentor_id
                resp.validated_at = now
                updated.append(resp)

            db.flush()

        logger.info(
            "team responses validated",
            extra={"candidature_id": candidature_id, "mentor_id": mentor_id, "count": len(updated)},
        )
        return updated

    # ─────────────────────────────────────────────
    # READ PROJECTIONS (candidature, phase)
    # ─────────────────────────────────────────────

    def _answers(self, db: Session, candidature_id: int, phase_id: int, *conditions) -> List[CriterionAnswer]:
        get_candidature(db, candidature_id)
        get_phase(db, phase_id)
        rows = db.execute(
            select(Criterion, Response)
            .outerjoin(
                Response,
                and_(Response.criterion_id == Criterion.id, Response.candidature_id == candidature_id),
            )
            .where(Criterion.phase_id == phase_id, *conditions)
            .order_by(Criterion.id.asc())
        ).all()
        return [CriterionAnswer(criterion=c, response=r) for c, r in rows]

    def team_criteria(self, db: Session, *, candidature_id: int, phase_id: int) -> List[CriterionAnswer]:
        """Team-filled criteria visible to teams, with the answer if any."""
        return self._answers(
            db, candidature_id, phase_id,
            Criterion.fill_role == FillRole.TEAM.value,
            Criterion.visible_to_teams.is_(True),
        )

    def validated_responses(self, db: Session, *, candidature_id: int, phase_id: int) -> List[CriterionAnswer]:
        return self._answers(
            db, candidature_id, phase_id,
            Response.validated.is_(True),
        )

    def mentor_responses(
        self, db: Session, *, candidature_id: int, phase_id: int
    ) -> Dict[int, List[CriterionAnswer]]:
        """Mentor-filled answers grouped by mentor id."""
        answers = self._answers(
            db, candidature_id, phase_id,
            Response.filled_by_mentor_id.is_not(None),
        )
        grouped: Dict[int, List[CriterionAnswer]] = {}
        for a in answers:
            grouped.setdefault(a.response.filled_by_mentor_id, []).append(a)
        return grouped

    def combined_responses(self, db: Session, *, candidature_id: int, phase_id: int) -> List[CriterionAnswer]:
        """Mentor-filled answers plus validated team answers."""
        return self._answers(
            db, candidature_id, phase_id,
            or_(Response.filled_by_mentor_id.is_not(None), Response.validated.is_(True)),
        )

    def touched_by_mentor(
        self, db: Session, *, candidature_id: int, phase_id: int, mentor_id: int
    ) -> List[CriterionAnswer]:
        return self._answers(
            db, candidature_id, phase_id,
            or_(Response.filled_by_mentor_id == mentor_id, Response.validated_by_mentor_id == mentor_id),
        )

    def team_feedback(self, db: Session, *, candidature_id: int, phase_id: int) -> List[CriterionAnswer]:
        """What a team sees: mentor answers on team-visible criteria, plus its validated answers."""
        return self._answers(
            db, candidature_id, phase_id,
            or_(
                and_(Response.filled_by_mentor_id.is_not(None), Criterion.visible_to_teams.is_(True)),
                and_(Response.filled_by_mentor_id.is_(None), Response.validated.is_(True)),
            ),
        )
