from datetime import date

import pytest

from app.core.errors import ConflictError, ForbiddenError, InvalidError, NotFoundError
from app.services.candidature_registry import CandidatureRegistry
from app.services.phase_score_service import PhaseScoreService


@pytest.fixture
def scored(db, factory):
    program = factory.program()
    phase = factory.phase(program, date(2026, 1, 1), date(2026, 2, 1))
    sub = factory.submission(factory.form(program))
    cand = CandidatureRegistry().create_candidature(
        db, name="Team", description=None, program_id=program.id, submission_ids=[sub.id]
    )
    return phase, cand, factory.mentor(program)


def test_submit_and_read_final_score(db, scored):
    phase, cand, mentor = scored
    svc = PhaseScoreService()

    row = svc.submit_final_score(db, phase_id=phase.id, candidature_id=cand.id, mentor_id=mentor.id, score=17.5)
    assert row.score == 17.5
    assert svc.get_final_score(db, phase_id=phase.id, candidature_id=cand.id).id == row.id


def test_one_score_per_phase_and_candidature(db, factory, scored):
    phase, cand, mentor = scored
    svc = PhaseScoreService()
    svc.submit_final_score(db, phase_id=phase.id, candidature_id=cand.id, mentor_id=mentor.id, score=10)

    with pytest.raises(ConflictError):
        svc.submit_final_score(db, phase_id=phase.id, candidature_id=cand.id, mentor_id=mentor.id, score=12)


def test_score_rules(db, factory, scored):
    phase, cand, mentor = scored
    svc = PhaseScoreService()
    outsider = factory.mentor(factory.program(name="Other"))

    with pytest.raises(InvalidError):
        svc.submit_final_score(db, phase_id=phase.id, candidature_id=cand.id, mentor_id=mentor.id, score="high")
    with pytest.raises(NotFoundError):
        svc.submit_final_score(db, phase_id=phase.id, candidature_id=999, mentor_id=mentor.id, score=1)
    with pytest.raises(ForbiddenError):
        svc.submit_final_score(db, phase_id=phase.id, candidature_id=cand.id, mentor_id=outsider.id, score=1)
    with pytest.raises(NotFoundError):
        svc.get_final_score(db, phase_id=phase.id, candidature_id=cand.id)
