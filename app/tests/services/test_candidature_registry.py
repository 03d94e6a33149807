from datetime import date

import pytest
from sqlalchemy import select

from app.core.errors import ConflictError, InvalidError, NotFoundError
from app.models.candidature import Candidature, CandidatureMember
from app.models.candidature_phase import CandidaturePhase
from app.models.enums import ActorRole, EntityKind, MembershipOrigin, NotificationType
from app.models.notification import Notification
from app.models.response import Response
from app.models.submission import ProgramSubmission, Submission
from app.services.candidature_registry import CandidatureRegistry
from app.services.criterion_engine import CriterionEvaluationEngine
from app.services.phase_tracker import PhaseTracker
from app.services.winner_service import WinnerDeclarationService


def _notifications(db, type_):
    return db.execute(
        select(Notification).where(Notification.type == type_.value).order_by(Notification.id)
    ).scalars().all()


def test_create_links_members_and_fills_pool(db, factory):
    program = factory.program()
    form = factory.form(program)
    s1, s2 = factory.submission(form), factory.submission(form)

    cand = CandidatureRegistry().create_candidature(
        db, name="Team Alpha", description="d", program_id=program.id, submission_ids=[s1.id, s2.id]
    )

    assert cand.id is not None
    assert cand.kind == "team"
    assert CandidatureRegistry().get_members(db, candidature_id=cand.id) == [s1.id, s2.id]

    pool = db.execute(
        select(ProgramSubmission.submission_id).where(ProgramSubmission.program_id == program.id)
    ).scalars().all()
    assert sorted(pool) == sorted([s1.id, s2.id])

    origins = db.execute(select(CandidatureMember.origin)).scalars().all()
    assert set(origins) == {MembershipOrigin.FORMATION.value}


def test_create_notifies_each_member(db, factory):
    program = factory.program()
    form = factory.form(program)
    s1, s2 = factory.submission(form), factory.submission(form, role=ActorRole.PARTICULIER)

    cand = CandidatureRegistry().create_candidature(
        db, name="Team Alpha", description=None, program_id=program.id, submission_ids=[s1.id, s2.id]
    )

    notes = _notifications(db, NotificationType.TEAM_CREATION)
    assert [(n.user_id, n.user_role) for n in notes] == [(s1.user_id, "startup"), (s2.user_id, "particulier")]
    assert all(n.related_id == cand.id for n in notes)
    assert "Team Alpha" in notes[0].message


def test_submission_cannot_join_two_candidatures(db, factory):
    program = factory.program()
    form = factory.form(program)
    s1, s2 = factory.submission(form), factory.submission(form)
    reg = CandidatureRegistry()
    first = reg.create_candidature(db, name="A", description=None, program_id=program.id, submission_ids=[s1.id])

    with pytest.raises(ConflictError):
        reg.create_candidature(db, name="B", description=None, program_id=program.id, submission_ids=[s2.id, s1.id])

    # nothing from the rejected call is left behind
    assert db.execute(select(Candidature).where(Candidature.name == "B")).first() is None
    assert reg.get_members(db, candidature_id=first.id) == [s1.id]


def test_submission_of_other_program_is_not_found(db, factory):
    program = factory.program()
    other = factory.program(name="Other")
    foreign = factory.submission(factory.form(other))

    with pytest.raises(NotFoundError):
        CandidatureRegistry().create_candidature(
            db, name="A", description=None, program_id=program.id, submission_ids=[foreign.id]
        )


def test_unknown_submission_or_program(db, factory):
    program = factory.program()
    reg = CandidatureRegistry()

    with pytest.raises(NotFoundError):
        reg.create_candidature(db, name="A", description=None, program_id=program.id, submission_ids=[999])
    with pytest.raises(NotFoundError):
        reg.create_candidature(db, name="A", description=None, program_id=999, submission_ids=[1])


def test_empty_submission_list_is_invalid(db, factory):
    program = factory.program()
    with pytest.raises(InvalidError):
        CandidatureRegistry().create_candidature(
            db, name="A", description=None, program_id=program.id, submission_ids=[]
        )


def test_get_members_unknown_candidature(db):
    with pytest.raises(NotFoundError):
        CandidatureRegistry().get_members(db, candidature_id=42)


def test_delete_removes_dependents_and_notifies(db, factory):
    program = factory.program()
    last = factory.phase(program, date(2026, 6, 1), date(2026, 7, 1))
    form = factory.form(program)
    s1, s2 = factory.submission(form), factory.submission(form)
    reg = CandidatureRegistry()
    cand = reg.create_candidature(
        db, name="Doomed", description=None, program_id=program.id, submission_ids=[s1.id, s2.id]
    )
    PhaseTracker().advance(db, candidature_id=cand.id, phase_id=last.id)
    WinnerDeclarationService().declare_winner(db, phase_id=last.id, candidature_id=cand.id)

    reg.delete_candidature(db, candidature_id=cand.id)

    assert db.get(Candidature, cand.id) is None
    assert db.execute(select(Submission).where(Submission.id.in_([s1.id, s2.id]))).first() is None
    assert db.execute(select(CandidatureMember)).first() is None
    assert db.execute(select(CandidaturePhase)).first() is None
    assert db.execute(select(ProgramSubmission)).first() is None

    db.refresh(last)
    assert last.winner_candidature_id is None

    removed = _notifications(db, NotificationType.CANDIDATURE_REMOVED)
    assert sorted(n.user_id for n in removed) == sorted([s1.user_id, s2.user_id])


def test_delete_unknown_candidature(db):
    with pytest.raises(NotFoundError):
        CandidatureRegistry().delete_candidature(db, candidature_id=7)


def _team_with_fork(db, factory):
    program = factory.program()
    phase = factory.phase(program, date(2026, 2, 1), date(2026, 4, 1))
    form = factory.form(program)
    s1, s2 = factory.submission(form), factory.submission(form)
    team = CandidatureRegistry().create_candidature(
        db, name="Crew", description=None, program_id=program.id, submission_ids=[s1.id, s2.id]
    )
    fork_id = PhaseTracker().advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=s1.id, target_phase_id=phase.id, program_id=program.id
    ).candidature_id
    crit = CriterionEvaluationEngine().create_criterion(
        db, phase_id=phase.id, name="Traction", type="numeric", weight=1, fill_role="team"
    )
    CriterionEvaluationEngine().submit_team_response(db, candidature_id=fork_id, criterion_id=crit.id, value=10)
    return team, fork_id, (s1, s2)


def test_delete_team_takes_forks_of_its_submissions(db, factory):
    team, fork_id, (s1, s2) = _team_with_fork(db, factory)
    assert fork_id != team.id

    CandidatureRegistry().delete_candidature(db, candidature_id=team.id)

    assert db.execute(select(Candidature.id)).scalars().all() == []
    assert db.execute(select(CandidatureMember)).first() is None
    assert db.execute(select(CandidaturePhase)).first() is None
    assert db.execute(select(Response)).first() is None

    removed = _notifications(db, NotificationType.CANDIDATURE_REMOVED)
    assert sorted(n.user_id for n in removed) == sorted([s1.user_id, s2.user_id])


def test_delete_fork_keeps_team_and_submission(db, factory):
    team, fork_id, (s1, s2) = _team_with_fork(db, factory)

    CandidatureRegistry().delete_candidature(db, candidature_id=fork_id)

    assert db.get(Candidature, fork_id) is None
    assert CandidatureRegistry().get_members(db, candidature_id=team.id) == [s1.id, s2.id]
    assert db.get(Submission, s1.id) is not None
    assert db.execute(select(Response)).first() is None
