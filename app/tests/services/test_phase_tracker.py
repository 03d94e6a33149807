from datetime import date

import pytest
from sqlalchemy import select

from app.core.errors import NotFoundError
from app.models.candidature import Candidature, CandidatureMember
from app.models.enums import ActorRole, EntityKind, MembershipOrigin, NotificationType
from app.models.notification import Notification
from app.services.candidature_registry import CandidatureRegistry
from app.services.phase_tracker import PhaseTracker


@pytest.fixture
def program_with_phases(factory):
    program = factory.program()
    p1 = factory.phase(program, date(2026, 1, 1), date(2026, 3, 1), name="Selection")
    p2 = factory.phase(program, date(2026, 3, 1), date(2026, 6, 1), name="Bootcamp")
    p3 = factory.phase(program, date(2026, 6, 1), date(2026, 9, 1), name="Demo Day")
    return program, p1, p2, p3


def _team(db, factory, program, size=2):
    form = factory.form(program)
    subs = [factory.submission(form) for _ in range(size)]
    cand = CandidatureRegistry().create_candidature(
        db, name="Team", description=None, program_id=program.id, submission_ids=[s.id for s in subs]
    )
    return cand, subs


def test_current_phase_follows_latest_advance(db, factory, program_with_phases):
    program, p1, p2, _ = program_with_phases
    cand, _ = _team(db, factory, program)
    tracker = PhaseTracker()

    assert tracker.get_current_phase(db, candidature_id=cand.id) is None

    tracker.advance(db, candidature_id=cand.id, phase_id=p1.id)
    tracker.advance(db, candidature_id=cand.id, phase_id=p2.id)
    assert tracker.get_current_phase(db, candidature_id=cand.id).id == p2.id

    # re-entering an earlier phase refreshes its row and makes it current
    tracker.advance(db, candidature_id=cand.id, phase_id=p1.id)
    assert tracker.get_current_phase(db, candidature_id=cand.id).id == p1.id
    assert [p.id for p, _ in tracker.history(db, candidature_id=cand.id)] == [p2.id, p1.id]


def test_advance_rejects_phase_of_other_program(db, factory, program_with_phases):
    program, *_ = program_with_phases
    other = factory.program(name="Other")
    foreign = factory.phase(other, date(2026, 1, 1), date(2026, 2, 1))
    cand, _ = _team(db, factory, program)

    with pytest.raises(NotFoundError):
        PhaseTracker().advance(db, candidature_id=cand.id, phase_id=foreign.id)


def test_is_last_phase(db, factory, program_with_phases):
    _, p1, p2, p3 = program_with_phases
    tracker = PhaseTracker()

    assert tracker.is_last_phase(db, phase_id=p3.id) is True
    assert tracker.is_last_phase(db, phase_id=p2.id) is False
    assert tracker.is_last_phase(db, phase_id=p1.id) is False
    assert tracker.is_last_phase(db, phase_id=9999) is False


def test_tied_end_dates_are_all_last(db, factory, program_with_phases):
    program, _, _, p3 = program_with_phases
    twin = factory.phase(program, date(2026, 7, 1), date(2026, 9, 1), name="Twin")

    tracker = PhaseTracker()
    assert tracker.is_last_phase(db, phase_id=p3.id) is True
    assert tracker.is_last_phase(db, phase_id=twin.id) is True


def test_advance_team_notifies_every_member(db, factory, program_with_phases):
    program, p1, p2, _ = program_with_phases
    cand, subs = _team(db, factory, program, size=3)
    tracker = PhaseTracker()
    tracker.advance(db, candidature_id=cand.id, phase_id=p1.id)

    result = tracker.advance_entity(
        db, entity_kind=EntityKind.TEAM, entity_id=cand.id, target_phase_id=p2.id, program_id=program.id
    )

    assert result.candidature_id == cand.id
    assert result.previous_phase == "Selection"
    assert result.new_phase == "Bootcamp"
    notes = db.execute(
        select(Notification).where(Notification.type == NotificationType.PHASE_ADVANCEMENT.value)
    ).scalars().all()
    assert sorted(n.user_id for n in notes) == sorted(s.user_id for s in subs)
    assert notes[0].message == (
        "Your team 'Team' has advanced to the phase 'Bootcamp' of the program 'Spring Cohort'."
    )


def test_startup_without_candidature_is_enrolled_individually(db, factory, program_with_phases):
    program, p1, _, _ = program_with_phases
    founder = factory.user(ActorRole.STARTUP, company_name="Acme Robotics")
    sub = factory.submission(factory.form(program), user=founder)

    result = PhaseTracker().advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=sub.id, target_phase_id=p1.id, program_id=program.id
    )

    cand = db.get(Candidature, result.candidature_id)
    assert cand.kind == "individual"
    assert cand.name == "Acme Robotics"
    assert cand.description == "Individual candidature of Acme Robotics"
    assert result.previous_phase is None
    assert PhaseTracker().get_current_phase(db, candidature_id=cand.id).id == p1.id

    note = db.execute(select(Notification)).scalars().one()
    assert note.user_id == founder.id
    assert note.message == (
        "Your individual startup 'Acme Robotics' has advanced to the phase 'Selection' "
        "of the program 'Spring Cohort'."
    )


def test_startup_name_falls_back(db, factory, program_with_phases):
    program, p1, _, _ = program_with_phases
    form = factory.form(program)
    named = factory.submission(form)
    anonymous = factory.submission(form)
    tracker = PhaseTracker()

    r1 = tracker.advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=named.id, target_phase_id=p1.id,
        program_id=program.id, fallback_name="Given Name",
    )
    r2 = tracker.advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=anonymous.id, target_phase_id=p1.id, program_id=program.id,
    )

    assert r1.name == "Given Name"
    assert r2.name == f"Startup {anonymous.id}"


def test_startup_in_team_is_forked_and_team_untouched(db, factory, program_with_phases):
    program, p1, p2, p3 = program_with_phases
    cand, (s1, s2) = _team(db, factory, program)
    tracker = PhaseTracker()
    tracker.advance(db, candidature_id=cand.id, phase_id=p1.id)

    result = tracker.advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=s1.id, target_phase_id=p2.id, program_id=program.id
    )

    assert result.candidature_id != cand.id
    fork = db.get(Candidature, result.candidature_id)
    assert fork.kind == "individual"
    assert CandidatureRegistry().get_members(db, candidature_id=fork.id) == [s1.id]
    fork_link = db.execute(
        select(CandidatureMember).where(CandidatureMember.candidature_id == fork.id)
    ).scalar_one()
    assert fork_link.origin == MembershipOrigin.FORK.value

    # the team keeps both members and its own phase
    assert CandidatureRegistry().get_members(db, candidature_id=cand.id) == [s1.id, s2.id]
    assert tracker.get_current_phase(db, candidature_id=cand.id).id == p1.id
    assert tracker.get_current_phase(db, candidature_id=fork.id).id == p2.id

    # a later advance of the same startup reuses its fork
    again = tracker.advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=s1.id, target_phase_id=p3.id, program_id=program.id
    )
    assert again.candidature_id == fork.id
    assert again.previous_phase == "Bootcamp"


def test_solo_member_advances_its_own_candidature(db, factory, program_with_phases):
    program, p1, _, _ = program_with_phases
    cand, (solo,) = _team(db, factory, program, size=1)

    result = PhaseTracker().advance_entity(
        db, entity_kind=EntityKind.STARTUP, entity_id=solo.id, target_phase_id=p1.id, program_id=program.id
    )
    assert result.candidature_id == cand.id


def test_advance_entity_not_found_cases(db, factory, program_with_phases):
    program, p1, _, _ = program_with_phases
    tracker = PhaseTracker()

    with pytest.raises(NotFoundError):
        tracker.advance_entity(
            db, entity_kind=EntityKind.TEAM, entity_id=404, target_phase_id=p1.id, program_id=program.id
        )
    with pytest.raises(NotFoundError):
        tracker.advance_entity(
            db, entity_kind=EntityKind.STARTUP, entity_id=404, target_phase_id=p1.id, program_id=program.id
        )
    with pytest.raises(NotFoundError):
        tracker.advance_entity(
            db, entity_kind=EntityKind.STARTUP, entity_id=1, target_phase_id=404, program_id=program.id
        )


def test_startup_from_another_program_is_not_enrolled(db, factory, program_with_phases):
    program, p1, _, _ = program_with_phases
    elsewhere = factory.program(name="Other Cohort")
    stray = factory.submission(factory.form(elsewhere))

    with pytest.raises(NotFoundError):
        PhaseTracker().advance_entity(
            db, entity_kind=EntityKind.STARTUP, entity_id=stray.id, target_phase_id=p1.id, program_id=program.id
        )

    assert db.execute(select(Candidature)).first() is None
    assert db.execute(select(CandidatureMember)).first() is None
