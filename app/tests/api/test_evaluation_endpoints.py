from datetime import date

import pytest

from app.models.enums import ActorRole
from app.services.candidature_registry import CandidatureRegistry

API = "/api/v1"


@pytest.fixture
def evaluation(db, factory, auth_headers):
    program = factory.program()
    phase = factory.phase(program, date(2026, 1, 1), date(2026, 6, 1), name="Review")
    form = factory.form(program)
    member = factory.submission(form)
    cand = CandidatureRegistry().create_candidature(
        db, name="Pitch Perfect", description=None, program_id=program.id, submission_ids=[member.id]
    )
    mentor = factory.mentor(program)
    admin = factory.user(ActorRole.ADMIN)
    return dict(
        program=program, phase=phase, cand=cand, member=member, mentor=mentor,
        admin_h=auth_headers(admin.id, "admin"),
        member_h=auth_headers(member.user_id, "startup"),
        mentor_h=auth_headers(mentor.id, "mentor"),
    )


def _criterion(client, ev, **body):
    payload = {"nom_critere": "Criterion", "type": "stars", "poids": 1, "rempli_par": "team"}
    payload.update(body)
    r = client.post(f"{API}/phases/{ev['phase'].id}/criteres", json=payload, headers=ev["admin_h"])
    assert r.status_code == 201, r.text
    return r.json()


def test_criteria_crud(client, evaluation):
    ev = evaluation
    crit = _criterion(client, ev, nom_critere="Pitch", type="numeric")
    assert crit["type"] == "numeric"

    r = client.post(
        f"{API}/phases/{ev['phase'].id}/criteres",
        json={"nom_critere": "Bad", "type": "emoji", "poids": 1, "rempli_par": "team"},
        headers=ev["admin_h"],
    )
    assert r.status_code == 400

    r = client.get(f"{API}/phases/{ev['phase'].id}/criteres", headers=ev["member_h"])
    assert [c["nom_critere"] for c in r.json()] == ["Pitch"]

    r = client.delete(f"{API}/phases/{ev['phase'].id}/criteres/{crit['id']}", headers=ev["member_h"])
    assert r.status_code == 403
    r = client.delete(f"{API}/phases/{ev['phase'].id}/criteres/{crit['id']}", headers=ev["admin_h"])
    assert r.status_code == 200
    assert client.get(f"{API}/phases/{ev['phase'].id}/criteres", headers=ev["admin_h"]).json() == []


def test_team_and_mentor_responses(client, factory, auth_headers, evaluation):
    ev = evaluation
    cid, pid = ev["cand"].id, ev["phase"].id
    team_crit = _criterion(client, ev, nom_critere="Market", type="bool", necessite_validation=True)
    mentor_crit = _criterion(client, ev, nom_critere="Execution", type="stars", rempli_par="mentor")

    # only members (or an admin) answer for a candidature
    outsider = factory.user(ActorRole.STARTUP)
    answer = {"candidature_id": cid, "reponses": [{"critere_id": team_crit["id"], "valeur": "oui"}]}
    r = client.post(f"{API}/note/reponsesEquipe", json=answer, headers=auth_headers(outsider.id, "startup"))
    assert r.status_code == 403

    r = client.post(f"{API}/note/reponsesEquipe", json=answer, headers=ev["member_h"])
    assert r.status_code == 201, r.text
    assert r.json()[0]["valeur"] == "true"

    r = client.post(f"{API}/note/reponsesEquipe", json=answer, headers=ev["member_h"])
    assert r.status_code == 409

    r = client.get(f"{API}/note/equipe/{cid}/{pid}", headers=ev["member_h"])
    assert [a["critere"]["nom_critere"] for a in r.json()] == ["Market"]
    assert r.json()[0]["reponse"]["valide"] is False

    # mentors act under their own id only
    mentor_body = {"candidature_id": cid, "mentor_id": ev["mentor"].id,
                   "reponses": [{"critere_id": mentor_crit["id"], "valeur": 4}]}
    r = client.post(f"{API}/note/submit/mentor", json={**mentor_body, "mentor_id": 9999}, headers=ev["mentor_h"])
    assert r.status_code == 403
    r = client.post(f"{API}/note/submit/mentor", json=mentor_body, headers=ev["mentor_h"])
    assert r.status_code == 201
    assert r.json()[0]["rempli_par_mentor_id"] == ev["mentor"].id

    r = client.post(
        f"{API}/note/valider-ou-modifier",
        json={"candidature_id": cid, "mentor_id": ev["mentor"].id,
              "reponses": [{"critere_id": team_crit["id"], "nouvelle_valeur": "non"}]},
        headers=ev["mentor_h"],
    )
    assert r.status_code == 200
    assert r.json()[0]["valeur"] == "false"
    assert r.json()[0]["valide_par_mentor_id"] == ev["mentor"].id

    validated = client.get(f"{API}/note/validees/{cid}/{pid}", headers=ev["admin_h"]).json()
    assert [a["critere"]["id"] for a in validated] == [team_crit["id"]]

    grouped = client.get(f"{API}/note/mentors/{cid}/{pid}", headers=ev["admin_h"]).json()
    assert grouped == [{"mentor_id": ev["mentor"].id, "reponses": grouped[0]["reponses"]}]
    assert grouped[0]["reponses"][0]["critere"]["id"] == mentor_crit["id"]

    combined = client.get(f"{API}/note/combinees/{cid}/{pid}", headers=ev["admin_h"]).json()
    assert {a["critere"]["id"] for a in combined} == {team_crit["id"], mentor_crit["id"]}

    touched = client.get(f"{API}/note/mentor/{ev['mentor'].id}/{cid}/{pid}", headers=ev["admin_h"]).json()
    assert len(touched) == 2

    feedback = client.get(f"{API}/note/retours/{cid}/{pid}", headers=ev["member_h"]).json()
    assert {a["critere"]["id"] for a in feedback} == {team_crit["id"], mentor_crit["id"]}


def test_final_phase_score(client, evaluation):
    ev = evaluation
    body = {"phase_id": ev["phase"].id, "candidature_id": ev["cand"].id, "mentor_id": ev["mentor"].id, "note": 15}

    r = client.post(f"{API}/note-phase", json=body, headers=ev["admin_h"])
    assert r.status_code == 403

    r = client.post(f"{API}/note-phase", json={**body, "note": "great"}, headers=ev["mentor_h"])
    assert r.status_code == 400

    r = client.post(f"{API}/note-phase", json=body, headers=ev["mentor_h"])
    assert r.status_code == 201
    assert r.json()["note"] == 15.0

    r = client.post(f"{API}/note-phase", json=body, headers=ev["mentor_h"])
    assert r.status_code == 409

    r = client.get(f"{API}/note-phase/{ev['phase'].id}/{ev['cand'].id}", headers=ev["member_h"])
    assert r.status_code == 200
    assert r.json()["mentor_id"] == ev["mentor"].id
