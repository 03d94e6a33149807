import pytest
from fastapi import HTTPException

from app.core.auth_deps import principal_from_claims
from app.models.enums import ActorRole

API = "/api/v1"


def test_health_echoes_request_id(client):
    r = client.get(f"{API}/health", headers={"X-Request-Id": "req-42"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "request_id": "req-42"}
    assert r.headers["X-Request-Id"] == "req-42"


def test_health_generates_request_id(client):
    r = client.get(f"{API}/health")
    assert r.status_code == 200
    assert r.headers["X-Request-Id"]


def test_missing_token_is_rejected(client):
    r = client.get(f"{API}/candidatures/1/membres")
    assert r.status_code in (401, 403)


def test_garbage_token_is_401(client):
    r = client.get(f"{API}/candidatures/1/membres", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_unknown_role_is_401(client, auth_headers):
    r = client.get(f"{API}/candidatures/1/membres", headers=auth_headers(1, "superuser"))
    assert r.status_code == 401


def test_wrong_role_gets_domain_403(client, auth_headers):
    r = client.post(
        f"{API}/programmes",
        json={"nom": "X", "type": "Hackathon", "date_debut": "2026-01-01", "date_fin": "2026-02-01"},
        headers=auth_headers(7, ActorRole.MENTOR.value),
    )
    assert r.status_code == 403
    assert r.json()["code"] == "forbidden"


def test_not_found_body_shape(client, auth_headers):
    r = client.get(f"{API}/candidatures/999/membres", headers=auth_headers(1, ActorRole.ADMIN.value))
    assert r.status_code == 404
    body = r.json()
    assert body["code"] == "not_found"
    assert body["detail"] == "Candidature 999 not found"
    assert body["context"] == {"resource": "Candidature", "id": 999}


def test_claims_without_user_id_are_401():
    with pytest.raises(HTTPException) as exc:
        principal_from_claims({"role": "admin"})
    assert exc.value.status_code == 401

    p = principal_from_claims({"role": "mentor", "user_id": "12"})
    assert p.user_id == 12
    assert p.role == ActorRole.MENTOR
    assert p.display_name == "Unknown"
