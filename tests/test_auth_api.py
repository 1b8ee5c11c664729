from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError
from sqlalchemy.orm import Session

from policy_aligner.config import Settings, get_settings
from policy_aligner.models import User

from conftest import ADMIN_PASSWORD, ANALYST_PASSWORD


def test_register_creates_analyst_account(client: TestClient) -> None:
    response = client.post(
        "/auth/register",
        json={"username": "  jordan ", "email": "Jordan@Example.com", "password": "secret"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["username"] == "jordan"
    assert body["email"] == "jordan@example.com"
    assert body["role"] == "analyst"
    assert body["is_active"] is True
    assert "password_hash" not in body


def test_register_rejects_duplicates(client: TestClient, analyst_user: User) -> None:
    response = client.post(
        "/auth/register",
        json={"username": "analyst", "email": "someone-else@example.com", "password": "secret"},
    )

    assert response.status_code == 409


def test_register_requires_valid_payload(client: TestClient) -> None:
    response = client.post("/auth/register", json={"username": "casey", "email": "not-an-email"})

    assert response.status_code == 400


def test_register_rejects_password_longer_than_bcrypt_limit(client: TestClient) -> None:
    response = client.post(
        "/auth/register",
        json={"username": "morgan", "email": "morgan@example.com", "password": "p" * 100},
    )

    assert response.status_code == 400


def test_register_accepts_password_at_bcrypt_limit(client: TestClient) -> None:
    password = "p" * 72
    created = client.post(
        "/auth/register",
        json={"username": "riley", "email": "riley@example.com", "password": password},
    )
    login = client.post("/auth/login", json={"username": "riley", "password": password})

    assert created.status_code == 201
    assert login.status_code == 200


def test_admin_password_setting_respects_bcrypt_limit() -> None:
    with pytest.raises(ValidationError):
        Settings(ADMIN_PASSWORD="é" * 40)


def test_login_with_username_or_email(client: TestClient, analyst_user: User) -> None:
    by_name = client.post("/auth/login", json={"username": "analyst", "password": ANALYST_PASSWORD})
    by_email = client.post(
        "/auth/login", json={"username": "analyst@example.com", "password": ANALYST_PASSWORD}
    )

    assert by_name.status_code == 200
    assert by_email.status_code == 200
    assert by_name.json()["user"]["id"] == analyst_user.id

    token = by_name.json()["token"]
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["username"] == "analyst"


def test_login_rejects_bad_credentials(client: TestClient) -> None:
    wrong_password = client.post("/auth/login", json={"username": "admin", "password": "nope"})
    unknown_user = client.post("/auth/login", json={"username": "ghost", "password": "nope"})

    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401


def test_login_rejects_deactivated_account(
    client: TestClient, admin_headers: dict[str, str], analyst_user: User
) -> None:
    response = client.put(
        f"/auth/users/{analyst_user.id}/status", json={"is_active": False}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    login = client.post("/auth/login", json={"username": "analyst", "password": ANALYST_PASSWORD})
    assert login.status_code == 403


def test_deactivated_user_token_is_rejected(
    client: TestClient, admin_headers: dict[str, str], analyst_user: User, analyst_headers: dict[str, str]
) -> None:
    client.put(f"/auth/users/{analyst_user.id}/status", json={"is_active": False}, headers=admin_headers)

    response = client.get("/auth/me", headers=analyst_headers)

    assert response.status_code == 401


def test_protected_routes_require_token(client: TestClient) -> None:
    missing = client.get("/documents")
    malformed = client.get("/documents", headers={"Authorization": "Bearer not-a-token"})

    assert missing.status_code == 401
    assert missing.headers["www-authenticate"] == "Bearer"
    assert malformed.status_code == 401


def test_expired_token_is_rejected(client: TestClient) -> None:
    settings = get_settings()
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    token = jwt.encode(
        {"sub": "1", "username": "admin", "role": "admin", "iat": issued, "exp": issued + timedelta(hours=1)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )

    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_user_management_is_admin_only(
    client: TestClient, admin_headers: dict[str, str], analyst_headers: dict[str, str]
) -> None:
    as_admin = client.get("/auth/users", headers=admin_headers)
    as_analyst = client.get("/auth/users", headers=analyst_headers)

    assert as_admin.status_code == 200
    assert {user["username"] for user in as_admin.json()} == {"admin", "analyst"}
    assert as_analyst.status_code == 403


def test_bootstrap_admin_cannot_be_changed(
    client: TestClient, admin_headers: dict[str, str], analyst_headers: dict[str, str]
) -> None:
    for headers in (admin_headers, analyst_headers):
        assert client.delete("/auth/users/1", headers=headers).status_code == 403
        assert client.put("/auth/users/1/role", json={"role": "analyst"}, headers=headers).status_code == 403
        assert client.put("/auth/users/1/status", json={"is_active": False}, headers=headers).status_code == 403

    login = client.post("/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "admin"


def test_admin_can_promote_and_delete_users(
    client: TestClient, db_session: Session, admin_headers: dict[str, str], analyst_user: User
) -> None:
    user_id = analyst_user.id
    promoted = client.put(
        f"/auth/users/{user_id}/role", json={"role": "admin"}, headers=admin_headers
    )
    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"

    deleted = client.delete(f"/auth/users/{user_id}", headers=admin_headers)
    assert deleted.status_code == 204
    db_session.expire_all()
    assert db_session.get(User, user_id) is None

    missing = client.delete(f"/auth/users/{user_id}", headers=admin_headers)
    assert missing.status_code == 404


def test_invalid_role_is_rejected(
    client: TestClient, admin_headers: dict[str, str], analyst_user: User
) -> None:
    response = client.put(
        f"/auth/users/{analyst_user.id}/role", json={"role": "superuser"}, headers=admin_headers
    )

    assert response.status_code == 400
