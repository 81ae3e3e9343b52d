from datetime import timedelta

import pytest

from auth.security import issue_token, verify_token, get_password_hash, verify_password
from core.exceptions import MissingField, NotFound, Unauthorized, ValidationError
from database.models import AuditLog, User, UserRole
from services.auth_service import AuthService
from conftest import USER_PASSWORD, bearer


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret-pass")

    assert hashed != "secret-pass"
    assert verify_password("secret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)


def test_token_binds_user_id():
    token = issue_token("user-123")

    assert verify_token(token) == "user-123"
    assert verify_token(token + "x") is None
    assert verify_token(issue_token("user-123", expires_delta=timedelta(seconds=-1))) is None


@pytest.mark.parametrize("username,email,password", [
    ("ab", "ab@example.com", "secret1"),
    ("x" * 51, "long@example.com", "secret1"),
    ("carol", "not-an-email", "secret1"),
    ("carol", "carol@example.com", "short"),
])
def test_create_user_validation(session, username, email, password):
    with pytest.raises(ValidationError):
        AuthService.create_user(session, username, email, password)


def test_create_user_rejects_taken_username_or_email(session, user_id):
    with pytest.raises(ValidationError):
        AuthService.create_user(session, "alice", "new@example.com", "secret1")
    with pytest.raises(ValidationError):
        AuthService.create_user(session, "someone", "ALICE@example.com", "secret1")


def test_authenticate_by_username_or_email(session, user_id):
    assert AuthService.authenticate_user(session, "alice", USER_PASSWORD).id == user_id
    assert AuthService.authenticate_user(session, "alice@example.com", USER_PASSWORD).id == user_id

    with pytest.raises(Unauthorized):
        AuthService.authenticate_user(session, "alice", "wrong-password")
    with pytest.raises(Unauthorized):
        AuthService.authenticate_user(session, "nobody", USER_PASSWORD)
    with pytest.raises(MissingField):
        AuthService.authenticate_user(session, "alice", "")


def test_deactivated_user_cannot_login(session, user_id, admin_id):
    AuthService.deactivate_user(session, user_id, actor_id=admin_id)

    with pytest.raises(Unauthorized, match="deactivated"):
        AuthService.authenticate_user(session, "alice", USER_PASSWORD)


def test_admin_cannot_deactivate_self(session, admin_id):
    with pytest.raises(ValidationError):
        AuthService.deactivate_user(session, admin_id, actor_id=admin_id)
    with pytest.raises(NotFound):
        AuthService.deactivate_user(session, "missing", actor_id=admin_id)


def test_ensure_admin_is_idempotent(session):
    created = AuthService.ensure_admin_user(session, "root", "root@example.com", "root-pass")

    assert created.role == UserRole.ADMIN
    assert AuthService.ensure_admin_user(session, "root", "root@example.com", "root-pass") is None
    assert session.query(User).filter(User.role == UserRole.ADMIN).count() == 1


# HTTP

def test_register_login_me_flow(client):
    registered = client.post("/api/auth/register", json={
        "username": "carol", "email": "carol@example.com", "password": "secret1"
    })
    assert registered.status_code == 201
    body = registered.json()
    assert body["data"]["user"]["username"] == "carol"
    assert "password_hash" not in body["data"]["user"]
    assert "passwordHash" not in body["data"]["user"]

    login = client.post("/api/auth/token", json={"username": "carol@example.com", "password": "secret1"})
    assert login.status_code == 200
    assert login.json()["data"]["token_type"] == "bearer"
    token = login.json()["data"]["access_token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["email"] == "carol@example.com"
    assert me.json()["data"]["role"] == "user"

    assert client.post("/api/auth/logout").json()["success"] is True


def test_register_duplicate_is_400(client, user_id):
    response = client.post("/api/auth/register", json={
        "username": "alice", "email": "alice2@example.com", "password": "secret1"
    })

    assert response.status_code == 400
    assert response.json()["message"] == "User with this email or username already exists"


def test_bad_login_is_401(client, user_id):
    response = client.post("/api/auth/token", json={"username": "alice", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials", "error": "unauthorized"}


def test_invalid_and_unknown_tokens_are_401(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401
    assert client.get("/api/auth/me", headers=bearer("no-such-user")).status_code == 401


def test_deactivation_revokes_access(client, admin_headers, user_id, user_headers):
    assert client.get("/api/auth/me", headers=user_headers).status_code == 200
    assert client.post(f"/api/users/{user_id}/deactivate", headers=user_headers).status_code == 403

    response = client.post(f"/api/users/{user_id}/deactivate", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["isActive"] is False

    after = client.get("/api/auth/me", headers=user_headers)
    assert after.status_code == 401
    assert after.json()["message"] == "Account has been deactivated"


def test_list_users_is_admin_only(client, admin_headers, user_headers, user_id):
    assert client.get("/api/users", headers=user_headers).status_code == 403

    data = client.get("/api/users", params={"role": "user"}, headers=admin_headers).json()["data"]
    assert data["total"] == 1
    assert data["users"][0]["id"] == user_id

    assert client.get("/api/users", params={"role": "wizard"}, headers=admin_headers).status_code == 400


def test_actions_are_audited(client, database, user_headers, user_id):
    client.get("/api/auth/me", headers=user_headers)
    client.post("/api/auth/token", json={"username": "alice", "password": USER_PASSWORD},
                headers={"X-Real-IP": "198.51.100.4"})

    with database.get_session() as db:
        entries = db.query(AuditLog).filter(AuditLog.action == "login").all()
        assert [(e.user_id, e.ip_address) for e in entries] == [(user_id, "198.51.100.4")]
