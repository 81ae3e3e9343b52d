"""
Shared fixtures: an app wired to a throwaway SQLite file and local storage.
"""
import os
import tempfile

# Keep import-time side effects (log file, default upload dir) out of the repo
_SCRATCH = tempfile.mkdtemp(prefix="voting-platform-tests-")
os.environ.setdefault("UPLOADS_DIR", os.path.join(_SCRATCH, "uploads"))
os.environ.setdefault("LOGS_DIR", os.path.join(_SCRATCH, "logs"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

import config
from app import create_app
from auth.security import issue_token
from database.connection import Database
from database.models import UserRole
from services.auth_service import AuthService
from storage.local_storage import LocalStorage

ADMIN_PASSWORD = "admin-pass-1"
USER_PASSWORD = "user-pass-1"


@pytest.fixture(autouse=True)
def fast_settings(monkeypatch):
    monkeypatch.setattr(config, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(config, "RATE_LIMIT_PER_MINUTE", 100000)
    monkeypatch.setattr(config, "RATE_LIMIT_PER_HOUR", 100000)
    monkeypatch.setattr(config, "ENSURE_ADMIN_ON_STARTUP", False)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}", pool_size=5, max_overflow=5)
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "objects")


@pytest.fixture
def session(database):
    with database.get_session() as db:
        yield db


@pytest.fixture
def app(database, storage):
    return create_app(database=database, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def make_user(database, username, role=UserRole.USER, password=None):
    with database.get_session() as db:
        user = AuthService.create_user(
            db,
            username=username,
            email=f"{username}@example.com",
            password=password or (ADMIN_PASSWORD if role == UserRole.ADMIN else USER_PASSWORD),
            role=role,
        )
        return user.id


def bearer(user_id):
    return {"Authorization": f"Bearer {issue_token(user_id)}"}


@pytest.fixture
def admin_id(database):
    return make_user(database, "admin", role=UserRole.ADMIN)


@pytest.fixture
def user_id(database):
    return make_user(database, "alice")


@pytest.fixture
def other_user_id(database):
    return make_user(database, "bob")


@pytest.fixture
def admin_headers(admin_id):
    return bearer(admin_id)


@pytest.fixture
def user_headers(user_id):
    return bearer(user_id)


@pytest.fixture
def other_headers(other_user_id):
    return bearer(other_user_id)
