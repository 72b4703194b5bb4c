# tests/conftest.py
# Test setup: temporary SQLite DB, fake image host / Google verifier,
# and helpers to register + log in through the API.

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

# Ensure repo root on sys.path so "import app" works
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import app.models as _models  # noqa: F401,E402  # registers tables on SQLModel.metadata
from app.audit import AuditOutbox  # noqa: E402
from app.db import get_session  # noqa: E402
from app.errors import AuthenticationError  # noqa: E402

# Import the FastAPI app with an alias (avoid name collision with package "app")
from app.main import app as fastapi_app  # noqa: E402
from app.models import User  # noqa: E402
from app.security import AuthenticatedContext  # noqa: E402
from app.services.google_identity import GoogleIdentity, get_identity_verifier  # noqa: E402
from app.services.images import UploadedImage, get_image_host  # noqa: E402


class FakeImageHost:
    """Stands in for Cloudinary; remembers what was uploaded and destroyed."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []

    def upload(self, data: bytes) -> UploadedImage:
        self.uploads.append(data)
        n = len(self.uploads)
        return UploadedImage(url=f"https://img.test/{n}.png", public_id=f"img-{n}")

    def destroy(self, public_id: str) -> None:
        self.destroyed.append(public_id)


def fake_verifier(credential: str) -> GoogleIdentity:
    # credential "good:<email>" is accepted, anything else is rejected
    if not credential.startswith("good:"):
        raise AuthenticationError("Invalid Google credential.")
    email = credential.split(":", 1)[1]
    return GoogleIdentity(email=email, name=email.split("@")[0])


@pytest.fixture()
def tmp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test_app.db"


@pytest.fixture()
def test_engine(tmp_db_path: Path):
    # File-based SQLite so the request session and the audit writer share the DB
    url = f"sqlite:///{tmp_db_path}"
    engine = create_engine(url, connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def image_host():
    return FakeImageHost()


@pytest.fixture()
def client(test_engine, image_host):
    def _get_test_session():
        with Session(test_engine) as s:
            yield s

    fastapi_app.dependency_overrides[get_session] = _get_test_session
    fastapi_app.dependency_overrides[get_image_host] = lambda: image_host
    fastapi_app.dependency_overrides[get_identity_verifier] = lambda: fake_verifier
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


def register(client, email, name=None, password="pw123456"):
    r = client.post(
        "/api/auth/register",
        data={
            "name": name or email.split("@")[0],
            "email": email,
            "password": password,
            "confirmPassword": password,
        },
    )
    assert r.status_code == 201, r.text
    return r.json()


def login(client, email, password="pw123456"):
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['authToken']}"}


@pytest.fixture()
def signup(client):
    """signup(email) -> (user_json, auth_headers)"""

    def _signup(email, name=None, password="pw123456"):
        user = register(client, email, name=name, password=password)
        return user, login(client, email, password=password)

    return _signup


# ---------- service-level fixtures (no HTTP) ----------


@pytest.fixture()
def db(test_engine):
    with Session(test_engine) as s:
        yield s


@pytest.fixture()
def outbox(test_engine):
    return AuditOutbox(test_engine)


@pytest.fixture()
def make_user(db):
    """make_user(email) -> AuthenticatedContext for a freshly stored user."""

    def _make(email, name=None):
        user = User(name=name or email.split("@")[0], email=email, hashed_password="x")
        db.add(user)
        db.commit()
        db.refresh(user)
        return AuthenticatedContext(user_id=user.id, email=user.email)

    return _make
