"""Test fixtures — a throwaway SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite file under tmp_path, with the schema
   created from the ORM models (Base.metadata.create_all).
2. Store and service tests use `db_session` directly.
3. API tests use `client`, an httpx AsyncClient talking to the ASGI app
   in-process. get_db is overridden so every request opens its own
   session on the test database, like production does on Postgres.

Nothing is mocked on the auth path: tests sign up, get a real token and
send it back as a Bearer header.
"""

import os

# Must be set before tasktrack.config is imported.
os.environ.setdefault("TASKTRACK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TASKTRACK_ENVIRONMENT", "test")

import uuid
from io import BytesIO

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tasktrack.api.deps import get_storage
from tasktrack.auth.dependencies import get_password_hasher, get_token_issuer
from tasktrack.auth.password import PasswordHasher
from tasktrack.auth.tokens import TokenIssuer
from tasktrack.config import settings
from tasktrack.db.engine import get_db
from tasktrack.db.models import Base
from tasktrack.main import create_app
from tasktrack.media.storage import LocalFileStorage

TEST_SECRET = "test-secret"


@pytest_asyncio.fixture()
async def session_factory(tmp_path):
    """Fresh database file with all tables, disposed after the test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def tokens():
    return TokenIssuer(TEST_SECRET)


@pytest.fixture()
def passwords():
    # Minimum bcrypt work factor keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture()
def storage(tmp_path):
    return LocalFileStorage(tmp_path / "media", "http://test/media")


@pytest.fixture()
def events():
    """Every (event_type, data) emitted through the app's hooks."""
    return []


@pytest.fixture()
def app(session_factory, tokens, passwords, storage, events, monkeypatch):
    """A fresh app wired to the test database.

    Learn: Only infrastructure is overridden (database, hasher cost,
    signing secret, storage location). The real auth pipeline runs.
    Settings are patched before create_app() so the /media mount serves
    the same directory the storage fixture writes to.
    """
    storage.root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setattr(settings, "storage_root", str(storage.root))
    monkeypatch.setattr(settings, "storage_base_url", storage.base_url)

    app = create_app(hooks=[lambda event_type, data: events.append((event_type, data))])

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_issuer] = lambda: tokens
    app.dependency_overrides[get_password_hasher] = lambda: passwords
    app.dependency_overrides[get_storage] = lambda: storage

    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ─── Helpers ─────────────────────────────────────────────


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def sign_up(client, name: str = "Test User", password: str = "secret_pw_1", **extra):
    """Create an account through the API; returns (user, token)."""
    body = {"name": name, "email": unique_email(), "password": password, **extra}
    r = await client.post("/api/v1/users", json=body)
    assert r.status_code == 201, r.text
    data = r.json()
    return data["user"], data["token"]


def png_bytes(size: tuple[int, int] = (200, 120), color: str = "red") -> bytes:
    out = BytesIO()
    Image.new("RGB", size, color).save(out, format="PNG")
    return out.getvalue()
