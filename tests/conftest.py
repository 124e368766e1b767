"""Shared fixtures: a fresh SQLite database per test and an API client bound to it."""

import os

os.environ.setdefault("CONFVAULT_ENCRYPTION_KEY", "confvault-test-key")
os.environ.setdefault("CONFVAULT_ENV", "test")
os.environ.setdefault("CONFVAULT_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import confvault.models  # noqa: E402,F401
from confvault.database import Base, get_db  # noqa: E402
from confvault.main import app  # noqa: E402


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_principal(principal_id: str) -> dict[str, str]:
    return {"X-Principal-Id": principal_id}


@pytest.fixture
def owner() -> dict[str, str]:
    return as_principal("alice")


@pytest.fixture
def outsider() -> dict[str, str]:
    return as_principal("mallory")



@pytest.fixture
def create_app(client: AsyncClient, owner):
    """Create an application as ``alice`` and return its JSON."""

    async def _create(name: str = "billing", headers: dict[str, str] | None = None) -> dict:
        resp = await client.post(
            "/api/applications/", json={"name": name}, headers=headers or owner
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def add_member(client: AsyncClient, owner):
    async def _add(application_id: str, principal_id: str, role: str) -> None:
        resp = await client.post(
            f"/api/applications/{application_id}/members",
            json={"principal_id": principal_id, "role": role},
            headers=owner,
        )
        assert resp.status_code == 201, resp.text

    return _add


@pytest.fixture
def create_env(client: AsyncClient, owner):
    async def _create(application_id: str, name: str) -> dict:
        resp = await client.post(
            f"/api/applications/{application_id}/environments",
            json={"name": name},
            headers=owner,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def headers_for():
    return as_principal
