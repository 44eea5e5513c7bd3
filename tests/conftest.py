# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from accountlink.core.config import Settings
from accountlink.db import models  # noqa: F401  register tables
from accountlink.db.session import Base, create_engine, create_session_factory
from accountlink.main import create_app
from accountlink.services.email_resolver import EmailResolver
from accountlink.services.login import LoginService

from .fakes import FakeAuthProviderRepository, FakeUserRepository, InMemoryStore


# ---------- Settings ----------
@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "accountlink.db"


@pytest.fixture
def settings(db_path: Path) -> Settings:
    # File-backed SQLite so separate sessions use separate connections,
    # like separate requests against Postgres.
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{db_path}")


# ---------- Database ----------
@pytest.fixture
async def engine(settings: Settings):
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ---------- Services ----------
@pytest.fixture
def email_resolver(settings: Settings) -> EmailResolver:
    return EmailResolver.from_settings(settings)


@pytest.fixture
def login_service(session_factory, email_resolver, settings) -> LoginService:
    return LoginService(session_factory, email_resolver, settings)


# ---------- In-memory repositories ----------
@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def users(store: InMemoryStore) -> FakeUserRepository:
    return FakeUserRepository(store)


@pytest.fixture
def links(store: InMemoryStore) -> FakeAuthProviderRepository:
    return FakeAuthProviderRepository(store)


# ---------- HTTP ----------
@pytest.fixture
def app(settings, engine):
    # no secondary lookups over the API in tests; email comes from attributes or a placeholder
    return create_app(settings, engine=engine, email_resolver=EmailResolver({}))


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
