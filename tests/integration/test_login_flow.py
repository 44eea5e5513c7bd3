# tests/integration/test_login_flow.py
import asyncio

import pytest
from sqlalchemy import delete, func, select

from accountlink.core.errors import IdentityConflictError
from accountlink.db.models import AuthProvider, User
from accountlink.repositories.sql import SqlAuthProviderRepository, SqlUserRepository
from accountlink.schemas.identity import CanonicalIdentity, LoginEvent
from accountlink.services.identity_linker import CreateNewUser, IdentityLinker
from accountlink.services.login import resolve_with_retry

pytestmark = pytest.mark.integration

EMAILS_URL = "https://api.github.com/user/emails"


def google_login(**attrs) -> LoginEvent:
    base = {"sub": "g-1", "name": "Ada Lovelace", "email": "a@x.com", "picture": "https://img/ada.png"}
    base.update(attrs)
    return LoginEvent(provider="google", attributes=base, access_token="ya29.token")


def github_login(token="gho_token", **attrs) -> LoginEvent:
    base = {"id": 42, "login": "octocat", "name": None, "email": None,
            "avatar_url": "https://avatars/42"}
    base.update(attrs)
    return LoginEvent(provider="github", attributes=base, access_token=token)


async def _count(session_factory, model) -> int:
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _links(session_factory):
    async with session_factory() as db:
        rows = await db.execute(select(AuthProvider).order_by(AuthProvider.provider))
        return list(rows.scalars().all())


# ---------- Creation / idempotence ----------
async def test_first_login_registers_user(login_service, session_factory):
    principal = await login_service.resolve(google_login())

    assert principal.name == "a@x.com"
    assert principal.authorities == ["ROLE_USER"]
    assert principal.attributes["name"] == "Ada Lovelace"
    assert principal.attributes["avatar_url"] == "https://img/ada.png"

    [link] = await _links(session_factory)
    assert (link.provider, link.provider_user_id, link.provider_email) == ("GOOGLE", "g-1", "a@x.com")
    assert link.user_id == principal.user_id


async def test_repeat_login_is_idempotent(login_service, session_factory):
    first = await login_service.resolve(google_login())
    second = await login_service.resolve(google_login())

    assert first.user_id == second.user_id
    assert await _count(session_factory, User) == 1
    assert await _count(session_factory, AuthProvider) == 1


# ---------- Merge ----------
async def test_same_email_from_github_merges_into_google_account(login_service, session_factory):
    google = await login_service.resolve(google_login())
    github = await login_service.resolve(github_login(email="a@x.com"))

    assert github.user_id == google.user_id
    assert await _count(session_factory, User) == 1
    links = await _links(session_factory)
    assert [l.provider for l in links] == ["GITHUB", "GOOGLE"]
    assert all(l.user_id == google.user_id for l in links)


async def test_principal_uses_persisted_values_after_merge(login_service):
    await login_service.resolve(google_login())
    principal = await login_service.resolve(
        github_login(email="a@x.com", name="Stale GitHub Name", avatar_url="https://avatars/stale")
    )

    assert principal.attributes["name"] == "Ada Lovelace"
    assert principal.attributes["avatar_url"] == "https://img/ada.png"
    assert principal.attributes["login"] == "octocat"


# ---------- Missing email ----------
async def test_missing_email_uses_deterministic_placeholder(login_service, session_factory):
    first = await login_service.resolve(github_login(token=None))
    second = await login_service.resolve(github_login(token=None))

    assert first.name == second.name == "github_42@no-email.local"
    assert first.user_id == second.user_id
    assert await _count(session_factory, User) == 1


async def test_github_email_list_feeds_the_login(login_service, httpx_mock):
    httpx_mock.add_response(
        url=EMAILS_URL,
        json=[
            {"email": "p@x.com", "verified": False, "primary": True},
            {"email": "v@x.com", "verified": True, "primary": False},
        ],
    )
    principal = await login_service.resolve(github_login())

    assert principal.name == "v@x.com"
    assert principal.attributes["name"] == "octocat"


async def test_email_list_outage_still_logs_in(login_service, httpx_mock):
    httpx_mock.add_response(url=EMAILS_URL, status_code=503)
    principal = await login_service.resolve(github_login())
    assert principal.name == "github_42@no-email.local"


# ---------- Case A email sync ----------
async def test_provider_email_change_moves_user_email(login_service, session_factory):
    before = await login_service.resolve(google_login())
    after = await login_service.resolve(google_login(email="new@x.com"))

    assert after.user_id == before.user_id
    assert after.name == "new@x.com"
    [link] = await _links(session_factory)
    assert link.provider_email == "new@x.com"


# ---------- Constraints / concurrency ----------
async def test_store_rejects_duplicate_email(db):
    users = SqlUserRepository(db)
    await users.save_user(User(email="a@x.com", display_name="A"))
    with pytest.raises(IdentityConflictError):
        await users.save_user(User(email="a@x.com", display_name="B"))
    await db.rollback()


async def test_store_rejects_duplicate_provider_account(db):
    users, links = SqlUserRepository(db), SqlAuthProviderRepository(db)
    a = await users.save_user(User(email="a@x.com"))
    b = await users.save_user(User(email="b@x.com"))
    await links.save_auth_provider(AuthProvider(user_id=a.id, provider="GITHUB", provider_user_id="42"))
    with pytest.raises(IdentityConflictError):
        await links.save_auth_provider(AuthProvider(user_id=b.id, provider="GITHUB", provider_user_id="42"))
    await db.rollback()


async def test_store_allows_repeated_empty_provider_user_id(db):
    users, links = SqlUserRepository(db), SqlAuthProviderRepository(db)
    a = await users.save_user(User(email="a@x.com"))
    b = await users.save_user(User(email="b@x.com"))
    await links.save_auth_provider(AuthProvider(user_id=a.id, provider="GITHUB", provider_user_id=""))
    await links.save_auth_provider(AuthProvider(user_id=b.id, provider="GITHUB", provider_user_id=""))
    await db.commit()


async def test_losing_a_creation_race_raises_conflict_then_retry_merges(session_factory, login_service):
    identity = CanonicalIdentity(
        provider_key="GOOGLE", provider_user_id="g-1", email="a@x.com", display_name="Ada"
    )

    async with session_factory() as loser:
        linker = IdentityLinker(SqlUserRepository(loser), SqlAuthProviderRepository(loser))
        decision = await linker.decide(identity)
        assert isinstance(decision, CreateNewUser)

        # a concurrent GitHub login for the same person commits first
        async with session_factory() as winner:
            async with winner.begin():
                await IdentityLinker(
                    SqlUserRepository(winner), SqlAuthProviderRepository(winner)
                ).link(identity.model_copy(update={"provider_key": "GITHUB", "provider_user_id": "42"}))

        with pytest.raises(IdentityConflictError):
            await linker.apply(identity, decision)
        await loser.rollback()

    assert await _count(session_factory, User) == 1

    # re-invoking observes the committed row (Case B)
    result = await login_service.link(identity)
    assert result.outcome == "merged"
    assert await _count(session_factory, User) == 1
    assert await _count(session_factory, AuthProvider) == 2


async def test_resolve_with_retry_reinvokes_after_conflict(login_service, monkeypatch):
    real_resolve = login_service.resolve
    calls = []

    async def flaky_resolve(event):
        calls.append(event)
        if len(calls) == 1:
            raise IdentityConflictError("lost the race")
        return await real_resolve(event)

    monkeypatch.setattr(login_service, "resolve", flaky_resolve)

    principal = await resolve_with_retry(login_service, google_login())
    assert principal.name == "a@x.com"
    assert len(calls) == 2


async def test_resolve_with_retry_gives_up(login_service, monkeypatch):
    async def always_conflicts(event):
        raise IdentityConflictError("lost the race")

    monkeypatch.setattr(login_service, "resolve", always_conflicts)

    with pytest.raises(IdentityConflictError):
        await resolve_with_retry(login_service, google_login(), retries=2)


# ---------- Lifecycle ----------
async def test_deleting_user_cascades_to_links(login_service, session_factory):
    await login_service.resolve(google_login())
    await login_service.resolve(github_login(email="a@x.com"))
    assert await _count(session_factory, AuthProvider) == 2

    async with session_factory() as db:
        async with db.begin():
            await db.execute(delete(User))

    assert await _count(session_factory, AuthProvider) == 0


async def test_timestamps_are_set(login_service, session_factory):
    principal = await login_service.resolve(google_login())
    async with session_factory() as db:
        user = await SqlUserRepository(db).get_user(principal.user_id)
        assert user.created_at is not None
        assert user.updated_at is not None
        assert user.bio is None


async def test_init_models_is_repeatable(tmp_path):
    from accountlink.core.config import Settings
    from accountlink.db.init_db import init_models

    settings = Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'fresh.db'}")
    await init_models(settings)
    await init_models(settings)
    assert (tmp_path / "fresh.db").exists()


async def test_update_refreshes_updated_at_only(login_service, session_factory):
    principal = await login_service.resolve(google_login())
    async with session_factory() as db:
        before = await SqlUserRepository(db).get_user(principal.user_id)
        created_at, updated_at = before.created_at, before.updated_at

    await asyncio.sleep(0.01)
    # Case A with a new address updates the User row
    await login_service.resolve(google_login(email="new@x.com"))

    async with session_factory() as db:
        after = await SqlUserRepository(db).get_user(principal.user_id)
        assert after.email == "new@x.com"
        assert after.created_at == created_at
        assert after.updated_at > updated_at
