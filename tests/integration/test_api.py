# tests/integration/test_api.py
import uuid

import pytest

from accountlink.core.errors import IdentityConflictError

pytestmark = pytest.mark.integration


async def _login(client, provider="google", **attrs):
    attributes = {"sub": "g-1", "name": "Ada Lovelace", "email": "a@x.com"}
    attributes.update(attrs)
    r = await client.post(f"/auth/oauth2/{provider}/resolve", json={"attributes": attributes})
    assert r.status_code == 200, r.text
    return r.json()


async def test_healthz(client):
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_resolve_returns_principal(client):
    body = await _login(client)
    assert body["name"] == "a@x.com"
    assert body["authorities"] == ["ROLE_USER"]
    assert body["name_attribute_key"] == "email"
    assert body["attributes"]["email"] == "a@x.com"
    assert body["attributes"]["name"] == "Ada Lovelace"
    assert body["attributes"]["sub"] == "g-1"
    uuid.UUID(body["user_id"])


async def test_resolve_same_login_twice(client):
    first = await _login(client)
    second = await _login(client)
    assert first["user_id"] == second["user_id"]


async def test_profile_roundtrip(client):
    principal = await _login(client)
    await _login(client, provider="github", id=42, login="octocat", email="a@x.com")
    user_id = principal["user_id"]

    r = await client.get(f"/users/{user_id}/profile")
    assert r.status_code == 200, r.text
    profile = r.json()
    assert profile["email"] == "a@x.com"
    assert profile["display_name"] == "Ada Lovelace"
    assert profile["bio"] is None
    assert profile["providers"] == ["GITHUB", "GOOGLE"]

    r = await client.put(
        f"/users/{user_id}/profile",
        json={"display_name": "  Countess Ada ", "bio": "Analytical engines."},
    )
    assert r.status_code == 200, r.text
    assert r.json()["display_name"] == "Countess Ada"
    assert r.json()["bio"] == "Analytical engines."

    # the next login shows the edited name, not the provider's
    again = await _login(client)
    assert again["attributes"]["name"] == "Countess Ada"


async def test_profile_blank_bio_is_cleared(client):
    user_id = (await _login(client))["user_id"]
    r = await client.put(f"/users/{user_id}/profile", json={"display_name": "Ada", "bio": "   "})
    assert r.status_code == 200
    assert r.json()["bio"] is None


async def test_profile_rejects_blank_display_name(client):
    user_id = (await _login(client))["user_id"]
    r = await client.put(f"/users/{user_id}/profile", json={"display_name": "  "})
    assert r.status_code == 422


async def test_profile_unknown_user(client):
    missing = uuid.uuid4()
    assert (await client.get(f"/users/{missing}/profile")).status_code == 404
    r = await client.put(f"/users/{missing}/profile", json={"display_name": "X"})
    assert r.status_code == 404


async def test_persistent_conflict_maps_to_409(client, app, monkeypatch):
    async def always_conflicts(event):
        raise IdentityConflictError("lost the race")

    monkeypatch.setattr(app.state.login_service, "resolve", always_conflicts)

    r = await client.post("/auth/oauth2/google/resolve", json={"attributes": {"sub": "g-1"}})
    assert r.status_code == 409


async def test_default_resolver_holds_no_client_without_lifespan(settings, engine):
    from accountlink.main import create_app

    app = create_app(settings, engine=engine)
    github = app.state.login_service.email_resolver.clients["github"]
    assert github.client is None
    assert app.state.http_client is None


async def test_lifespan_shares_and_closes_http_client(settings, engine):
    from accountlink.main import create_app

    app = create_app(settings, engine=engine)
    service = app.state.login_service

    async with app.router.lifespan_context(app):
        http = app.state.http_client
        assert http is not None and not http.is_closed
        assert service.email_resolver.clients["github"].client is http

    assert http.is_closed
    assert service.email_resolver.clients["github"].client is None
