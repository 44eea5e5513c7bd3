# src/accountlink/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from accountlink import __version__
from accountlink.core.config import Settings, get_settings
from accountlink.core.logging import setup_logging
from accountlink.db.session import create_engine, create_session_factory, test_connection
from accountlink.services.email_resolver import EmailResolver
from accountlink.services.login import LoginService


def create_app(
    settings: Optional[Settings] = None,
    *,
    engine: Optional[AsyncEngine] = None,
    email_resolver: Optional[EmailResolver] = None,
) -> FastAPI:
    """
    Build the API. engine / email_resolver can be injected (tests); by
    default both come from settings.

    Without a lifespan (e.g. httpx.ASGITransport) the default resolver opens
    and closes an httpx client per lookup. Under a server, lifespan swaps in
    one pooled client and closes it on shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    engine = engine or create_engine(settings)
    session_factory = create_session_factory(engine)

    owns_resolver = email_resolver is None
    login_service = LoginService(
        session_factory,
        email_resolver or EmailResolver.from_settings(settings),
        settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await test_connection(engine)
        http_client: Optional[httpx.AsyncClient] = None
        if owns_resolver:
            http_client = httpx.AsyncClient(timeout=settings.EMAIL_LOOKUP_TIMEOUT_SEC)
            login_service.email_resolver = EmailResolver.from_settings(settings, client=http_client)
        app.state.http_client = http_client
        try:
            yield
        finally:
            if http_client is not None:
                login_service.email_resolver = EmailResolver.from_settings(settings)
                await http_client.aclose()
            await engine.dispose()

    app = FastAPI(title="accountlink", version=__version__, lifespan=lifespan)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.login_service = login_service
    app.state.http_client = None

    from .api.routes.auth import router as auth_router
    from .api.routes.profile import router as profile_router

    app.include_router(auth_router)
    app.include_router(profile_router)

    @app.get("/healthz")
    def health():
        return {"status": "ok"}

    return app
