# src/accountlink/services/login.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from accountlink.core.config import Settings
from accountlink.core.errors import IdentityConflictError
from accountlink.core.trace import link_trace
from accountlink.repositories.sql import SqlAuthProviderRepository, SqlUserRepository
from accountlink.schemas.identity import CanonicalIdentity, LoginEvent
from accountlink.schemas.principal import OAuth2Principal
from accountlink.services.email_resolver import EmailResolver
from accountlink.services.identity_linker import IdentityLinker, LinkResult
from accountlink.services.normalizer import normalize
from accountlink.services.principal import build_principal

logger = logging.getLogger(__name__)


class LoginService:
    """
    One login = normalize -> resolve email -> link (one transaction) -> principal.

    The secondary email lookup happens before the transaction opens so no DB
    transaction is held across provider network I/O.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        email_resolver: EmailResolver,
        settings: Settings,
    ) -> None:
        self.session_factory = session_factory
        self.email_resolver = email_resolver
        self.settings = settings

    async def resolve(self, event: LoginEvent) -> OAuth2Principal:
        profile = normalize(event.provider, event.attributes)
        attributes = dict(event.attributes)

        resolved = await self.email_resolver.resolve(profile, attributes, event.access_token)
        if resolved.source != "attributes":
            # surface the email we actually used, even before the DB override
            attributes["email"] = resolved.email

        identity = CanonicalIdentity.from_parts(profile, resolved)
        result = await self.link(identity)

        link_trace(
            "login.resolved",
            provider=profile.provider_key,
            outcome=result.outcome,
            user_id=result.user.id,
            email_source=resolved.source,
        )
        return build_principal(attributes, result.user)

    async def link(self, identity: CanonicalIdentity) -> LinkResult:
        """Run the Case A/B/C decision and its writes atomically."""
        async with self.session_factory() as db:
            try:
                async with db.begin():
                    linker = IdentityLinker(
                        SqlUserRepository(db),
                        SqlAuthProviderRepository(db),
                        sync_user_email=self.settings.SYNC_USER_EMAIL_ON_RELOGIN,
                    )
                    return await linker.link(identity)
            except IntegrityError as exc:
                # constraint fired at commit rather than at an explicit flush
                raise IdentityConflictError(str(exc.orig)) from exc


async def resolve_with_retry(
    service: LoginService,
    event: LoginEvent,
    retries: Optional[int] = None,
) -> OAuth2Principal:
    """
    Re-run a login that lost a uniqueness race. The retry sees the winner's
    committed rows and lands in Case A or B.
    """
    attempts = 1 + (service.settings.LOGIN_CONFLICT_RETRIES if retries is None else retries)
    for attempt in range(1, attempts + 1):
        try:
            return await service.resolve(event)
        except IdentityConflictError:
            if attempt >= attempts:
                raise
            logger.info("login conflict for provider %s, retrying (%d/%d)", event.provider, attempt, attempts - 1)
    raise AssertionError("unreachable")
