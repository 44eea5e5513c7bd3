# src/accountlink/repositories/sql.py
from __future__ import annotations

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from accountlink.core.errors import IdentityConflictError
from accountlink.db.models import AuthProvider, User

logger = logging.getLogger(__name__)


async def _flush(db: AsyncSession) -> None:
    """
    Flush pending rows so unique constraints fire here, inside the caller's
    transaction, rather than at commit time.

    This function **must not commit the DB session**; the login owns the
    transaction.
    """
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.info("unique constraint rejected login writes: %s", exc.orig)
        raise IdentityConflictError(str(exc.orig)) from exc


class SqlUserRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def save_user(self, user: User) -> User:
        self.db.add(user)
        await _flush(self.db)
        return user


class SqlAuthProviderRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def find_by_provider_and_provider_user_id(
        self, provider: str, provider_user_id: str
    ) -> Optional[AuthProvider]:
        # Eager-load the owner; lazy relationship access is not allowed
        # under AsyncSession.
        stmt = (
            select(AuthProvider)
            .options(joinedload(AuthProvider.user))
            .where(
                AuthProvider.provider == provider,
                AuthProvider.provider_user_id == provider_user_id,
            )
            .order_by(AuthProvider.created_at)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_by_user_and_provider(self, user: User, provider: str) -> Optional[AuthProvider]:
        stmt = (
            select(AuthProvider)
            .options(joinedload(AuthProvider.user))
            .where(
                AuthProvider.user_id == user.id,
                AuthProvider.provider == provider,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def save_auth_provider(self, link: AuthProvider) -> AuthProvider:
        self.db.add(link)
        await _flush(self.db)
        return link

    async def providers_for_user(self, user: User) -> List[str]:
        stmt = (
            select(AuthProvider.provider)
            .where(AuthProvider.user_id == user.id)
            .order_by(AuthProvider.provider)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
