# src/accountlink/services/profile.py
from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from accountlink.core.errors import UserNotFoundError
from accountlink.db.models import User
from accountlink.repositories.sql import SqlAuthProviderRepository, SqlUserRepository
from accountlink.schemas.profile import ProfileUpdate, ProfileView


async def _view(links: SqlAuthProviderRepository, user: User) -> ProfileView:
    return ProfileView(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        bio=user.bio,
        providers=await links.providers_for_user(user),
    )


async def get_profile(db: AsyncSession, user_id: UUID) -> ProfileView:
    user = await SqlUserRepository(db).get_user(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return await _view(SqlAuthProviderRepository(db), user)


async def update_profile(db: AsyncSession, user_id: UUID, update: ProfileUpdate) -> ProfileView:
    """
    Only display_name and bio are user-editable; email and avatar stay
    owned by the identity linker.
    """
    users = SqlUserRepository(db)
    user = await users.get_user(user_id)
    if user is None:
        raise UserNotFoundError(user_id)

    user.display_name = update.display_name
    user.bio = update.bio
    await users.save_user(user)
    await db.commit()

    return await _view(SqlAuthProviderRepository(db), user)
