# src/accountlink/api/routes/profile.py
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from accountlink.core.errors import UserNotFoundError
from accountlink.db.session import get_db
from accountlink.schemas.profile import ProfileUpdate, ProfileView
from accountlink.services import profile as profile_service

router = APIRouter(prefix="/users", tags=["profile"])


@router.get("/{user_id}/profile", response_model=ProfileView)
async def read_profile(user_id: UUID, db: AsyncSession = Depends(get_db)) -> ProfileView:
    try:
        return await profile_service.get_profile(db, user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")


@router.put("/{user_id}/profile", response_model=ProfileView)
async def write_profile(
    user_id: UUID,
    body: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
) -> ProfileView:
    try:
        return await profile_service.update_profile(db, user_id, body)
    except UserNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="user not found")
