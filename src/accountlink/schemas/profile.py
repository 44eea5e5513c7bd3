# src/accountlink/schemas/profile.py

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ProfileView(BaseModel):
    id: UUID
    email: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    providers: List[str] = Field(default_factory=list)


class ProfileUpdate(BaseModel):
    """Editable profile fields. email and avatar are owned by the providers."""

    display_name: str
    bio: Optional[str] = None

    @field_validator("display_name")
    @classmethod
    def _display_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("display_name must not be blank")
        return v

    @field_validator("bio")
    @classmethod
    def _blank_bio_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v
