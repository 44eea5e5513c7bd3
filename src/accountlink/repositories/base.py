# src/accountlink/repositories/base.py
from __future__ import annotations

from typing import List, Optional, Protocol
from uuid import UUID

from accountlink.db.models import AuthProvider, User


class UserRepository(Protocol):
    async def find_user_by_email(self, email: str) -> Optional[User]: ...

    async def get_user(self, user_id: UUID) -> Optional[User]: ...

    async def save_user(self, user: User) -> User: ...


class AuthProviderRepository(Protocol):
    """
    Lookups return links with .user populated so callers never trigger a
    lazy load.
    """

    async def find_by_provider_and_provider_user_id(
        self, provider: str, provider_user_id: str
    ) -> Optional[AuthProvider]: ...

    async def find_by_user_and_provider(self, user: User, provider: str) -> Optional[AuthProvider]: ...

    async def save_auth_provider(self, link: AuthProvider) -> AuthProvider: ...

    async def providers_for_user(self, user: User) -> List[str]: ...
