from .base import AuthProviderRepository, UserRepository
from .sql import SqlAuthProviderRepository, SqlUserRepository

__all__ = [
    "AuthProviderRepository",
    "UserRepository",
    "SqlAuthProviderRepository",
    "SqlUserRepository",
]
