# src/accountlink/schemas/__init__.py

from .identity import (
    CanonicalIdentity,
    EmailSource,
    LoginEvent,
    LoginRequest,
    ProviderProfile,
    ResolvedEmail,
)
from .principal import OAuth2Principal, ROLE_USER
from .profile import ProfileUpdate, ProfileView

__all__ = [
    "CanonicalIdentity",
    "EmailSource",
    "LoginEvent",
    "LoginRequest",
    "ProviderProfile",
    "ResolvedEmail",
    "OAuth2Principal",
    "ROLE_USER",
    "ProfileUpdate",
    "ProfileView",
]
