# src/accountlink/schemas/identity.py

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


EmailSource = Literal["attributes", "email_list", "placeholder"]


class LoginEvent(BaseModel):
    """
    What the OAuth2 handshake layer hands us after token exchange.

    The attributes are already verified by that layer; access_token is only
    used for the provider's secondary email-list call.
    """

    # registration id as configured by the caller, e.g. "google", "github"
    provider: Optional[str] = None

    # raw userinfo payload from the provider
    attributes: Dict[str, Any] = Field(default_factory=dict)

    access_token: Optional[str] = None


class LoginRequest(BaseModel):
    """Body of POST /auth/oauth2/{provider}/resolve."""

    attributes: Dict[str, Any] = Field(default_factory=dict)
    access_token: Optional[str] = None


class ProviderProfile(BaseModel):
    """
    Provider attributes mapped onto one schema.

    provider is lower-case (dispatch); provider_key is upper-case (stored).
    """

    provider: str
    provider_key: str
    provider_user_id: str = ""
    display_name: str
    avatar_url: Optional[str] = None


class ResolvedEmail(BaseModel):
    email: str
    synthesized: bool = False
    source: EmailSource = "attributes"


class CanonicalIdentity(BaseModel):
    """Input to the identity linker: one login, fully normalized."""

    provider_key: str
    provider_user_id: str = ""
    email: str
    display_name: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_parts(cls, profile: ProviderProfile, resolved: ResolvedEmail) -> "CanonicalIdentity":
        return cls(
            provider_key=profile.provider_key,
            provider_user_id=profile.provider_user_id,
            email=resolved.email,
            display_name=profile.display_name,
            avatar_url=profile.avatar_url,
        )
