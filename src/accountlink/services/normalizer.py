# src/accountlink/services/normalizer.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from accountlink.schemas.identity import ProviderProfile

# Attribute carrying the provider's stable subject id, per provider.
# Providers not listed here are tried against _FALLBACK_ID_ATTRS in order.
_ID_ATTRS: dict[str, Sequence[str]] = {
    "google": ("sub",),
    "github": ("id",),
}
_FALLBACK_ID_ATTRS = ("id", "sub")

_NAME_ATTRS = ("name", "login")
_AVATAR_ATTRS = ("picture", "avatar_url")


def _first_non_blank(attributes: Mapping[str, Any], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = attributes.get(key)
        if value is None:
            continue
        text = str(value)
        if text.strip():
            return text
    return None


def provider_name(raw_provider: Optional[str]) -> str:
    """Lower-case registration id used for dispatch ("unknown" when missing)."""
    name = (raw_provider or "").strip().lower()
    return name or "unknown"


def placeholder_display_name(provider: str) -> str:
    return provider[:1].upper() + provider[1:] + " User"


def normalize(raw_provider: Optional[str], attributes: Mapping[str, Any]) -> ProviderProfile:
    """
    Map one provider's userinfo payload onto ProviderProfile.

      google: {"sub", "name", "picture", "email"}
      github: {"id", "login", "name", "avatar_url", "email"}
    """
    provider = provider_name(raw_provider)

    id_attrs = _ID_ATTRS.get(provider, _FALLBACK_ID_ATTRS)
    provider_user_id = (_first_non_blank(attributes, id_attrs) or "").strip()

    display_name = _first_non_blank(attributes, _NAME_ATTRS) or placeholder_display_name(provider)
    avatar_url = _first_non_blank(attributes, _AVATAR_ATTRS)

    return ProviderProfile(
        provider=provider,
        provider_key=provider.upper(),
        provider_user_id=provider_user_id,
        display_name=display_name,
        avatar_url=avatar_url,
    )
