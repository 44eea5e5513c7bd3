# src/accountlink/services/email_resolver.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from accountlink.core.config import Settings
from accountlink.core.trace import link_trace
from accountlink.auth.github import GithubEmailClient
from accountlink.schemas.identity import ProviderProfile, ResolvedEmail

logger = logging.getLogger(__name__)


class ProviderEmailClient(Protocol):
    async def fetch_emails(self, access_token: str) -> List[Dict[str, Any]]: ...


def _non_blank(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _entry_email(entry: Mapping[str, Any]) -> Optional[str]:
    value = entry.get("email")
    if not isinstance(value, str):
        return None
    return value.strip() or None


def select_email(entries: List[Mapping[str, Any]]) -> Optional[str]:
    """
    Pick one address from a provider email list, in order of preference:
      1) primary and verified
      2) first verified
      3) first entry
    Only JSON booleans count as true flags and only JSON strings as addresses.
    """
    for entry in entries:
        email = _entry_email(entry)
        if email and entry.get("primary") is True and entry.get("verified") is True:
            return email

    for entry in entries:
        email = _entry_email(entry)
        if email and entry.get("verified") is True:
            return email

    if entries:
        return _entry_email(entries[0])
    return None


def placeholder_email(provider: str, provider_user_id: str, domain: str = "no-email.local") -> str:
    """
    Deterministic stand-in for logins that carry no email, so the unique
    users.email constraint still holds. Traceable to the provider account
    when its id is known.
    """
    if provider_user_id and provider_user_id.strip():
        return f"{provider}_{provider_user_id}@{domain}"
    return f"{provider}_unknown_{uuid.uuid4()}@{domain}"


class EmailResolver:
    def __init__(
        self,
        clients: Optional[Mapping[str, ProviderEmailClient]] = None,
        *,
        placeholder_domain: str = "no-email.local",
    ) -> None:
        # keyed by lower-case provider name
        self.clients: Dict[str, ProviderEmailClient] = dict(clients or {})
        self.placeholder_domain = placeholder_domain

    @classmethod
    def from_settings(cls, settings: Settings, client: Optional[httpx.AsyncClient] = None) -> "EmailResolver":
        github = GithubEmailClient(
            url=settings.GITHUB_EMAILS_URL,
            timeout=settings.EMAIL_LOOKUP_TIMEOUT_SEC,
            client=client,
        )
        return cls({"github": github}, placeholder_domain=settings.PLACEHOLDER_EMAIL_DOMAIN)

    async def resolve(
        self,
        profile: ProviderProfile,
        attributes: Mapping[str, Any],
        access_token: Optional[str] = None,
    ) -> ResolvedEmail:
        email = _non_blank(attributes.get("email"))
        if email:
            return ResolvedEmail(email=email, source="attributes")

        client = self.clients.get(profile.provider)
        if client is not None and _non_blank(access_token):
            email = await self._lookup(profile.provider, client, access_token)
            if email:
                link_trace("email.list.hit", provider=profile.provider)
                return ResolvedEmail(email=email, source="email_list")

        email = placeholder_email(profile.provider, profile.provider_user_id, self.placeholder_domain)
        link_trace("email.placeholder", provider=profile.provider, email=email)
        return ResolvedEmail(email=email, synthesized=True, source="placeholder")

    async def _lookup(self, provider: str, client: ProviderEmailClient, access_token: str) -> Optional[str]:
        # Any failure here degrades to "no email"; the login proceeds with a placeholder.
        try:
            entries = await client.fetch_emails(access_token)
        except Exception as exc:
            logger.warning("Unable to fetch %s emails: %s", provider, exc)
            logger.debug("Full exception fetching %s emails", provider, exc_info=True)
            return None
        return select_email(entries)
