# src/accountlink/services/identity_linker.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Union

from accountlink.core.trace import link_trace
from accountlink.db.models import AuthProvider, User
from accountlink.repositories.base import AuthProviderRepository, UserRepository
from accountlink.schemas.identity import CanonicalIdentity

logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Decisions
# ------------------------------------------------------------
@dataclass(frozen=True)
class LinkedToUser:
    """Case A: the provider account is already linked; its User is authoritative."""

    link: AuthProvider


@dataclass(frozen=True)
class MergeIntoUser:
    """Case B: unknown provider account, but a User already owns the email."""

    user: User
    existing_link: Optional[AuthProvider] = None


@dataclass(frozen=True)
class CreateNewUser:
    """Case C: first login for this person."""


LinkDecision = Union[LinkedToUser, MergeIntoUser, CreateNewUser]
LinkOutcome = Literal["linked", "merged", "created"]


@dataclass
class LinkResult:
    user: User
    outcome: LinkOutcome
    link_created: bool = False
    user_created: bool = False


class IdentityLinker:
    """
    Resolve one canonical login to exactly one User.

    Rules:
      1. If an AuthProvider(provider, provider_user_id) exists -> its User.
      2. Else, if a User has the resolved email -> link the provider to it.
      3. Else, create a new User + AuthProvider.

    The linker never commits; the caller wraps link() in one transaction.
    """

    def __init__(
        self,
        users: UserRepository,
        links: AuthProviderRepository,
        *,
        sync_user_email: bool = True,
    ) -> None:
        self.users = users
        self.links = links
        self.sync_user_email = sync_user_email

    async def decide(self, identity: CanonicalIdentity) -> LinkDecision:
        link = await self.links.find_by_provider_and_provider_user_id(
            identity.provider_key, identity.provider_user_id
        )
        if link is not None:
            return LinkedToUser(link)

        user = await self.users.find_user_by_email(identity.email)
        if user is not None:
            existing = await self.links.find_by_user_and_provider(user, identity.provider_key)
            return MergeIntoUser(user, existing)

        return CreateNewUser()

    async def apply(self, identity: CanonicalIdentity, decision: LinkDecision) -> LinkResult:
        if isinstance(decision, LinkedToUser):
            return await self._apply_linked(identity, decision)
        if isinstance(decision, MergeIntoUser):
            return await self._apply_merge(identity, decision)
        if isinstance(decision, CreateNewUser):
            return await self._apply_create(identity)
        raise TypeError(f"unknown link decision: {decision!r}")

    async def link(self, identity: CanonicalIdentity) -> LinkResult:
        decision = await self.decide(identity)
        return await self.apply(identity, decision)

    # ------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------
    async def _apply_linked(self, identity: CanonicalIdentity, decision: LinkedToUser) -> LinkResult:
        link = decision.link
        user = link.user
        email = identity.email

        if email != link.provider_email:
            link.provider_email = email
            await self.links.save_auth_provider(link)

        if self.sync_user_email and email != user.email:
            holder = await self.users.find_user_by_email(email)
            if holder is not None and holder.id != user.id:
                # Another account owns this address; keep both emails unique.
                logger.warning(
                    "not syncing email for user %s: %s already belongs to user %s",
                    user.id, email, holder.id,
                )
            else:
                user.email = email
                await self.users.save_user(user)

        link_trace("linker.case_a", provider=identity.provider_key, user_id=user.id)
        return LinkResult(user=user, outcome="linked")

    async def _apply_merge(self, identity: CanonicalIdentity, decision: MergeIntoUser) -> LinkResult:
        user = decision.user
        existing = decision.existing_link
        created = False

        if existing is None:
            await self.links.save_auth_provider(
                AuthProvider(
                    user_id=user.id,
                    provider=identity.provider_key,
                    provider_user_id=identity.provider_user_id,
                    provider_email=identity.email,
                )
            )
            created = True
        else:
            # Same user + provider already linked (e.g. an earlier link stored
            # an empty provider_user_id): fill gaps, never add a second row.
            changed = False
            if not (existing.provider_user_id or "").strip() and identity.provider_user_id.strip():
                existing.provider_user_id = identity.provider_user_id
                changed = True
            if identity.email != existing.provider_email:
                existing.provider_email = identity.email
                changed = True
            if changed:
                await self.links.save_auth_provider(existing)

        link_trace(
            "linker.case_b",
            provider=identity.provider_key,
            user_id=user.id,
            link_created=created,
        )
        return LinkResult(user=user, outcome="merged", link_created=created)

    async def _apply_create(self, identity: CanonicalIdentity) -> LinkResult:
        user = await self.users.save_user(
            User(
                email=identity.email,
                display_name=identity.display_name,
                avatar_url=identity.avatar_url,
                bio=None,
            )
        )
        await self.links.save_auth_provider(
            AuthProvider(
                user_id=user.id,
                provider=identity.provider_key,
                provider_user_id=identity.provider_user_id,
                provider_email=identity.email,
            )
        )
        logger.info("registered user %s via %s", user.id, identity.provider_key)
        link_trace("linker.case_c", provider=identity.provider_key, user_id=user.id)
        return LinkResult(user=user, outcome="created", link_created=True, user_created=True)
