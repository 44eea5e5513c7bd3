# src/accountlink/services/principal.py
from __future__ import annotations

from typing import Any, Mapping

from accountlink.db.models import User
from accountlink.schemas.principal import OAuth2Principal, ROLE_USER


def build_principal(attributes: Mapping[str, Any], user: User) -> OAuth2Principal:
    """
    Raw provider attributes, with email / name / avatar_url taken from the
    persisted User so stale or synthesized values never reach the caller.
    """
    merged = dict(attributes)
    merged["email"] = user.email
    merged["name"] = user.display_name
    merged["avatar_url"] = user.avatar_url

    return OAuth2Principal(
        user_id=user.id,
        authorities=[ROLE_USER],
        attributes=merged,
        name_attribute_key="email",
    )
