# src/accountlink/api/routes/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from accountlink.api.deps import get_login_service
from accountlink.core.errors import IdentityConflictError
from accountlink.schemas.identity import LoginEvent, LoginRequest
from accountlink.schemas.principal import OAuth2Principal
from accountlink.services.login import LoginService, resolve_with_retry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/auth/oauth2/{provider}/resolve", response_model=OAuth2Principal)
async def resolve_login(
    provider: str,
    body: LoginRequest,
    service: LoginService = Depends(get_login_service),
) -> OAuth2Principal:
    """
    Called by the OAuth2 handshake layer once the provider's token has been
    exchanged and its userinfo verified. Returns the DB-backed principal.
    """
    event = LoginEvent(provider=provider, attributes=body.attributes, access_token=body.access_token)
    try:
        return await resolve_with_retry(service, event)
    except IdentityConflictError as ex:
        logger.warning("login for provider %s still conflicting after retry: %s", provider, ex)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="concurrent login conflict, retry",
        )
