# src/accountlink/auth/github.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from accountlink.core.errors import EmailLookupError

logger = logging.getLogger(__name__)

GITHUB_EMAILS_URL = "https://api.github.com/user/emails"


class GithubEmailClient:
    """
    Reads GET /user/emails for a GitHub access token.

    GitHub omits "email" from /user when the address is private; the list
    endpoint still returns it to a token with the user:email scope:
      [{"email": "...", "primary": true, "verified": true, "visibility": ...}, ...]
    """

    def __init__(
        self,
        url: str = GITHUB_EMAILS_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.client = client

    async def fetch_emails(self, access_token: str) -> List[Dict[str, Any]]:
        own = self.client or httpx.AsyncClient(timeout=self.timeout)
        try:
            r = await own.get(
                self.url,
                headers={
                    "Authorization": f"Bearer {access_token}",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
            r.raise_for_status()
            try:
                data = r.json()
            except ValueError as exc:
                raise EmailLookupError(f"malformed email list from {self.url}") from exc
        finally:
            if self.client is None:
                await own.aclose()

        if not isinstance(data, list):
            raise EmailLookupError(f"expected a list from {self.url}, got {type(data).__name__}")
        return [entry for entry in data if isinstance(entry, dict)]
