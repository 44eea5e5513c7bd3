# src/accountlink/core/errors.py
from __future__ import annotations


class AccountLinkError(Exception):
    """Base class for errors raised by the linking engine."""

    retryable: bool = False


class EmailLookupError(AccountLinkError):
    """The provider's secondary email endpoint could not be used."""


class IdentityConflictError(AccountLinkError):
    """
    A uniqueness constraint rejected the login's writes.

    Raised when a concurrent login committed the same User email or the same
    provider link first. The transaction has been rolled back; resolving the
    same login again will observe the committed row.
    """

    retryable = True


class UserNotFoundError(AccountLinkError):
    def __init__(self, user_id) -> None:
        super().__init__(f"user not found: {user_id}")
        self.user_id = user_id
