# src/accountlink/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

# Load .env before anything reads the environment
load_dotenv()

_TRUTHY = ("1", "true", "yes", "on")


def env_bool(var: str, default: bool) -> bool:
    raw = os.getenv(var)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(var: str, default: int) -> int:
    try:
        return int(os.getenv(var, str(default)))
    except ValueError:
        return default


def _env_float(var: str, default: float) -> float:
    try:
        return float(os.getenv(var, str(default)))
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration. Every field maps to an env var of the same name.

    SYNC_USER_EMAIL_ON_RELOGIN:
      When a known provider account logs in again with a different email,
      also overwrite the owning User's primary email. This changes which
      address future merges key on, so it is a switch rather than a constant.
    """

    DATABASE_URL: str = "sqlite+aiosqlite:///./accountlink.db"
    DB_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    GITHUB_EMAILS_URL: str = "https://api.github.com/user/emails"
    EMAIL_LOOKUP_TIMEOUT_SEC: float = 10.0
    PLACEHOLDER_EMAIL_DOMAIN: str = "no-email.local"

    SYNC_USER_EMAIL_ON_RELOGIN: bool = True
    LOGIN_CONFLICT_RETRIES: int = 1

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            DATABASE_URL=os.getenv("DATABASE_URL", cls.DATABASE_URL),
            DB_ECHO=env_bool("DB_ECHO", cls.DB_ECHO),
            LOG_LEVEL=os.getenv("LOG_LEVEL", cls.LOG_LEVEL),
            GITHUB_EMAILS_URL=os.getenv("GITHUB_EMAILS_URL", cls.GITHUB_EMAILS_URL),
            EMAIL_LOOKUP_TIMEOUT_SEC=_env_float("EMAIL_LOOKUP_TIMEOUT_SEC", cls.EMAIL_LOOKUP_TIMEOUT_SEC),
            PLACEHOLDER_EMAIL_DOMAIN=os.getenv("PLACEHOLDER_EMAIL_DOMAIN", cls.PLACEHOLDER_EMAIL_DOMAIN),
            SYNC_USER_EMAIL_ON_RELOGIN=env_bool("SYNC_USER_EMAIL_ON_RELOGIN", cls.SYNC_USER_EMAIL_ON_RELOGIN),
            LOGIN_CONFLICT_RETRIES=max(0, _env_int("LOGIN_CONFLICT_RETRIES", cls.LOGIN_CONFLICT_RETRIES)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
