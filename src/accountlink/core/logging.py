# src/accountlink/core/logging.py
from __future__ import annotations
import logging
from typing import Optional

from .config import Settings, get_settings

_FMT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S"

# httpx logs every outbound request at INFO; the email lookup only needs failures.
_QUIET = ("httpx", "httpcore")


def _level(name: str) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure logging from settings. Safe to call more than once: the
    handler is installed once, levels are re-applied every time.

    LOG_LEVEL sets the root level. DB_ECHO routes SQL statements through the
    sqlalchemy.engine logger (INFO) instead of create_async_engine(echo=...),
    so they share the root handler and format.
    """
    settings = settings or get_settings()

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_FMT, datefmt=_DATEFMT))
        root.addHandler(handler)
    root.setLevel(_level(settings.LOG_LEVEL))

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DB_ECHO else logging.WARNING
    )
    for name in _QUIET:
        logging.getLogger(name).setLevel(logging.WARNING)
