# src/accountlink/core/trace.py
from __future__ import annotations
import logging
from typing import Any

from .config import env_bool

_log = logging.getLogger("accountlink.link")


def trace_enabled() -> bool:
    # read per call, not cached with Settings
    return env_bool("AUTH_TRACE", False)


def _fmt(value: Any) -> str:
    if value is None:
        return "-"
    text = str(value)
    return repr(text) if (" " in text or not text) else text


def link_trace(event: str, **kv: Any) -> None:
    """
    One line per linking step, only when AUTH_TRACE is on:
      [link] linker.case_b provider=GITHUB user_id=... link_created=True
    """
    if not trace_enabled() or not _log.isEnabledFor(logging.INFO):
        return
    fields = " ".join(f"{k}={_fmt(v)}" for k, v in kv.items())
    _log.info("[link] %s %s", event, fields)
