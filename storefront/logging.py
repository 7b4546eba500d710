"""
Logging for the cart service.

Every record carries the cart session it was emitted for (`[%(session)s]`).
The session is bound per request by `CartSessions.resolve`; background
persistence tasks inherit it because asyncio copies the current context
when a task is created.

Usage:
    from storefront.logging import get_logger
    logger = get_logger(__name__)

    logger.warning(f"Failed to save cart for user {sanitize_id_for_logging(user_id)}: {e}")
"""

import logging
import os
import sys
from contextvars import ContextVar
from functools import cache

LOG_FORMAT = "%(asctime)s %(levelname)s [%(session)s] %(name)s: %(message)s"
# Vercel adds its own timestamps
LOG_FORMAT_SIMPLE = "%(levelname)s [%(session)s] %(name)s: %(message)s"

NO_SESSION = "-"

# Chatty per-request loggers of the Supabase and Upstash HTTP clients
QUIET_LOGGERS = ("httpx", "httpcore", "hpack")

_session: ContextVar[str] = ContextVar("cart_session", default=NO_SESSION)

# Newlines, tabs and NULs in user-controlled ids could forge log lines (CWE-117)
_UNSAFE_CHARS = str.maketrans({"\n": "\\n", "\r": "\\r", "\t": "\\t", "\x00": None})


class SessionFilter(logging.Filter):
    """Stamps records with the bound cart session."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session = _session.get()
        return True


def bind_session(session_id: str | None) -> None:
    """Bind the cart session for the current request context."""
    _session.set(session_id or NO_SESSION)


def current_session() -> str:
    return _session.get()


def configure_logging() -> None:
    """Attach a stdout handler to the root logger, once."""
    root = logging.getLogger()
    if root.handlers:
        return

    level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)
    is_production = os.environ.get("VERCEL") == "1"

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SessionFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))

    root.setLevel(level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """First 8 chars of an id with control characters escaped, or "N/A"."""
    if not id_value:
        return "N/A"
    return str(id_value).translate(_UNSAFE_CHARS)[:8]


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "SessionFilter",
    "bind_session",
    "current_session",
    "configure_logging",
    "get_logger",
    "sanitize_id_for_logging",
]
