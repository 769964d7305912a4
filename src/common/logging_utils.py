"""Logging helpers shared across the resolver, registry and CLI modules.

Keeps structured ``extra=`` payloads consistent so log handlers (or tests
using ``caplog``) can filter by event/component without parsing messages.
"""

from __future__ import annotations

import logging
import re
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "auth", "key", "api_key", "password", "secret"}
_REDACTED = "[REDACTED]"


def configure_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger for CLI use.

    Args:
        level: Log level name (DEBUG, INFO, ...).
        logfile: Optional file path; when set, logs go there instead of stderr.
    """
    numeric = getattr(logging, str(level).upper(), logging.INFO)
    handlers: list[logging.Handler]
    if logfile:
        handlers = [logging.FileHandler(logfile, encoding="utf-8")]
    else:
        handlers = [logging.StreamHandler(sys.stderr)]
    logging.basicConfig(
        level=numeric,
        format=Constants.LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` dict for structured logging, dropping None values."""
    return {k: v for k, v in fields.items() if v is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by this logger."""
    return logger.isEnabledFor(logging.DEBUG)


def safe_url(url: str) -> str:
    """Strip credentials and sensitive query values from a URL for logging."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return re.sub(r"//[^@/]+@", f"//{_REDACTED}@", url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = f"{_REDACTED}@{netloc.rsplit('@', 1)[1]}"

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = "&".join(
            f"{k}={_REDACTED if k.lower() in _SENSITIVE_QUERY_KEYS else v}" for k, v in pairs
        )

    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds; still ticking while inside the block."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
