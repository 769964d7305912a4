"""Shared async HTTP helpers used by the registry and vulnerability clients.

Encapsulates the request/parse/log sequence so callers only deal with a
``(status, payload)`` pair. Transport failures surface as ``aiohttp.ClientError``
or ``asyncio.TimeoutError``; callers decide whether they are fatal.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "PkgLens/1.0",
    "Accept": "application/json",
}


def build_session(timeout: float, headers: Optional[Dict[str, str]] = None) -> aiohttp.ClientSession:
    """Create a ClientSession with the project defaults."""
    merged = {**DEFAULT_HEADERS, **(headers or {})}
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers=merged,
    )


async def request_json(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    *,
    context: str,
    json_body: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Tuple[int, Optional[Any]]:
    """Perform a request and decode a JSON body with DEBUG traces.

    Args:
        session: Open aiohttp session.
        method: HTTP method.
        url: Target URL.
        context: Short tag for logs (e.g. "npm", "osv").
        json_body: Optional JSON payload.
        headers: Optional extra request headers.

    Returns:
        Tuple of (status_code, parsed_json_or_none). The payload is None for
        non-2xx responses and for bodies that are not valid JSON.
    """
    safe_target = safe_url(url)
    with Timer() as timer:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action=method,
                    target=safe_target,
                    context=context,
                ),
            )
        async with session.request(method, url, json=json_body, headers=headers) as response:
            status = response.status
            if status < 200 or status >= 300:
                logger.debug(
                    "HTTP non-2xx response",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action=method,
                        outcome="non_2xx",
                        status_code=status,
                        duration_ms=timer.duration_ms(),
                        target=safe_target,
                        context=context,
                    ),
                )
                return status, None
            try:
                payload = await response.json(content_type=None)
            except ValueError:
                logger.warning(
                    "Couldn't decode JSON from %s",
                    safe_target,
                    extra=extra_context(
                        event="parse",
                        component="http_client",
                        outcome="json_decode_error",
                        status_code=status,
                        context=context,
                    ),
                )
                return status, None

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response ok",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    outcome="success",
                    status_code=status,
                    duration_ms=timer.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return status, payload
