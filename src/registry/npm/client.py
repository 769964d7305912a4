"""NPM registry client: per-package metadata (packuments)."""

from __future__ import annotations

import asyncio
import logging
import urllib.parse
from typing import Optional

import aiohttp

from constants import Constants
from common.http_client import build_session, request_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from registry.cache import MetadataCache
from versioning.models import PackageMetadata

logger = logging.getLogger(__name__)

# Abbreviated packuments omit "deprecated"; ask for the full document.
PACKUMENT_HEADERS = {"Accept": "application/json"}


class RegistryError(Exception):
    """Raised when the registry cannot provide metadata for a package."""

    def __init__(self, package_name: str, status: int, detail: Optional[str] = None):
        self.package_name = package_name
        self.status = status
        message = f"Could not fetch metadata for {package_name}: {status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


def package_url(base_url: str, name: str) -> str:
    """Build the packument URL; scoped names keep '@' and encode '/'."""
    return f"{base_url.rstrip('/')}/{urllib.parse.quote(name, safe='@')}"


class NpmRegistryClient:
    """Async npm registry client with a caller-owned metadata cache."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        cache: Optional[MetadataCache] = None,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Registry root; defaults to Constants.REGISTRY_URL_NPM.
            cache: Cache to read from and populate; a fresh one when omitted.
            timeout: Request timeout in seconds.
            session: Existing session to reuse; it is not closed by stop().
        """
        self.base_url = (base_url or Constants.REGISTRY_URL_NPM).rstrip("/")
        self.cache = cache if cache is not None else MetadataCache()
        self._timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        """Open the HTTP session if needed."""
        if self._session is None:
            self._session = build_session(self._timeout)
            self._owns_session = True

    async def stop(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    async def get_metadata(self, name: str) -> PackageMetadata:
        """Return metadata for ``name``, fetching it on first use.

        Raises:
            RegistryError: on non-2xx responses or transport failures.
            ValueError: if the registry returns a document that is not a packument.
        """
        cached = self.cache.get(name)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Registry cache hit",
                    extra=extra_context(event="cache_hit", component="npm_client", target=name),
                )
            return cached

        if self._session is None:
            await self.start()
        assert self._session is not None

        url = package_url(self.base_url, name)
        with Timer() as timer:
            try:
                status, data = await request_json(
                    self._session, "GET", url, context="npm", headers=PACKUMENT_HEADERS
                )
            except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
                logger.warning(
                    "Registry request failed for %s: %s",
                    name,
                    exc,
                    extra=extra_context(
                        event="http_error",
                        component="npm_client",
                        outcome="exception",
                        target=safe_url(url),
                    ),
                )
                raise RegistryError(name, 0, str(exc) or type(exc).__name__) from exc

        if status < 200 or status >= 300:
            logger.warning(
                "Registry returned HTTP %s for %s",
                status,
                name,
                extra=extra_context(
                    event="http_response",
                    component="npm_client",
                    outcome="handled_non_2xx",
                    status_code=status,
                    duration_ms=timer.duration_ms(),
                    target=safe_url(url),
                ),
            )
            raise RegistryError(name, status)
        if data is None:
            raise RegistryError(name, status, "invalid JSON body")

        metadata = PackageMetadata.from_json(name, data)
        self.cache.set(name, metadata)
        return metadata

    async def __aenter__(self) -> "NpmRegistryClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
