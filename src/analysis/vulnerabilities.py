"""Vulnerability lookups for resolved package versions.

The resolver treats this as an opaque collaborator: any object exposing
``async find_issues(name, version) -> list[VersionIssue]`` works. Lookup
failures must never fail resolution, so both implementations here return an
empty list on error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from constants import Constants
from common.http_client import build_session, request_json
from common.logging_utils import extra_context
from versioning.models import IssueType, VersionIssue

logger = logging.getLogger(__name__)

SEVERITY_RANK = {"LOW": 1, "MODERATE": 2, "MEDIUM": 2, "HIGH": 3, "CRITICAL": 4}


class NullVulnerabilitySource:
    """Collaborator used when vulnerability lookups are disabled."""

    async def find_issues(self, name: str, version: str) -> List[VersionIssue]:
        return []


def _vuln_severity(vuln: Dict[str, Any]) -> Optional[str]:
    """Severity label from an OSV record (GHSA puts it in database_specific)."""
    specific = vuln.get("database_specific")
    if isinstance(specific, dict) and isinstance(specific.get("severity"), str):
        return specific["severity"].upper()
    for affected in vuln.get("affected") or []:
        eco = affected.get("ecosystem_specific") if isinstance(affected, dict) else None
        if isinstance(eco, dict) and isinstance(eco.get("severity"), str):
            return eco["severity"].upper()
    return None


class OsvVulnerabilitySource:
    """Query OSV.dev for advisories affecting one npm package version."""

    def __init__(
        self,
        query_url: Optional[str] = None,
        min_severity: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.query_url = query_url or Constants.OSV_QUERY_URL
        self.min_severity = (min_severity or Constants.OSV_MIN_SEVERITY).upper()
        self._timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
        self._session = session
        self._owns_session = session is None

    async def start(self) -> None:
        if self._session is None:
            self._session = build_session(self._timeout)
            self._owns_session = True

    async def stop(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def to_issues(self, name: str, version: str, payload: Any) -> List[VersionIssue]:
        """Map an OSV query response to ``vulnerable`` issues."""
        if not isinstance(payload, dict):
            return []
        threshold = SEVERITY_RANK.get(self.min_severity, SEVERITY_RANK["CRITICAL"])
        issues: List[VersionIssue] = []
        for vuln in payload.get("vulns") or []:
            if not isinstance(vuln, dict):
                continue
            severity = _vuln_severity(vuln)
            if SEVERITY_RANK.get(severity or "", 0) < threshold:
                continue
            ident = vuln.get("id") or "unknown advisory"
            summary = vuln.get("summary") or "no summary available"
            issues.append(VersionIssue(
                IssueType.VULNERABLE,
                f"{severity} vulnerability {ident} affects {name}@{version}: {summary}",
            ))
        return issues

    async def find_issues(self, name: str, version: str) -> List[VersionIssue]:
        if self._session is None:
            await self.start()
        assert self._session is not None
        body = {"package": {"name": name, "ecosystem": "npm"}, "version": version}
        try:
            status, payload = await request_json(
                self._session, "POST", self.query_url, context="osv", json_body=body
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning(
                "Vulnerability lookup failed for %s@%s: %s",
                name,
                version,
                exc,
                extra=extra_context(event="vuln_lookup", component="osv", outcome="exception"),
            )
            return []
        if status != 200:
            logger.debug("OSV returned HTTP %s for %s@%s", status, name, version)
            return []
        return self.to_issues(name, version, payload)

    async def __aenter__(self) -> "OsvVulnerabilitySource":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
