"""Tests for vulnerability collaborators."""

import asyncio
from unittest.mock import MagicMock

import aiohttp

from analysis.vulnerabilities import NullVulnerabilitySource, OsvVulnerabilitySource
from versioning.models import IssueType


def _osv_payload():
    return {
        "vulns": [
            {
                "id": "GHSA-crit-0001",
                "summary": "Prototype pollution",
                "database_specific": {"severity": "CRITICAL"},
            },
            {
                "id": "GHSA-high-0002",
                "summary": "ReDoS",
                "database_specific": {"severity": "HIGH"},
            },
            {
                "id": "OSV-eco-0003",
                "affected": [{"ecosystem_specific": {"severity": "moderate"}}],
            },
            {"id": "OSV-none-0004", "summary": "No severity"},
        ]
    }


class TestToIssues:
    def test_default_threshold_is_critical(self):
        issues = OsvVulnerabilitySource(min_severity="CRITICAL").to_issues("lodash", "4.17.20", _osv_payload())
        assert len(issues) == 1
        assert issues[0].type == IssueType.VULNERABLE
        assert issues[0].message == (
            "CRITICAL vulnerability GHSA-crit-0001 affects lodash@4.17.20: Prototype pollution"
        )

    def test_lower_threshold_includes_more(self):
        source = OsvVulnerabilitySource(min_severity="moderate")
        messages = [i.message for i in source.to_issues("lodash", "4.17.20", _osv_payload())]
        assert len(messages) == 3
        assert messages[2].startswith("MODERATE vulnerability OSV-eco-0003")
        assert messages[2].endswith("no summary available")

    def test_unknown_payload_shapes(self):
        source = OsvVulnerabilitySource()
        assert source.to_issues("x", "1.0.0", None) == []
        assert source.to_issues("x", "1.0.0", {"vulns": None}) == []
        assert source.to_issues("x", "1.0.0", {"vulns": ["junk"]}) == []


class TestFindIssues:
    """Network paths with a stubbed request helper."""

    def test_posts_package_query(self, monkeypatch):
        seen = {}

        async def _fake_request(session, method, url, *, context, json_body=None, headers=None):
            seen.update(method=method, url=url, body=json_body)
            return 200, _osv_payload()

        monkeypatch.setattr("analysis.vulnerabilities.request_json", _fake_request)
        source = OsvVulnerabilitySource(query_url="https://osv.example/v1/query", session=MagicMock())

        issues = asyncio.run(source.find_issues("lodash", "4.17.20"))

        assert [i.type for i in issues] == [IssueType.VULNERABLE]
        assert seen["method"] == "POST"
        assert seen["url"] == "https://osv.example/v1/query"
        assert seen["body"] == {"package": {"name": "lodash", "ecosystem": "npm"}, "version": "4.17.20"}

    def test_transport_error_returns_empty(self, monkeypatch):
        async def _boom(*args, **kwargs):
            raise aiohttp.ClientConnectionError("offline")

        monkeypatch.setattr("analysis.vulnerabilities.request_json", _boom)
        source = OsvVulnerabilitySource(session=MagicMock())
        assert asyncio.run(source.find_issues("lodash", "4.17.20")) == []

    def test_non_200_returns_empty(self, monkeypatch):
        async def _server_error(*args, **kwargs):
            return 500, None

        monkeypatch.setattr("analysis.vulnerabilities.request_json", _server_error)
        source = OsvVulnerabilitySource(session=MagicMock())
        assert asyncio.run(source.find_issues("lodash", "4.17.20")) == []

    def test_null_source(self):
        assert asyncio.run(NullVulnerabilitySource().find_issues("lodash", "4.17.20")) == []
