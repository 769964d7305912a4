"""Tests for the command line entry point."""

import json

import pytest

import pkglens
from args import parse_args, parse_formats
from constants import Constants, ExitCodes
from pkglens import AnalysisRun, derive_report_basename, main, sanitize_file_name
from versioning.models import (
    DependencyGraphResult,
    DependencyNode,
    IssueType,
    VersionIssue,
)


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    """Keep main() from replacing the root handlers pytest installs."""
    monkeypatch.setattr(pkglens, "configure_logging", lambda *args, **kwargs: None)


def _write_manifest(directory, data):
    path = directory / "package.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _fake_run(tree=None):
    async def _run_analysis(target, options, baseline=None, cache=None):
        result = DependencyGraphResult(tree=list(tree or []))
        if baseline is None:
            return AnalysisRun(target=result)
        return AnalysisRun(target=result, baseline=DependencyGraphResult())
    return _run_analysis


def _react_node():
    return DependencyNode(
        name="react",
        node_id="react@18.3.1",
        declared_range="^18.0.0",
        resolved_version="18.3.1",
        latest_version="19.2.0",
        range_description="",
        issues=[VersionIssue(IssueType.ADVICE, "A new major version is available (19.2.0)")],
    )


class TestParseArgs:
    def test_defaults(self):
        args = parse_args(["package.json"])
        assert args.package == "package.json"
        assert args.FORMATS == ["json"]
        assert args.OUTPUT_DIR is None
        assert args.INCLUDE_DEV is None
        assert args.INCLUDE_PEER is None
        assert args.MAX_DEPTH is None
        assert args.SOURCE == "CLI"
        assert args.LOG_LEVEL == "WARNING"

    def test_flags(self):
        args = parse_args([
            "app", "--include-dev", "--no-peer", "--max-depth", "3", "-f", "md", "--source", "CI",
        ])
        assert args.INCLUDE_DEV is True
        assert args.INCLUDE_PEER is False
        assert args.MAX_DEPTH == 3
        assert args.FORMATS == ["markdown"]
        assert args.SOURCE == "CI"

    @pytest.mark.parametrize("value,expected", [
        ("json", ["json"]),
        ("markdown", ["markdown"]),
        ("both", ["json", "markdown"]),
        ("json,md", ["json", "markdown"]),
        ("md,json,md", ["markdown", "json"]),
    ])
    def test_parse_formats(self, value, expected):
        assert parse_formats(value) == expected

    @pytest.mark.parametrize("argv", [
        ["app", "--max-depth", "0"],
        ["app", "--max-depth", "deep"],
        ["app", "-f", "xml"],
        [],
    ])
    def test_invalid_arguments_exit(self, argv):
        with pytest.raises(SystemExit):
            parse_args(argv)


class TestFileNames:
    def test_sanitize(self):
        assert sanitize_file_name("@Acme/Café App") == "acme-cafe-app"

    def test_basename_from_manifest_name(self, tmp_path):
        assert derive_report_basename("My App", str(tmp_path / "package.json")) == "my-app"

    def test_basename_falls_back_to_directory(self, tmp_path):
        project = tmp_path / "Web Client"
        project.mkdir()
        assert derive_report_basename(None, str(project / "package.json")) == "web-client"

    def test_basename_default(self):
        assert derive_report_basename("!!!", "package.json") == Constants.REPORT_DEFAULT_BASENAME


class TestMain:
    def test_writes_both_reports(self, tmp_path, monkeypatch):
        manifest = _write_manifest(tmp_path, {"name": "my-app", "dependencies": {"react": "^18.0.0"}})
        monkeypatch.setattr(pkglens, "run_analysis", _fake_run([_react_node()]))
        out_dir = tmp_path / "reports"

        code = main([str(manifest), "-o", str(out_dir), "-f", "both", "--no-vulns", "--source", "CI"])

        assert code == ExitCodes.SUCCESS.value
        report = json.loads((out_dir / "my-app.json").read_text(encoding="utf-8"))
        assert report["formatVersion"] == "1.0.0"
        assert report["metadata"]["source"] == "CI"
        assert report["metadata"]["packageName"] == "my-app"
        assert report["summary"]["totalIssues"] == 1
        markdown = (out_dir / "my-app.md").read_text(encoding="utf-8")
        assert markdown.startswith("# Dependency report - CI (my-app)")

    def test_stdout_json(self, tmp_path, monkeypatch, capsys):
        manifest = _write_manifest(tmp_path, {"name": "svc", "dependencies": {}})
        monkeypatch.setattr(pkglens, "run_analysis", _fake_run())

        assert main([str(tmp_path), "--no-vulns"]) == ExitCodes.SUCCESS.value
        out = capsys.readouterr().out
        assert json.loads(out)["summary"]["totalNodes"] == 0
        assert manifest.exists()

    def test_baseline_comparison(self, tmp_path, monkeypatch, capsys):
        target = _write_manifest(tmp_path, {"dependencies": {"react": "^18.0.0"}})
        base_dir = tmp_path / "base"
        base_dir.mkdir()
        baseline = _write_manifest(base_dir, {"dependencies": {"vue": "^3.0.0"}})
        monkeypatch.setattr(pkglens, "run_analysis", _fake_run([_react_node()]))

        assert main([str(target), "--baseline", str(baseline), "--no-vulns"]) == ExitCodes.SUCCESS.value
        report = json.loads(capsys.readouterr().out)
        assert report["comparison"]["dependencies"] == {"added": 1, "removed": 1, "changed": 0}
        assert report["comparison"]["issues"]["introduced"] == 1

    def test_issues_only_prunes_clean_branches(self, tmp_path, monkeypatch, capsys):
        manifest = _write_manifest(tmp_path, {"dependencies": {}})
        clean = DependencyNode("lodash", "lodash@4.17.21", "^4.17.0", "4.17.21", "4.17.21", "")
        monkeypatch.setattr(pkglens, "run_analysis", _fake_run([_react_node(), clean]))

        assert main([str(manifest), "--issues-only", "--no-vulns"]) == ExitCodes.SUCCESS.value
        report = json.loads(capsys.readouterr().out)
        assert [n["name"] for n in report["tree"]] == ["react"]
        assert report["summary"]["totalNodes"] == 2

    def test_missing_manifest(self, tmp_path):
        assert main([str(tmp_path / "nope" / "package.json"), "--no-vulns"]) == ExitCodes.FILE_ERROR.value

    def test_invalid_manifest(self, tmp_path):
        path = tmp_path / "package.json"
        path.write_text("{broken", encoding="utf-8")
        assert main([str(path), "--no-vulns"]) == ExitCodes.FILE_ERROR.value

    def test_resolution_failure(self, tmp_path, monkeypatch):
        manifest = _write_manifest(tmp_path, {"dependencies": {"a": "*"}})

        async def _explode(*args, **kwargs):
            raise ValueError("malformed packument")

        monkeypatch.setattr(pkglens, "run_analysis", _explode)
        assert main([str(manifest), "--no-vulns"]) == ExitCodes.RESOLUTION_ERROR.value
