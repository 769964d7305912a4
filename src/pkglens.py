"""PkgLens - npm dependency graph resolver and report generator.

    Returns:
        int: Exit code
"""
import asyncio
import json
import logging
import os
import re
import sys
import unicodedata
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from constants import Constants, ExitCodes, ReportFormats
from common.logging_utils import configure_logging
from args import parse_args
from cli_config import apply_config_overrides, resolve_options_from_args
from analysis.vulnerabilities import NullVulnerabilitySource, OsvVulnerabilitySource
from graph.resolver import resolve_package_graph
from graph.traversal import filter_tree
from registry.cache import MetadataCache
from registry.npm.client import NpmRegistryClient
from registry.npm.manifest import ManifestError, load_package_definition, sanitize_package_name
from reporting.diff import (
    diff_issue_summary,
    diff_package_dependencies,
    format_diff_as_markdown,
)
from reporting.report import (
    ReportMetadata,
    create_analysis_report,
    format_analysis_report_as_markdown,
)
from versioning.models import DependencyGraphResult, PackageDefinition, ResolveOptions

logger = logging.getLogger(__name__)


@dataclass
class AnalysisRun:
    """Resolved graphs for one CLI invocation."""
    target: DependencyGraphResult
    baseline: Optional[DependencyGraphResult] = None


async def run_analysis(
    target: PackageDefinition,
    options: ResolveOptions,
    baseline: Optional[PackageDefinition] = None,
    cache: Optional[MetadataCache] = None,
) -> AnalysisRun:
    """Resolve the target manifest, and the baseline concurrently when given.

    Both runs share one metadata cache; each owns its resolution context.
    """
    cache = cache if cache is not None else MetadataCache()
    if Constants.VULNS_ENABLED:
        vulns = OsvVulnerabilitySource()
    else:
        vulns = NullVulnerabilitySource()

    async with NpmRegistryClient(cache=cache) as registry:
        try:
            if baseline is None:
                result = await resolve_package_graph(
                    target, options, registry=registry, vulnerabilities=vulns
                )
                return AnalysisRun(target=result)
            result, base_result = await asyncio.gather(
                resolve_package_graph(target, options, registry=registry, vulnerabilities=vulns),
                resolve_package_graph(baseline, options, registry=registry, vulnerabilities=vulns),
            )
            return AnalysisRun(target=result, baseline=base_result)
        finally:
            if isinstance(vulns, OsvVulnerabilitySource):
                await vulns.stop()


def sanitize_file_name(value: str) -> str:
    """Lowercase ASCII slug used for report file names."""
    text = unicodedata.normalize("NFD", value.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def derive_report_basename(manifest_name: Optional[str], manifest_path: str) -> str:
    """Report file base name from the manifest name or its directory."""
    directory = manifest_path if os.path.isdir(manifest_path) else os.path.dirname(manifest_path)
    fallback = os.path.basename(os.path.abspath(directory)) or Constants.REPORT_DEFAULT_BASENAME
    sanitized = sanitize_file_name(manifest_name or fallback)
    return sanitized or Constants.REPORT_DEFAULT_BASENAME


def write_reports(formats: List[str], output_dir: str, basename: str, payloads: Dict[str, str]) -> List[str]:
    """Write each requested format into output_dir and return the written paths."""
    os.makedirs(output_dir, exist_ok=True)
    written = []
    for fmt in formats:
        extension = "json" if fmt == ReportFormats.JSON.value else "md"
        path = os.path.join(output_dir, f"{basename}.{extension}")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(payloads[fmt])
        logging.info("%s report has been successfully exported at: %s", fmt.upper(), path)
        written.append(path)
    return written


def emit_to_stdout(formats: List[str], payloads: Dict[str, str]) -> None:
    for index, fmt in enumerate(formats):
        if len(formats) > 1:
            sys.stdout.write(f"--- {fmt.upper()} ---\n")
        sys.stdout.write(f"{payloads[fmt]}\n")
        if index != len(formats) - 1:
            sys.stdout.write("\n")


def build_payloads(
    run: AnalysisRun,
    metadata: ReportMetadata,
    target: PackageDefinition,
    baseline: Optional[PackageDefinition],
    options: ResolveOptions,
    issues_only: bool = False,
) -> Dict[str, str]:
    """Render the JSON and Markdown payloads for a finished run."""
    report = create_analysis_report(run.target, metadata)
    if issues_only:
        report.tree = filter_tree(report.tree, lambda node: bool(node.issues))

    report_dict: Dict[str, Any] = report.to_dict()
    markdown = format_analysis_report_as_markdown(report)

    if baseline is not None:
        dep_diff = diff_package_dependencies(baseline, target, options.include_dev)
        issue_diff = diff_issue_summary(run.baseline, run.target)
        report_dict["comparison"] = {
            "dependencies": dep_diff.to_dict(),
            "issues": issue_diff.to_dict() if issue_diff is not None else None,
        }
        markdown = f"{markdown}\n\n{format_diff_as_markdown(dep_diff, issue_diff)}"
        logger.info(
            "Baseline comparison: +%d -%d ~%d dependencies",
            dep_diff.added,
            dep_diff.removed,
            dep_diff.changed,
        )

    return {
        ReportFormats.JSON.value: json.dumps(report_dict, indent=2, ensure_ascii=False),
        ReportFormats.MARKDOWN.value: markdown,
    }


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL, args.LOG_FILE)
    apply_config_overrides(args)
    options = resolve_options_from_args(args)

    try:
        target, raw_manifest = load_package_definition(args.package)
        baseline = None
        if args.BASELINE:
            baseline, _ = load_package_definition(args.BASELINE)
    except ManifestError as exc:
        logger.error("%s, aborting", exc)
        return ExitCodes.FILE_ERROR.value

    try:
        run = asyncio.run(run_analysis(target, options, baseline))
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.error("Error while generating the report: %s", exc)
        return ExitCodes.RESOLUTION_ERROR.value

    manifest_name = sanitize_package_name(raw_manifest.get("name"))
    metadata = ReportMetadata(
        include_dev=options.include_dev,
        include_peer=options.include_peer,
        max_depth=options.max_depth,
        source=args.SOURCE,
        package_name=manifest_name,
    )
    payloads = build_payloads(run, metadata, target, baseline, options, args.ISSUES_ONLY)

    if args.OUTPUT_DIR:
        basename = derive_report_basename(manifest_name, args.package)
        try:
            write_reports(args.FORMATS, args.OUTPUT_DIR, basename, payloads)
        except OSError as exc:
            logger.error("Could not write reports: %s", exc)
            return ExitCodes.FILE_ERROR.value
    else:
        emit_to_stdout(args.FORMATS, payloads)
    return ExitCodes.SUCCESS.value


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
