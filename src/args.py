"""Argument parsing functionality for PkgLens."""

import argparse

from constants import Constants, ReportFormats


def parse_formats(value: str) -> list:
    """Parse a comma-separated format list (json, markdown/md, both)."""
    entries = [entry.strip().lower() for entry in value.split(",") if entry.strip()]
    if "both" in entries:
        return [ReportFormats.JSON.value, ReportFormats.MARKDOWN.value]
    formats = []
    for entry in entries:
        if entry == "json":
            fmt = ReportFormats.JSON.value
        elif entry in ("markdown", "md"):
            fmt = ReportFormats.MARKDOWN.value
        else:
            raise argparse.ArgumentTypeError(f"Unsupported format: {entry}")
        if fmt not in formats:
            formats.append(fmt)
    if not formats:
        raise argparse.ArgumentTypeError("At least one format (json or markdown) is required.")
    return formats


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        parsed = int(value, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}") from exc
    if parsed < 1:
        raise argparse.ArgumentTypeError("--max-depth must be a positive integer.")
    return parsed


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="pkglens",
        description="PkgLens - npm dependency graph resolver and report generator",
        add_help=True,
    )

    parser.add_argument("package",
                        metavar="PACKAGE_JSON",
                        help="Path to the package.json to analyze (or its directory)",
                        type=str)
    parser.add_argument("-f", "--format",
                        dest="FORMATS",
                        help="Output formats: json, markdown, json,markdown or both (default: json)",
                        type=parse_formats,
                        default=[ReportFormats.JSON.value])
    parser.add_argument("-o", "--output",
                        dest="OUTPUT_DIR",
                        help="Directory where reports are written (default: stdout)",
                        action="store",
                        type=str)
    parser.add_argument("--include-dev",
                        dest="INCLUDE_DEV",
                        help="Include devDependencies in the analysis",
                        action="store_true",
                        default=None)
    parser.add_argument("--no-peer",
                        dest="INCLUDE_PEER",
                        help="Exclude peerDependencies from the analysis",
                        action="store_false",
                        default=None)
    parser.add_argument("--max-depth",
                        dest="MAX_DEPTH",
                        help=f"Maximum graph depth (default: {Constants.DEFAULT_MAX_DEPTH})",
                        type=positive_int)
    parser.add_argument("--source",
                        dest="SOURCE",
                        help="Descriptive label stored in the report (default: CLI)",
                        type=str,
                        default="CLI")
    parser.add_argument("--baseline",
                        dest="BASELINE",
                        help="Baseline package.json to compare against",
                        type=str)
    parser.add_argument("--issues-only",
                        dest="ISSUES_ONLY",
                        help="Only keep branches of the tree that carry issues",
                        action="store_true")
    parser.add_argument("--no-vulns",
                        dest="NO_VULNS",
                        help="Skip OSV vulnerability lookups",
                        action="store_true")
    parser.add_argument("--registry",
                        dest="REGISTRY_URL",
                        help="npm registry base URL",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default="WARNING")
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
