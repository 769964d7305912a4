"""npm range helpers built on semantic_version.

Range parsing and matching are delegated to ``semantic_version.NpmSpec``; this
module only normalizes input, picks versions and labels ranges for reports.
"""

import logging
import re
from typing import Iterable, Optional

import semantic_version

logger = logging.getLogger(__name__)

NO_DATA_LABEL = "no data"

RANGE_UNCONSTRAINED = "Accepts any available version."
RANGE_CARET = "Allows minor and patch updates within the same major version."
RANGE_TILDE = "Allows patch updates within the same minor version."
RANGE_LOWER_BOUND = "Accepts any version greater than or equal to the stated minimum."
RANGE_PINNED = "Pins the dependency to an exact version."

_WS = re.compile(r"\s+")
_OPERATOR_GAP = re.compile(r"(<=|>=|<|>|=|~|\^)\s+")


def normalize_range(range_str: str) -> str:
    """Return a canonical form of an npm range, or the input when it is invalid.

    Never raises; an unparseable range is logged and handed back unchanged so
    callers can still show it.
    """
    cleaned = (range_str or "").strip()
    if cleaned in ("", "*"):
        return "*"
    # NpmSpec rejects runs of spaces and ">= 1.0.0"-style gaps that npm accepts.
    cleaned = _OPERATOR_GAP.sub(r"\1", _WS.sub(" ", cleaned))
    try:
        semantic_version.NpmSpec(cleaned)
    except ValueError as exc:
        logger.warning("Could not normalize range %r: %s", range_str, exc)
        return range_str
    return cleaned


def parse_version(version: Optional[str]) -> Optional[semantic_version.Version]:
    """Parse a strict semver string; None when missing or invalid."""
    if not version:
        return None
    try:
        return semantic_version.Version(version)
    except ValueError:
        return None


def is_valid_version(version: Optional[str]) -> bool:
    return parse_version(version) is not None


def major_of(version: Optional[str]) -> Optional[int]:
    parsed = parse_version(version)
    return parsed.major if parsed is not None else None


def find_max_satisfying(range_str: str, versions: Iterable[str]) -> Optional[str]:
    """Pick the greatest non-prerelease version matching ``range_str``.

    Args:
        range_str: Declared npm range.
        versions: Version strings published for the package.

    Returns:
        The matching version string as listed, or None.
    """
    candidates = list(versions)
    if not range_str or not candidates:
        return None

    normalized = normalize_range(range_str)
    try:
        spec = semantic_version.NpmSpec(normalized)
    except ValueError:
        return None

    best_version = None
    best_raw = None
    for raw in candidates:
        parsed = parse_version(raw)
        if parsed is None or parsed.prerelease:
            continue
        if not spec.match(parsed):
            continue
        if best_version is None or parsed > best_version:
            best_version, best_raw = parsed, raw
    return best_raw


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    """Three-way compare where a missing version sorts below any value.

    Raises:
        ValueError: if a present version is not valid semver.
    """
    if not a and not b:
        return 0
    if not a:
        return -1
    if not b:
        return 1
    left, right = semantic_version.Version(a), semantic_version.Version(b)
    if left == right:
        return 0
    return 1 if left > right else -1


def is_outdated(resolved: Optional[str], latest: Optional[str]) -> bool:
    """True when both versions parse and resolved sorts before latest."""
    if not resolved or not latest:
        return False
    try:
        return semantic_version.Version(resolved) < semantic_version.Version(latest)
    except ValueError as exc:
        logger.warning("Could not compare versions %s and %s: %s", resolved, latest, exc)
        return False


def describe_range(range_str: str) -> str:
    """Human-readable label for the style of a declared range."""
    normalized = normalize_range(range_str)
    if normalized == "*":
        return RANGE_UNCONSTRAINED
    if normalized.startswith("^"):
        return RANGE_CARET
    if normalized.startswith("~"):
        return RANGE_TILDE
    if normalized.startswith(">="):
        return RANGE_LOWER_BOUND
    if is_valid_version(normalized):
        return RANGE_PINNED
    return f"Custom range ({normalized})."


def format_version_label(resolved: Optional[str], latest: Optional[str]) -> str:
    if not resolved and not latest:
        return NO_DATA_LABEL
    if not resolved:
        return f"unresolved (latest {latest or 'unknown'})"
    if not latest or resolved == latest:
        return resolved
    return f"{resolved} (latest {latest})"
