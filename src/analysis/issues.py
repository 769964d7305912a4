"""Diagnostic rules for a single resolved dependency."""

from __future__ import annotations

from typing import Iterable, List, Optional

from versioning.models import IssueType, VersionIssue
from versioning.ranges import (
    format_version_label,
    is_valid_version,
    major_of,
    normalize_range,
)


def build_range_advice(
    declared_range: str, resolved: Optional[str], latest: Optional[str]
) -> List[VersionIssue]:
    """Suggest better range styles for a declared range.

    Rules are independent; more than one advice can be returned.

    Args:
        declared_range: Range as written in the manifest.
        resolved: Version chosen for the range, if any.
        latest: Registry ``latest`` dist-tag, if any.

    Returns:
        list: ``advice`` issues, possibly empty.
    """
    normalized = normalize_range(declared_range)
    preferred = resolved or latest
    advice: List[VersionIssue] = []

    if normalized == "*":
        target = f"^{preferred}" if preferred else "a caret range (^x.y.z)"
        advice.append(VersionIssue(
            IssueType.ADVICE,
            f"The range accepts any version; pin it to {target} to avoid unexpected major upgrades.",
        ))

    if is_valid_version(normalized) and preferred:
        advice.append(VersionIssue(
            IssueType.ADVICE,
            f"The dependency is pinned to an exact version; use ^{preferred} to receive compatible fixes.",
        ))

    if normalized.startswith("~") and preferred:
        advice.append(VersionIssue(
            IssueType.ADVICE,
            f"The tilde range only accepts patches; consider ^{preferred} to receive compatible minor updates.",
        ))

    if normalized.startswith(">=") and preferred:
        minimum = normalized[2:].strip().split(" ", 1)[0]
        if is_valid_version(minimum):
            advice.append(VersionIssue(
                IssueType.ADVICE,
                f"The range has no upper bound; cap it with ^{preferred} to avoid breaking major releases.",
            ))

    if normalized.startswith("^") and is_valid_version(resolved) and is_valid_version(latest):
        resolved_major, latest_major = major_of(resolved), major_of(latest)
        if latest_major > resolved_major:
            advice.append(VersionIssue(
                IssueType.ADVICE,
                f"A new major version is available ({latest}); consider upgrading from {resolved} "
                "after reviewing breaking changes.",
            ))

    return advice


def conflict_issue(declared_range: str) -> VersionIssue:
    return VersionIssue(
        IssueType.CONFLICT,
        f"No published version satisfies the declared range ({declared_range}).",
    )


def outdated_issue(resolved: Optional[str], latest: Optional[str]) -> VersionIssue:
    return VersionIssue(
        IssueType.OUTDATED,
        f"A newer version is available ({format_version_label(resolved, latest)}).",
    )


def deprecation_issue(notice: str) -> VersionIssue:
    return VersionIssue(IssueType.VULNERABLE, f"Version marked as deprecated: {notice}")


def error_issue(message: str) -> VersionIssue:
    return VersionIssue(IssueType.ERROR, message)


def depth_limit_issue(max_depth: int) -> VersionIssue:
    return VersionIssue(
        IssueType.ERROR,
        f"Depth limit reached (max depth {max_depth}); dependencies below this node were not resolved.",
    )


def merge_issues(
    existing: Iterable[VersionIssue], incoming: Iterable[VersionIssue]
) -> List[VersionIssue]:
    """Append incoming issues whose (type, message) pair is not yet present.

    Order is preserved, existing issues first. Merging the same incoming
    issues twice leaves the result unchanged.
    """
    merged = list(existing)
    seen = {(issue.type, issue.message) for issue in merged}
    for issue in incoming:
        key = (issue.type, issue.message)
        if key in seen:
            continue
        seen.add(key)
        merged.append(issue)
    return merged
