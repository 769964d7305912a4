"""Post-resolution pass flagging packages resolved to several versions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping

from analysis.issues import merge_issues
from graph.traversal import walk_tree
from versioning.models import DependencyNode, IssueType, VersionIssue
from versioning.ranges import parse_version

logger = logging.getLogger(__name__)


def compute_duplicate_issues(
    visited: Mapping[str, Iterable[str]],
) -> Dict[str, List[VersionIssue]]:
    """Build duplicate + advice issues for every package with >1 versions.

    Args:
        visited: Package name -> versions in first-seen order.

    Returns:
        dict: Package name -> issues, only for duplicated packages.
    """
    duplicates: Dict[str, List[VersionIssue]] = {}
    for name, versions in visited.items():
        version_list = list(dict.fromkeys(versions))
        if len(version_list) < 2:
            continue

        issues = [
            VersionIssue(
                IssueType.DUPLICATE,
                f"Multiple installed versions detected: {', '.join(version_list)}",
                affected_versions=tuple(version_list),
            )
        ]

        ranked = [raw for raw in version_list if parse_version(raw) is not None]
        ranked.sort(key=parse_version, reverse=True)
        if ranked:
            recommended = ranked[0]
            issues.append(VersionIssue(
                IssueType.ADVICE,
                f"Update manifests to ^{recommended} to unify the "
                f"{len(version_list)} detected variants.",
            ))

        logger.debug("Duplicate package %s: %s", name, version_list)
        duplicates[name] = issues
    return duplicates


def apply_duplicate_issues(
    tree: List[DependencyNode], duplicates: Mapping[str, List[VersionIssue]]
) -> None:
    """Merge each duplicated package's issues into every node with that name."""
    if not duplicates:
        return
    for visit in walk_tree(tree):
        node = visit.node
        issues = duplicates.get(node.name)
        if issues:
            node.issues = merge_issues(node.issues, issues)
