"""Structural comparison of manifests and resolved graphs."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from graph.traversal import walk_tree
from versioning.models import DependencyGraphResult, PackageDefinition


@dataclass(frozen=True)
class DependencyDiffSummary:
    added: int
    removed: int
    changed: int

    def to_dict(self) -> Dict[str, int]:
        return {"added": self.added, "removed": self.removed, "changed": self.changed}


@dataclass(frozen=True)
class IssueDiffSummary:
    introduced: int
    resolved: int
    baseline_total: int
    target_total: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "introduced": self.introduced,
            "resolved": self.resolved,
            "baselineTotal": self.baseline_total,
            "targetTotal": self.target_total,
        }


def _flatten(definition: Optional[PackageDefinition], include_dev: bool) -> Dict[str, str]:
    if definition is None:
        return {}
    entries = dict(definition.dependencies)
    if include_dev:
        entries.update(definition.dev_dependencies)
    return entries


def diff_package_dependencies(
    baseline: Optional[PackageDefinition],
    target: Optional[PackageDefinition],
    include_dev: bool,
) -> DependencyDiffSummary:
    """Count declared dependencies added, removed or re-ranged between manifests."""
    base = _flatten(baseline, include_dev)
    other = _flatten(target, include_dev)
    added = sum(1 for name in other if name not in base)
    removed = sum(1 for name in base if name not in other)
    changed = sum(1 for name, spec in other.items() if name in base and base[name] != spec)
    return DependencyDiffSummary(added=added, removed=removed, changed=changed)


def issue_keys(result: Optional[DependencyGraphResult]) -> Counter:
    """Count canonical ``nodeId::type::message`` keys over every issue in a graph.

    A multiset: a package reached through two paths contributes two instances.
    """
    if result is None:
        return Counter()
    return Counter(
        f"{visit.node.node_id}::{issue.type.value}::{issue.message}"
        for visit in walk_tree(result.tree)
        for issue in visit.node.issues
    )


def diff_issue_summary(
    baseline: Optional[DependencyGraphResult],
    target: Optional[DependencyGraphResult],
) -> Optional[IssueDiffSummary]:
    """Compare issue sets of two graphs; None when neither graph is available."""
    if baseline is None and target is None:
        return None
    base_keys = issue_keys(baseline)
    target_keys = issue_keys(target)
    return IssueDiffSummary(
        introduced=sum((target_keys - base_keys).values()),
        resolved=sum((base_keys - target_keys).values()),
        baseline_total=sum(base_keys.values()),
        target_total=sum(target_keys.values()),
    )


def format_diff_as_markdown(
    dependencies: DependencyDiffSummary, issues: Optional[IssueDiffSummary]
) -> str:
    """Render a baseline comparison as a Markdown section."""
    lines = [
        "## Comparison with baseline",
        "",
        "| Change | Count |",
        "| --- | --- |",
        f"| Dependencies added | {dependencies.added} |",
        f"| Dependencies removed | {dependencies.removed} |",
        f"| Dependencies changed | {dependencies.changed} |",
    ]
    if issues is not None:
        lines.extend([
            f"| Issues introduced | {issues.introduced} |",
            f"| Issues resolved | {issues.resolved} |",
            f"| Issues in baseline | {issues.baseline_total} |",
            f"| Issues in target | {issues.target_total} |",
        ])
    return "\n".join(lines)


def merge_package_definitions(
    target: Optional[PackageDefinition],
    updates: Mapping[str, Optional[Mapping[str, str]]],
) -> Optional[PackageDefinition]:
    """Return a copy of ``target`` with whole sections replaced.

    Args:
        target: Definition to start from.
        updates: ``{"dependencies": {...}, "devDependencies": {...}}``; missing
            or None sections are kept as they are.
    """
    if target is None:
        return None
    merged = PackageDefinition(
        dependencies=dict(target.dependencies),
        dev_dependencies=dict(target.dev_dependencies),
    )
    if updates.get("dependencies") is not None:
        merged.dependencies = dict(updates["dependencies"])
    if updates.get("devDependencies") is not None:
        merged.dev_dependencies = dict(updates["devDependencies"])
    return merged
