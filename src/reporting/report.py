"""Analysis report aggregation and Markdown rendering."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from constants import Constants
from graph.traversal import walk_tree
from versioning.models import (
    DependencyEdge,
    DependencyGraphResult,
    DependencyNode,
    IssueType,
    VersionIssue,
)

logger = logging.getLogger(__name__)

ISSUE_SORT_ORDER = [
    IssueType.VULNERABLE,
    IssueType.ERROR,
    IssueType.CONFLICT,
    IssueType.OUTDATED,
    IssueType.DUPLICATE,
    IssueType.ADVICE,
]

ISSUE_LABELS = {
    IssueType.VULNERABLE: "Vulnerability",
    IssueType.ERROR: "Error",
    IssueType.CONFLICT: "Conflict",
    IssueType.OUTDATED: "Outdated dependency",
    IssueType.DUPLICATE: "Duplicate",
    IssueType.ADVICE: "Advice",
}

_RANK = {issue_type: index for index, issue_type in enumerate(ISSUE_SORT_ORDER)}


@dataclass
class ReportMetadata:
    """Context recorded alongside a report."""
    generated_at: Optional[str] = None
    include_dev: bool = False
    include_peer: bool = True
    max_depth: int = Constants.DEFAULT_MAX_DEPTH
    source: Optional[str] = None
    package_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "generatedAt": self.generated_at,
            "includeDev": self.include_dev,
            "includePeer": self.include_peer,
            "maxDepth": self.max_depth,
        }
        if self.source is not None:
            data["source"] = self.source
        if self.package_name is not None:
            data["packageName"] = self.package_name
        return data


@dataclass(frozen=True)
class IssueReportEntry:
    """One issue flattened out of the tree with its breadcrumb path."""
    package_name: str
    node_id: str
    type: IssueType
    message: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "packageName": self.package_name,
            "nodeId": self.node_id,
            "type": self.type.value,
            "message": self.message,
            "path": self.path,
        }


@dataclass
class AnalysisReportSummary:
    direct_dependencies: int = 0
    total_nodes: int = 0
    unique_packages: int = 0
    leaf_nodes: int = 0
    max_depth: int = 0
    dependency_edges: int = 0
    total_issues: int = 0
    issues_by_type: Dict[IssueType, int] = field(
        default_factory=lambda: {issue_type: 0 for issue_type in ISSUE_SORT_ORDER}
    )
    duplicate_packages: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "directDependencies": self.direct_dependencies,
            "totalNodes": self.total_nodes,
            "uniquePackages": self.unique_packages,
            "leafNodes": self.leaf_nodes,
            "maxDepth": self.max_depth,
            "dependencyEdges": self.dependency_edges,
            "totalIssues": self.total_issues,
            "issuesByType": {t.value: self.issues_by_type.get(t, 0) for t in ISSUE_SORT_ORDER},
            "duplicatePackages": self.duplicate_packages,
        }


@dataclass
class AnalysisReport:
    format_version: str
    metadata: ReportMetadata
    summary: AnalysisReportSummary
    top_issues: List[IssueReportEntry]
    duplicates: Dict[str, List[VersionIssue]]
    tree: List[DependencyNode]
    edges: List[DependencyEdge]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation (camelCase keys)."""
        return {
            "formatVersion": self.format_version,
            "metadata": self.metadata.to_dict(),
            "summary": self.summary.to_dict(),
            "topIssues": [entry.to_dict() for entry in self.top_issues],
            "duplicates": {
                name: [issue.to_dict() for issue in issues]
                for name, issues in self.duplicates.items()
            },
            "tree": [node.to_dict() for node in self.tree],
            "edges": [edge.to_dict() for edge in self.edges],
        }


def _issue_sort_key(entry: IssueReportEntry):
    return (_RANK.get(entry.type, len(_RANK)), entry.package_name.lower(), entry.message.lower())


def create_analysis_report(
    result: DependencyGraphResult, metadata: Optional[ReportMetadata] = None
) -> AnalysisReport:
    """Summarize a resolved graph.

    Args:
        result: Output of resolve_package_graph.
        metadata: Run context; ``generated_at`` defaults to now (UTC, ISO-8601).

    Returns:
        AnalysisReport: Statistics, prioritized issues and the graph itself.
    """
    meta = metadata or ReportMetadata()
    if not meta.generated_at:
        meta = dataclasses.replace(meta, generated_at=datetime.now(timezone.utc).isoformat())

    summary = AnalysisReportSummary()
    unique_packages = set()
    entries: List[IssueReportEntry] = []

    for visit in walk_tree(result.tree):
        node = visit.node
        summary.total_nodes += 1
        unique_packages.add(node.name)
        if not node.children:
            summary.leaf_nodes += 1
        summary.max_depth = max(summary.max_depth, visit.depth)
        for issue in node.issues:
            summary.issues_by_type[issue.type] = summary.issues_by_type.get(issue.type, 0) + 1
            entries.append(IssueReportEntry(
                package_name=node.name,
                node_id=node.node_id,
                type=issue.type,
                message=issue.message,
                path=visit.path,
            ))

    summary.direct_dependencies = len(result.tree)
    summary.unique_packages = len(unique_packages)
    summary.dependency_edges = len(result.edges)
    summary.total_issues = len(entries)
    summary.duplicate_packages = len(result.duplicates or {})

    entries.sort(key=_issue_sort_key)
    logger.debug(
        "Report: %d nodes, %d issues, %d duplicate packages",
        summary.total_nodes,
        summary.total_issues,
        summary.duplicate_packages,
    )

    return AnalysisReport(
        format_version=Constants.REPORT_FORMAT_VERSION,
        metadata=meta,
        summary=summary,
        top_issues=entries[:Constants.REPORT_TOP_ISSUES],
        duplicates=dict(result.duplicates or {}),
        tree=result.tree,
        edges=result.edges,
    )


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def format_analysis_report_as_markdown(report: AnalysisReport) -> str:
    """Render a report as Markdown suitable for PR comments or CI artifacts."""
    meta = report.metadata
    summary = report.summary
    source_label = meta.source or "Manual analysis"
    package_label = f" ({meta.package_name})" if meta.package_name else ""

    lines = [
        f"# Dependency report - {source_label}{package_label}",
        "",
        f"- Generated: {meta.generated_at}",
        f"- Includes devDependencies: {_yes_no(meta.include_dev)}",
        f"- Includes peerDependencies: {_yes_no(meta.include_peer)}",
        f"- Depth limit: {meta.max_depth}",
        f"- Direct packages analyzed: {summary.direct_dependencies}",
        "",
        "## Summary",
        "",
        "| Metric | Value |",
        "| --- | --- |",
        f"| Total nodes | {summary.total_nodes} |",
        f"| Unique packages | {summary.unique_packages} |",
        f"| Leaf nodes | {summary.leaf_nodes} |",
        f"| Max depth | {summary.max_depth} |",
        f"| Edges | {summary.dependency_edges} |",
        f"| Total issues | {summary.total_issues} |",
        f"| Duplicate packages | {summary.duplicate_packages} |",
        "",
        "## Issues by type",
        "",
        "| Type | Total |",
        "| --- | --- |",
    ]
    for issue_type in ISSUE_SORT_ORDER:
        lines.append(f"| {ISSUE_LABELS[issue_type]} | {summary.issues_by_type.get(issue_type, 0)} |")
    lines.extend(["", "## Top issues", ""])

    if not report.top_issues:
        lines.append("No issues were recorded for the analyzed dependencies.")
    else:
        for entry in report.top_issues:
            lines.append(f"- **{ISSUE_LABELS[entry.type]}** in `{entry.path}`: {entry.message}")
    lines.extend(["", "## Duplicates", ""])

    if not report.duplicates:
        lines.append("No duplicated packages were detected in the dependency tree.")
    else:
        for name, issues in report.duplicates.items():
            lines.append(f"- **{name}**")
            for issue in issues:
                lines.append(f"  - {issue.message}")
    lines.append("")
    lines.append("> Report generated by PkgLens.")

    return "\n".join(lines)
