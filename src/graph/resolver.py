"""Recursive dependency graph resolution against a package registry.

Expansion is depth-first and strictly sequential inside one run: the
``visited`` map and the ``edges`` list of a ResolutionContext are written in
traversal order, and each node's outgoing-edge view is filtered from that list
once all of its children have finished. Independent runs (for example a
baseline and a target manifest) can be awaited concurrently because each owns
its own context; only the registry's metadata cache is shared.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

import aiohttp

from analysis.duplicates import apply_duplicate_issues, compute_duplicate_issues
from analysis.issues import (
    build_range_advice,
    conflict_issue,
    depth_limit_issue,
    deprecation_issue,
    error_issue,
    merge_issues,
    outdated_issue,
)
from analysis.vulnerabilities import NullVulnerabilitySource
from common.logging_utils import extra_context, is_debug_enabled
from registry.npm.client import RegistryError
from versioning.models import (
    DependencyEdge,
    DependencyGraphResult,
    DependencyNode,
    PackageDefinition,
    PackageMetadata,
    ResolveOptions,
    VersionIssue,
    VersionManifest,
)
from versioning.ranges import describe_range, find_max_satisfying, is_outdated

logger = logging.getLogger(__name__)

# Failures that only affect the node being resolved.
NODE_FAILURES = (RegistryError, aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)


class MetadataSource(Protocol):
    async def get_metadata(self, name: str) -> PackageMetadata: ...


class VulnerabilitySource(Protocol):
    async def find_issues(self, name: str, version: str) -> List[VersionIssue]: ...


@dataclass
class ResolutionContext:
    """Mutable state shared by every recursive call of one resolution run."""
    options: ResolveOptions
    visited: Dict[str, Dict[str, None]] = field(default_factory=dict)
    edges: List[DependencyEdge] = field(default_factory=list)

    def record_version(self, name: str, version: str) -> None:
        self.visited.setdefault(name, {})[version] = None

    def versions_by_package(self) -> Dict[str, List[str]]:
        return {name: list(versions) for name, versions in self.visited.items()}

    def edges_from(self, node_id: str) -> List[DependencyEdge]:
        return [edge for edge in self.edges if edge.from_id == node_id]


def _terminal_node(
    name: str, node_id: str, declared_range: str, issue: VersionIssue
) -> DependencyNode:
    return DependencyNode(
        name=name,
        node_id=node_id,
        declared_range=declared_range,
        resolved_version=None,
        latest_version=None,
        range_description=describe_range(declared_range),
        issues=[issue],
    )


class GraphResolver:
    """Expand manifests into annotated dependency trees."""

    def __init__(
        self,
        registry: MetadataSource,
        vulnerabilities: Optional[VulnerabilitySource] = None,
    ):
        self.registry = registry
        self.vulnerabilities = vulnerabilities or NullVulnerabilitySource()

    async def resolve(
        self, manifest: PackageDefinition, options: Optional[ResolveOptions] = None
    ) -> DependencyGraphResult:
        """Resolve every direct dependency, then run the duplicate pass."""
        context = ResolutionContext(options=options or ResolveOptions())

        direct = dict(manifest.dependencies)
        if context.options.include_dev:
            direct.update(manifest.dev_dependencies)

        logger.info(
            "Resolving %d direct dependencies (max depth %d, dev=%s, peer=%s)",
            len(direct),
            context.options.max_depth,
            context.options.include_dev,
            context.options.include_peer,
        )

        tree = []
        for name, declared_range in direct.items():
            tree.append(await self.resolve_dependency(name, declared_range, 0, context))

        duplicates = compute_duplicate_issues(context.versions_by_package())
        apply_duplicate_issues(tree, duplicates)

        return DependencyGraphResult(tree=tree, edges=context.edges, duplicates=duplicates)

    async def resolve_dependency(
        self, name: str, declared_range: str, depth: int, context: ResolutionContext
    ) -> DependencyNode:
        """Resolve one dependency occurrence and, recursively, its children."""
        max_depth = context.options.max_depth
        if depth > max_depth:
            return _terminal_node(
                name, f"{name}@depth-limit", declared_range, depth_limit_issue(max_depth)
            )

        try:
            metadata = await self.registry.get_metadata(name)
        except NODE_FAILURES as exc:
            logger.warning(
                "Could not resolve %s: %s",
                name,
                exc,
                extra=extra_context(event="resolve", component="resolver", outcome="error", target=name),
            )
            return _terminal_node(name, f"{name}@unknown", declared_range, error_issue(str(exc)))

        resolved = find_max_satisfying(declared_range, metadata.versions.keys())
        latest = metadata.latest
        node_id = f"{name}@{resolved}" if resolved else f"{name}@unknown"
        issues: List[VersionIssue] = []
        children: List[DependencyNode] = []
        manifest: Optional[VersionManifest] = None

        if resolved is None:
            issues.append(conflict_issue(declared_range))
        else:
            context.record_version(name, resolved)
            manifest = metadata.versions.get(resolved)
            if manifest is not None:
                children = await self._resolve_children(node_id, name, manifest, depth + 1, context)
            issues = merge_issues(issues, await self._vulnerability_issues(name, resolved))

        issues = merge_issues(issues, build_range_advice(declared_range, resolved, latest))
        if is_outdated(resolved, latest):
            issues = merge_issues(issues, [outdated_issue(resolved, latest)])
        if manifest is not None and manifest.deprecated:
            issues = merge_issues(issues, [deprecation_issue(manifest.deprecated)])

        if is_debug_enabled(logger):
            logger.debug(
                "Resolved %s %s -> %s (%d children, %d issues)",
                name,
                declared_range,
                resolved,
                len(children),
                len(issues),
                extra=extra_context(event="resolve", component="resolver", outcome="success", target=node_id),
            )

        return DependencyNode(
            name=name,
            node_id=node_id,
            declared_range=declared_range,
            resolved_version=resolved,
            latest_version=latest,
            range_description=describe_range(declared_range),
            issues=issues,
            children=children,
            edges=context.edges_from(node_id),
        )

    async def _resolve_children(
        self,
        parent_id: str,
        parent_name: str,
        manifest: VersionManifest,
        depth: int,
        context: ResolutionContext,
    ) -> List[DependencyNode]:
        declared = dict(manifest.dependencies)
        if context.options.include_peer:
            declared.update(manifest.peer_dependencies)

        children = []
        # Sequential on purpose: edge order and visited order follow traversal.
        for dep_name, dep_range in declared.items():
            child = await self.resolve_dependency(dep_name, dep_range, depth, context)
            context.edges.append(DependencyEdge(
                from_id=parent_id,
                to_id=child.node_id,
                from_label=parent_name,
                to_label=dep_name,
            ))
            children.append(child)
        return children

    async def _vulnerability_issues(self, name: str, version: str) -> List[VersionIssue]:
        try:
            return list(await self.vulnerabilities.find_issues(name, version))
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.warning("Vulnerability lookup failed for %s@%s: %s", name, version, exc)
            return []


async def resolve_package_graph(
    manifest: PackageDefinition,
    options: Optional[ResolveOptions] = None,
    *,
    registry: MetadataSource,
    vulnerabilities: Optional[VulnerabilitySource] = None,
) -> DependencyGraphResult:
    """Resolve a manifest into a dependency graph.

    Args:
        manifest: Declared dependencies.
        options: Resolution options; defaults to ResolveOptions().
        registry: Metadata source, normally an NpmRegistryClient.
        vulnerabilities: Optional vulnerability collaborator.

    Returns:
        DependencyGraphResult: tree, edges and duplicate map.
    """
    resolver = GraphResolver(registry, vulnerabilities)
    return await resolver.resolve(manifest, options)
