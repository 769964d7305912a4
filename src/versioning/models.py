"""Data models for version resolution and the dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class IssueType(Enum):
    """Closed set of diagnostic kinds attached to dependency nodes."""
    OUTDATED = "outdated"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    ERROR = "error"
    VULNERABLE = "vulnerable"
    ADVICE = "advice"


@dataclass(frozen=True)
class VersionIssue:
    """A typed diagnostic attached to a node."""
    type: IssueType
    message: str
    affected_versions: Optional[Tuple[str, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type.value, "message": self.message}
        if self.affected_versions is not None:
            data["affectedVersions"] = list(self.affected_versions)
        return data


@dataclass(frozen=True)
class DependencyEdge:
    """Directed parent -> child relation discovered during resolution."""
    from_id: str
    to_id: str
    from_label: str
    to_label: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "from": self.from_id,
            "to": self.to_id,
            "fromLabel": self.from_label,
            "toLabel": self.to_label,
        }


@dataclass
class DependencyNode:
    """One resolved dependency occurrence in the tree.

    The same package can appear as several nodes at different tree positions;
    nodes are created per traversed edge and never shared between parents.
    """
    name: str
    node_id: str
    declared_range: str
    resolved_version: Optional[str]
    latest_version: Optional[str]
    range_description: str
    issues: List[VersionIssue] = field(default_factory=list)
    children: List["DependencyNode"] = field(default_factory=list)
    edges: List[DependencyEdge] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "nodeId": self.node_id,
            "declaredRange": self.declared_range,
            "resolvedVersion": self.resolved_version,
            "latestVersion": self.latest_version,
            "rangeDescription": self.range_description,
            "issues": [issue.to_dict() for issue in self.issues],
            "children": [child.to_dict() for child in self.children],
            "edges": [edge.to_dict() for edge in self.edges],
        }


@dataclass
class DependencyGraphResult:
    """Resolver output: root nodes, every discovered edge and the duplicate map."""
    tree: List[DependencyNode] = field(default_factory=list)
    edges: List[DependencyEdge] = field(default_factory=list)
    duplicates: Dict[str, List[VersionIssue]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tree": [node.to_dict() for node in self.tree],
            "edges": [edge.to_dict() for edge in self.edges],
            "duplicates": {
                name: [issue.to_dict() for issue in issues]
                for name, issues in self.duplicates.items()
            },
        }


@dataclass
class ResolveOptions:
    """Knobs for one resolution run."""
    include_dev: bool = False
    include_peer: bool = True
    max_depth: int = 6


@dataclass
class PackageDefinition:
    """Declared dependencies of a manifest (package.json)."""
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)


def _string_map(value: Any) -> Dict[str, str]:
    """Keep only string -> string entries of a JSON object."""
    if not isinstance(value, Mapping):
        return {}
    return {str(k): v for k, v in value.items() if isinstance(v, str)}


@dataclass
class VersionManifest:
    """Manifest of one published version as reported by the registry."""
    name: str
    version: str
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    peer_dependencies: Dict[str, str] = field(default_factory=dict)
    deprecated: Optional[str] = None

    @classmethod
    def from_json(cls, name: str, version: str, data: Any) -> "VersionManifest":
        if not isinstance(data, Mapping):
            raise ValueError(f"Version entry {name}@{version} is not an object")
        deprecated = data.get("deprecated")
        if deprecated is not None and not isinstance(deprecated, str):
            # Older packuments used booleans; keep a readable notice.
            deprecated = "deprecated" if deprecated else None
        return cls(
            name=str(data.get("name") or name),
            version=str(data.get("version") or version),
            dependencies=_string_map(data.get("dependencies")),
            dev_dependencies=_string_map(data.get("devDependencies")),
            peer_dependencies=_string_map(data.get("peerDependencies")),
            deprecated=deprecated or None,
        )


@dataclass
class PackageMetadata:
    """Registry metadata for one package (the npm packument, trimmed)."""
    name: str
    versions: Dict[str, VersionManifest] = field(default_factory=dict)
    dist_tags: Dict[str, str] = field(default_factory=dict)

    @property
    def latest(self) -> Optional[str]:
        return self.dist_tags.get("latest")

    @classmethod
    def from_json(cls, name: str, data: Any) -> "PackageMetadata":
        """Build metadata from a registry packument.

        Raises:
            ValueError: if the document is not shaped like a packument.
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Registry response for {name} is not a JSON object")
        raw_versions = data.get("versions") or {}
        if not isinstance(raw_versions, Mapping):
            raise ValueError(f"Registry response for {name} has a malformed 'versions' field")
        versions = {
            str(version): VersionManifest.from_json(name, str(version), entry)
            for version, entry in raw_versions.items()
        }
        return cls(
            name=str(data.get("name") or name),
            versions=versions,
            dist_tags=_string_map(data.get("dist-tags")),
        )
