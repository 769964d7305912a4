"""Depth-first traversal over resolved dependency trees."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Callable, Iterator, List, Sequence, TypeVar

from constants import Constants
from versioning.models import DependencyNode

T = TypeVar("T")


@dataclass(frozen=True)
class TreeVisit:
    """A node reached by the walk, with its depth (roots = 1) and breadcrumb."""
    node: DependencyNode
    depth: int
    path: str


def walk_tree(
    nodes: Sequence[DependencyNode],
    depth: int = 1,
    parent_path: str = "",
    separator: str = Constants.REPORT_PATH_SEPARATOR,
) -> Iterator[TreeVisit]:
    """Yield every node in pre-order, parents before children.

    Uses an explicit stack so deep trees do not hit the recursion limit.
    """
    stack = [(node, depth, parent_path) for node in reversed(nodes)]
    while stack:
        node, level, prefix = stack.pop()
        path = f"{prefix}{separator}{node.name}" if prefix else node.name
        yield TreeVisit(node, level, path)
        for child in reversed(node.children):
            stack.append((child, level + 1, path))


def fold_tree(
    nodes: Sequence[DependencyNode],
    fn: Callable[[T, TreeVisit], T],
    initial: T,
) -> T:
    """Reduce the tree in walk order."""
    acc = initial
    for visit in walk_tree(nodes):
        acc = fn(acc, visit)
    return acc


def filter_tree(
    nodes: Sequence[DependencyNode],
    predicate: Callable[[DependencyNode], bool],
) -> List[DependencyNode]:
    """Return copies of the nodes that match or have a matching descendant.

    The input tree is left untouched; node ``edges`` views are narrowed to
    children that survive the filter.
    """
    kept: List[DependencyNode] = []
    for node in nodes:
        children = filter_tree(node.children, predicate)
        if children or predicate(node):
            child_ids = {child.node_id for child in children}
            kept.append(dataclasses.replace(
                node,
                issues=list(node.issues),
                children=children,
                edges=[edge for edge in node.edges if edge.to_id in child_ids],
            ))
    return kept
