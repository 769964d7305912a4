"""Tests for the duplicate-detection pass."""

import copy

from analysis.duplicates import apply_duplicate_issues, compute_duplicate_issues
from versioning.models import DependencyNode, IssueType, VersionIssue


def node(name, version, children=None, issues=None):
    return DependencyNode(
        name=name,
        node_id=f"{name}@{version}",
        declared_range=f"^{version}",
        resolved_version=version,
        latest_version=version,
        range_description="",
        issues=list(issues or []),
        children=list(children or []),
    )


class TestComputeDuplicateIssues:
    def test_single_version_is_not_duplicate(self):
        assert compute_duplicate_issues({"a": ["1.0.0"]}) == {}

    def test_duplicate_and_advice(self):
        result = compute_duplicate_issues({"b": ["1.0.0", "2.0.0"], "a": ["1.0.0"]})
        assert list(result) == ["b"]
        dup, advice = result["b"]
        assert dup.type == IssueType.DUPLICATE
        assert "1.0.0, 2.0.0" in dup.message
        assert dup.affected_versions == ("1.0.0", "2.0.0")
        assert advice.type == IssueType.ADVICE
        assert "^2.0.0" in advice.message

    def test_versions_listed_in_first_seen_order(self):
        result = compute_duplicate_issues({"b": ["2.0.0", "1.10.0", "1.9.0"]})
        assert result["b"][0].affected_versions == ("2.0.0", "1.10.0", "1.9.0")
        assert "^2.0.0" in result["b"][1].message

    def test_semantic_not_lexical_ranking(self):
        result = compute_duplicate_issues({"b": ["1.9.0", "1.10.0"]})
        assert "^1.10.0" in result["b"][1].message

    def test_invalid_versions_listed_but_not_ranked(self):
        result = compute_duplicate_issues({"b": ["9.9", "1.0.0"]})
        dup, advice = result["b"]
        assert "9.9" in dup.message
        assert "^1.0.0" in advice.message

    def test_no_advice_without_valid_versions(self):
        result = compute_duplicate_issues({"b": ["x", "y"]})
        assert [i.type for i in result["b"]] == [IssueType.DUPLICATE]


class TestApplyDuplicateIssues:
    def _tree(self):
        return [
            node("a", "1.0.0", children=[node("b", "1.0.0")]),
            node("c", "1.0.0", children=[node("d", "1.0.0", children=[node("b", "2.0.0")])]),
            node("b", "2.0.0"),
        ]

    def test_every_occurrence_receives_issues(self):
        tree = self._tree()
        duplicates = compute_duplicate_issues({"b": ["1.0.0", "2.0.0"]})
        apply_duplicate_issues(tree, duplicates)

        b_nodes = [tree[0].children[0], tree[1].children[0].children[0], tree[2]]
        for b in b_nodes:
            assert b.issues == duplicates["b"]
        assert tree[0].issues == []
        assert tree[1].children[0].issues == []

    def test_existing_issues_kept_first(self):
        tree = self._tree()
        own = VersionIssue(IssueType.OUTDATED, "old")
        tree[2].issues.append(own)
        duplicates = compute_duplicate_issues({"b": ["1.0.0", "2.0.0"]})
        apply_duplicate_issues(tree, duplicates)
        assert tree[2].issues[0] == own
        assert len(tree[2].issues) == 3

    def test_idempotent(self):
        tree = self._tree()
        duplicates = compute_duplicate_issues({"b": ["1.0.0", "2.0.0"]})
        apply_duplicate_issues(tree, duplicates)
        snapshot = copy.deepcopy(tree)
        apply_duplicate_issues(tree, duplicates)
        assert tree == snapshot
