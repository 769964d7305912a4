"""Tests for per-node issue rules."""

from analysis.issues import (
    build_range_advice,
    conflict_issue,
    deprecation_issue,
    merge_issues,
    outdated_issue,
)
from versioning.models import IssueType, VersionIssue


class TestBuildRangeAdvice:
    """Range-quality advice rules."""

    def test_star_range_single_advice(self):
        advice = build_range_advice("*", "1.2.3", "1.2.3")
        assert len(advice) == 1
        assert advice[0].type == IssueType.ADVICE
        assert "^1.2.3" in advice[0].message

    def test_star_falls_back_to_latest(self):
        advice = build_range_advice("", None, "3.0.0")
        assert len(advice) == 1
        assert "^3.0.0" in advice[0].message

    def test_star_without_any_version_still_advises(self):
        advice = build_range_advice("*", None, None)
        assert len(advice) == 1
        assert "^" in advice[0].message

    def test_exact_pin(self):
        advice = build_range_advice("1.2.3", "1.2.3", "1.4.0")
        assert [a.type for a in advice] == [IssueType.ADVICE]
        assert "^1.2.3" in advice[0].message

    def test_tilde(self):
        advice = build_range_advice("~1.2.0", "1.2.5", "1.2.5")
        assert len(advice) == 1
        assert "^1.2.5" in advice[0].message

    def test_open_lower_bound(self):
        advice = build_range_advice(">=1.0.0", "2.1.0", "2.1.0")
        assert len(advice) == 1
        assert "^2.1.0" in advice[0].message

    def test_caret_new_major(self):
        advice = build_range_advice("^1.0.0", "1.4.0", "2.0.0")
        assert len(advice) == 1
        assert "2.0.0" in advice[0].message and "1.4.0" in advice[0].message

    def test_caret_same_major_is_quiet(self):
        assert build_range_advice("^1.0.0", "1.4.0", "1.5.0") == []

    def test_caret_needs_resolved_version(self):
        assert build_range_advice("^5.0.0", None, "6.0.0") == []

    def test_exact_pin_without_versions_is_quiet(self):
        assert build_range_advice("1.2.3", None, None) == []


class TestIssueBuilders:
    def test_outdated_mentions_both_versions(self):
        issue = outdated_issue("1.0.0", "2.0.0")
        assert issue.type == IssueType.OUTDATED
        assert "1.0.0" in issue.message and "2.0.0" in issue.message

    def test_deprecation_is_vulnerable(self):
        issue = deprecation_issue("use other-pkg")
        assert issue.type == IssueType.VULNERABLE
        assert "use other-pkg" in issue.message

    def test_conflict_mentions_range(self):
        assert "^9.0.0" in conflict_issue("^9.0.0").message


class TestMergeIssues:
    A = VersionIssue(IssueType.ADVICE, "a")
    B = VersionIssue(IssueType.OUTDATED, "b")
    C = VersionIssue(IssueType.DUPLICATE, "c", affected_versions=("1.0.0", "2.0.0"))

    def test_appends_new_issues_in_order(self):
        assert merge_issues([self.A], [self.B, self.C]) == [self.A, self.B, self.C]

    def test_skips_same_type_and_message(self):
        same_pair = VersionIssue(IssueType.DUPLICATE, "c")
        assert merge_issues([self.C], [same_pair]) == [self.C]

    def test_same_message_other_type_is_kept(self):
        other = VersionIssue(IssueType.ERROR, "a")
        assert merge_issues([self.A], [other]) == [self.A, other]

    def test_idempotent(self):
        once = merge_issues([self.A], [self.B, self.C])
        assert merge_issues(once, [self.B, self.C]) == once

    def test_does_not_mutate_inputs(self):
        existing = [self.A]
        merge_issues(existing, [self.B])
        assert existing == [self.A]
