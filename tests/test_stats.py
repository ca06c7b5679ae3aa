from __future__ import annotations

from conftest import make_issue

from issuedigest.classify import classify_issues
from issuedigest.models import LabelTaxonomy, Stats
from issuedigest.stats import aggregate, progress_ratio


def test_aggregate_counts_each_bucket():
    stats = aggregate(
        [
            make_issue(1, state="closed", assignee="user1"),
            make_issue(2, assignee="user2"),
            make_issue(3),
            make_issue(4, state="closed"),
        ]
    )
    assert stats == Stats(total=4, completed=2, in_progress=1, unassigned=1, contributors=("user1",))
    assert stats.progress == 50.0


def test_aggregate_contributors_sorted_and_unique():
    stats = aggregate(
        [
            make_issue(1, state="closed", assignee="zed"),
            make_issue(2, state="closed", assignee="amy"),
            make_issue(3, state="closed", assignee="zed"),
        ]
    )
    assert stats.contributors == ("amy", "zed")


def test_aggregate_open_assignee_is_not_a_contributor():
    stats = aggregate([make_issue(1, assignee="busy")])
    assert stats.contributors == ()
    assert stats.in_progress == 1


def test_aggregate_empty_input():
    stats = aggregate([])
    assert stats.total == 0
    assert stats.progress == 0.0


def test_aggregate_counts_repeated_numbers_once():
    issue = make_issue(9, state="closed", assignee="user1")
    assert aggregate([issue, issue]).total == 1


def test_aggregate_accepts_classified_issues_and_is_repeatable():
    issues = [make_issue(1, state="closed", assignee="a"), make_issue(2)]
    classified = classify_issues(issues, LabelTaxonomy())
    assert aggregate(classified) == aggregate(issues) == aggregate(classified)


def test_progress_ratio():
    assert progress_ratio(1, 4) == 0.25
    assert progress_ratio(0, 0) == 0.0
