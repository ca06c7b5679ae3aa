"""Label classification against ordered taxonomies.

The taxonomy list is scanned in its configured order, not in the order the
tracker returned the labels, so an issue carrying both ``bug`` and
``enhancement`` always lands in whichever comes first in the configuration.
Comparison is case-insensitive; the taxonomy spelling is returned.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import UNCATEGORIZED, ClassifiedIssue, Issue, LabelTaxonomy


def match_label(labels: Iterable[str], ordered: Sequence[str]) -> tuple[str, int]:
    """Return ``(entry, index)`` of the first ``ordered`` entry present in ``labels``.

    Unmatched issues get ``("", len(ordered))`` so they always sort after
    every real rank.
    """
    present = {label.lower() for label in labels}
    for index, entry in enumerate(ordered):
        if entry.lower() in present:
            return entry, index
    return UNCATEGORIZED, len(ordered)


def classify_issue(issue: Issue, taxonomy: LabelTaxonomy) -> ClassifiedIssue:
    category, _ = match_label(issue.labels, taxonomy.categories)
    rank_label, rank = match_label(issue.labels, taxonomy.ranks)
    return ClassifiedIssue(issue=issue, category=category, rank=rank, rank_label=rank_label)


def classify_issues(issues: Iterable[Issue], taxonomy: LabelTaxonomy) -> list[ClassifiedIssue]:
    return [classify_issue(issue, taxonomy) for issue in issues]


__all__ = ["match_label", "classify_issue", "classify_issues"]
