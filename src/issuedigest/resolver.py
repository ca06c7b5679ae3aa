"""Locate the single tracking issue a digest should be written to."""

from __future__ import annotations

from collections.abc import Iterable

from .models import Issue, ResolveResult, TargetIssue


def resolve_target(candidates: Iterable[Issue], expected_title: str) -> ResolveResult:
    """Pick the lowest-numbered candidate whose title equals ``expected_title``.

    Candidates are every issue carrying the tracking label, open or closed.
    Other exact matches are returned as ``duplicates`` (ascending) so the
    caller can warn about them; they are never an error. No match means the
    caller should create a new issue.
    """
    matches = sorted(
        (issue for issue in candidates if issue.title == expected_title),
        key=lambda issue: issue.number,
    )
    if not matches:
        return ResolveResult(target=None)
    first, *rest = matches
    duplicates = tuple(dict.fromkeys(issue.number for issue in rest if issue.number != first.number))
    return ResolveResult(target=TargetIssue.from_issue(first), duplicates=duplicates)


__all__ = ["resolve_target"]
