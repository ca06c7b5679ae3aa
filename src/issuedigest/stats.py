from __future__ import annotations

from collections.abc import Iterable

from .models import ClassifiedIssue, Issue, Stats


def progress_ratio(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return completed / total


def aggregate(issues: Iterable[Issue | ClassifiedIssue]) -> Stats:
    """Fold an issue set into totals and a sorted contributor list.

    Closed issues count as completed and contribute their assignee; open
    issues are in progress when assigned, unassigned otherwise. An issue
    number seen twice is counted once.
    """
    seen: set[int] = set()
    total = completed = in_progress = unassigned = 0
    contributors: set[str] = set()

    for item in issues:
        issue = item.issue if isinstance(item, ClassifiedIssue) else item
        if issue.number in seen:
            continue
        seen.add(issue.number)
        total += 1
        if issue.completed:
            completed += 1
            if issue.assignee:
                contributors.add(issue.assignee)
        elif issue.assignee:
            in_progress += 1
        else:
            unassigned += 1

    return Stats(
        total=total,
        completed=completed,
        in_progress=in_progress,
        unassigned=unassigned,
        contributors=tuple(sorted(contributors)),
    )


__all__ = ["aggregate", "progress_ratio"]
