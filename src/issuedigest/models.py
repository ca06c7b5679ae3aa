from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

STATE_OPEN = "open"
STATE_CLOSED = "closed"

UNCATEGORIZED = ""
RANK_PRIORITY = "priority"
RANK_DIFFICULTY = "difficulty"


def _label_names(raw: Any) -> frozenset[str]:
    names: set[str] = set()
    if not isinstance(raw, list):
        return frozenset()
    for lbl in raw:
        if isinstance(lbl, dict):
            name = lbl.get("name")
            if isinstance(name, str):
                names.add(name)
        elif isinstance(lbl, str):
            names.add(lbl)
    return frozenset(names)


def _login(raw: Any) -> str | None:
    if isinstance(raw, dict):
        login = raw.get("login")
        if isinstance(login, str) and login:
            return login
    elif isinstance(raw, str) and raw:
        return raw
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse GitHub's ISO-8601 timestamps (``2025-02-28T07:59:59Z``)."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True)
class Issue:
    """Immutable snapshot of one tracker issue, fetched once per run."""

    number: int
    title: str
    state: str
    html_url: str = ""
    labels: frozenset[str] = field(default_factory=frozenset)
    assignee: str | None = None
    is_pull_request: bool = False

    @property
    def completed(self) -> bool:
        return self.state == STATE_CLOSED

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Issue:
        html_url = str(payload.get("html_url") or "")
        state = str(payload.get("state") or STATE_OPEN).lower()
        return cls(
            number=int(payload.get("number") or 0),
            title=str(payload.get("title") or ""),
            state=STATE_CLOSED if state == STATE_CLOSED else STATE_OPEN,
            html_url=html_url,
            labels=_label_names(payload.get("labels")),
            assignee=_login(payload.get("assignee")),
            is_pull_request="pull_request" in payload or "/pull/" in html_url,
        )


@dataclass(frozen=True)
class Milestone:
    number: int
    title: str
    description: str = ""
    state: str = STATE_OPEN
    html_url: str = ""
    due_on: datetime | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> Milestone:
        return cls(
            number=int(payload.get("number") or 0),
            title=str(payload.get("title") or ""),
            description=str(payload.get("description") or ""),
            state=str(payload.get("state") or STATE_OPEN),
            html_url=str(payload.get("html_url") or ""),
            due_on=parse_timestamp(payload.get("due_on")),
        )

    def template_fields(self) -> dict[str, Any]:
        """Fields available to target-title templates such as ``Planning: {title}``."""
        return {
            "title": self.title,
            "number": self.number,
            "state": self.state,
            "description": self.description,
            "due_on": self.due_on.strftime("%Y-%m-%d") if self.due_on else "",
            "html_url": self.html_url,
        }


def _dedupe(labels: Any) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for label in labels or ():
        name = str(label).strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        out.append(name)
    return tuple(out)


@dataclass(frozen=True)
class LabelTaxonomy:
    """Ordered label lists. Earlier entries rank higher (or easier)."""

    categories: tuple[str, ...] = ()
    ranks: tuple[str, ...] = ()
    rank_kind: str = RANK_PRIORITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", _dedupe(self.categories))
        object.__setattr__(self, "ranks", _dedupe(self.ranks))

    @property
    def levels(self) -> int:
        return len(self.ranks)


@dataclass(frozen=True)
class ClassifiedIssue:
    issue: Issue
    category: str
    rank: int
    rank_label: str = ""

    @property
    def number(self) -> int:
        return self.issue.number

    @property
    def categorized(self) -> bool:
        return self.category != UNCATEGORIZED


@dataclass(frozen=True)
class Stats:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    unassigned: int = 0
    contributors: tuple[str, ...] = ()

    @property
    def progress(self) -> float:
        """Completion percentage (0-100); 0.0 when there are no issues."""
        if self.total <= 0:
            return 0.0
        return self.completed / self.total * 100


@dataclass(frozen=True)
class TargetIssue:
    number: int
    title: str
    state: str = STATE_OPEN
    html_url: str = ""

    @classmethod
    def from_issue(cls, issue: Issue) -> TargetIssue:
        return cls(number=issue.number, title=issue.title, state=issue.state, html_url=issue.html_url)


@dataclass(frozen=True)
class ResolveResult:
    target: TargetIssue | None
    duplicates: tuple[int, ...] = ()

    @property
    def found(self) -> bool:
        return self.target is not None


__all__ = [
    "STATE_OPEN",
    "STATE_CLOSED",
    "UNCATEGORIZED",
    "RANK_PRIORITY",
    "RANK_DIFFICULTY",
    "Issue",
    "Milestone",
    "LabelTaxonomy",
    "ClassifiedIssue",
    "Stats",
    "TargetIssue",
    "ResolveResult",
    "parse_timestamp",
]
