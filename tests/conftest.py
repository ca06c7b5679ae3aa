"""Pytest configuration for issuedigest tests.

Ensures the in-repo `src` directory is on `sys.path` so the package can be
imported without an editable install (`pip install -e .`). Shared fakes for
the tracker, reporter and confirmation prompt live here so no test talks
to the network or a terminal.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

_TEST_START_TIMES: dict[str, float] = {}
_TEST_DURATIONS: list[tuple[str, float]] = []

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import issuedigest.logging as digest_logging  # noqa: E402
from issuedigest.github_rest import GitHubAPIError  # noqa: E402
from issuedigest.models import Issue, Milestone, parse_timestamp  # noqa: E402

FIXED_NOW = datetime(2025, 1, 30, 15, 4, tzinfo=timezone.utc)
REPO = "acme/widgets"


def make_issue(
    number: int,
    *,
    state: str = "open",
    labels: Iterable[str] = (),
    assignee: str | None = None,
    title: str | None = None,
    pull_request: bool = False,
) -> Issue:
    kind = "pull" if pull_request else "issues"
    return Issue(
        number=number,
        title=title if title is not None else f"Issue {number}",
        state=state,
        html_url=f"https://github.com/{REPO}/{kind}/{number}",
        labels=frozenset(labels),
        assignee=assignee,
        is_pull_request=pull_request,
    )


def make_milestone(number: int = 1, title: str = "v1.0.0", **kw: Any) -> Milestone:
    kw.setdefault("description", "First stable release")
    kw.setdefault("html_url", f"https://github.com/{REPO}/milestone/{number}")
    kw.setdefault("due_on", parse_timestamp("2025-02-28T07:59:59Z"))
    return Milestone(number=number, title=title, **kw)


class FakeTracker:
    """In-memory IssueTracker that records every call."""

    def __init__(
        self,
        *,
        milestones: Iterable[Milestone] = (),
        milestone_issues: dict[int, list[Issue]] | None = None,
        labeled: dict[str, list[Issue]] | None = None,
        search_results: list[Issue] | None = None,
        next_number: int = 100,
    ) -> None:
        self.milestones = {m.number: m for m in milestones}
        self.milestone_issues = milestone_issues or {}
        self.labeled = labeled or {}
        self.search_results = search_results or []
        self.next_number = next_number
        self.failing_milestones: set[int] = set()
        self.fail_writes = False
        self.calls: list[tuple[Any, ...]] = []

    def get_milestone(self, number: int) -> Milestone:
        self.calls.append(("get_milestone", number))
        if number in self.failing_milestones:
            raise GitHubAPIError("GitHub API GET milestone failed with 500", status=500)
        if number not in self.milestones:
            raise GitHubAPIError(
                "GitHub API GET milestone failed with 404",
                status=404,
                response_text='{"message": "Not Found"}',
            )
        return self.milestones[number]

    def list_milestones(self, *, state: str = "open") -> list[Milestone]:
        self.calls.append(("list_milestones", state))
        return [m for m in self.milestones.values() if state == "all" or m.state == state]

    def list_issues(
        self,
        *,
        milestone: int | None = None,
        labels: Iterable[str] | None = None,
        state: str = "all",
    ) -> list[Issue]:
        label_list = tuple(labels or ())
        self.calls.append(("list_issues", milestone, label_list, state))
        if milestone is not None:
            return list(self.milestone_issues.get(milestone, []))
        out: list[Issue] = []
        for label in label_list:
            out.extend(self.labeled.get(label, []))
        return out

    def search_issues(self, query: str) -> list[Issue]:
        self.calls.append(("search_issues", query))
        return list(self.search_results)

    def create_issue(self, *, title: str, body: str, labels: Iterable[str] | None = None) -> int:
        self.calls.append(("create_issue", title, body, tuple(labels or ())))
        if self.fail_writes:
            raise GitHubAPIError("GitHub API POST issues failed with 403", status=403)
        return self.next_number

    def update_issue(self, *, number: int, title: str | None = None, body: str | None = None) -> None:
        self.calls.append(("update_issue", number, title, body))
        if self.fail_writes:
            raise GitHubAPIError("GitHub API PATCH issue failed with 403", status=403)

    @property
    def writes(self) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] in {"create_issue", "update_issue"}]


class RecordingReporter:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.previews: list[tuple[str, str]] = []

    def _record(self, kind: str, message: str) -> None:
        self.events.append((kind, message))

    def debug(self, message: str) -> None:
        self._record("debug", message)

    def info(self, message: str) -> None:
        self._record("info", message)

    def warning(self, message: str) -> None:
        self._record("warning", message)

    def success(self, message: str) -> None:
        self._record("success", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def detail(self, message: str) -> None:
        self._record("detail", message)

    def preview(self, title: str, body: str) -> None:
        self.previews.append((title, body))

    def messages(self, kind: str) -> list[str]:
        return [message for k, message in self.events if k == kind]


class ScriptedConfirm:
    def __init__(self, *answers: bool) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, message: str) -> bool:
        self.prompts.append(message)
        if not self.answers:
            raise AssertionError("confirmation requested but no answer scripted")
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def _fresh_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    """Each test gets a logger bound to its own (captured) stderr."""
    monkeypatch.setattr(digest_logging, "_GLOBAL", None)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def v1_tracker() -> FakeTracker:
    """Milestone #1 ``v1.0.0`` with a closed bug, an assigned enhancement,
    an unlabeled issue and a pull request."""
    return FakeTracker(
        milestones=[make_milestone()],
        milestone_issues={
            1: [
                make_issue(1, state="closed", labels=["bug", "priority/high"], assignee="user1"),
                make_issue(2, labels=["enhancement", "priority/medium"], assignee="user2"),
                make_issue(3),
                make_issue(4, labels=["bug"], pull_request=True),
            ]
        },
    )


# --- Timing utilities to help identify slow/stalling tests ---


def pytest_runtest_setup(item):  # type: ignore
    _TEST_START_TIMES[item.nodeid] = time.perf_counter()


def pytest_runtest_teardown(item):  # type: ignore
    start = _TEST_START_TIMES.pop(item.nodeid, None)
    if start is not None:
        duration = time.perf_counter() - start
        _TEST_DURATIONS.append((item.nodeid, duration))


def pytest_sessionfinish(session, exitstatus):  # type: ignore
    if not _TEST_DURATIONS:
        return
    slow = sorted(_TEST_DURATIONS, key=lambda x: x[1], reverse=True)[:10]
    print("\n=== Slowest Tests (top 10) ===")
    for nodeid, secs in slow:
        print(f"{secs:0.3f}s  {nodeid}")
    total_time = sum(d for _, d in _TEST_DURATIONS)
    print(
        f"Total recorded test time: {total_time:0.3f}s over {len(_TEST_DURATIONS)} tests"
    )
