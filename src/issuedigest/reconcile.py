"""Reconcile a tracking issue with the current state of the tracker.

One run is a straight pipeline:

1. fetch issues (a milestone's issues, or the onboarding label search)
2. drop pull requests
3. classify and aggregate
4. render the markdown body
5. fetch every issue carrying the tracking label and pick the target
6. preview, then decide: dry-run skips, auto-confirm writes, otherwise ask
7. create the issue (with the tracking label) or update title and body

The reconciler never talks to GitHub directly; it is handed an
``IssueTracker`` and all user-facing text goes through a ``Reporter``.
Transport failures surface as :class:`TrackerError` naming the step that
failed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from string import Formatter
from typing import Protocol

from .classify import classify_issues
from .errors import DigestError, InputError, TrackerError, classify_error
from .github_rest import GitHubAPIError
from .logging import get_logger
from .models import (
    RANK_DIFFICULTY,
    RANK_PRIORITY,
    Issue,
    LabelTaxonomy,
    Milestone,
    ResolveResult,
    Stats,
)
from .render import DEFAULT_WEB_URL, issue_url, render_onboarding, render_planning
from .resolver import resolve_target
from .stats import aggregate
from .ux import Reporter

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"
ACTION_SKIPPED = "skipped"
ACTION_DECLINED = "declined"

CONFIRM_MESSAGE = "Do you want to proceed with the update?"

DEFAULT_PLAN_LABEL = "planning"
DEFAULT_PLAN_TITLE = "Planning: {title}"
DEFAULT_PLAN_CATEGORIES = ("bug", "documentation", "enhancement")
DEFAULT_PRIORITIES = ("priority/high", "priority/medium", "priority/low")

DEFAULT_ONBOARD_LABELS = ("help wanted", "good first issue")
DEFAULT_DIFFICULTIES = ("good first issue", "help wanted")
DEFAULT_ONBOARD_CATEGORIES = ("bug", "enhancement", "documentation")
DEFAULT_ONBOARD_TARGET_LABEL = "onboarding"
DEFAULT_ONBOARD_TITLE = "Onboarding: Getting Started with Contributing"

_TEMPLATE_FIELDS = frozenset(Milestone(number=0, title="").template_fields())


class IssueTracker(Protocol):
    def get_milestone(self, number: int) -> Milestone: ...

    def list_milestones(self, *, state: str = "open") -> list[Milestone]: ...

    def list_issues(
        self,
        *,
        milestone: int | None = None,
        labels: Iterable[str] | None = None,
        state: str = "all",
    ) -> list[Issue]: ...

    def search_issues(self, query: str) -> list[Issue]: ...

    def create_issue(self, *, title: str, body: str, labels: Iterable[str] | None = None) -> int: ...

    def update_issue(self, *, number: int, title: str | None = None, body: str | None = None) -> None: ...


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PlanOptions:
    target_label: str = DEFAULT_PLAN_LABEL
    target_title: str = DEFAULT_PLAN_TITLE
    category_labels: Sequence[str] = DEFAULT_PLAN_CATEGORIES
    priority_labels: Sequence[str] = DEFAULT_PRIORITIES
    exclude_pull_requests: bool = True
    dry_run: bool = False
    auto_confirm: bool = False

    def taxonomy(self) -> LabelTaxonomy:
        return LabelTaxonomy(
            categories=tuple(self.category_labels),
            ranks=tuple(self.priority_labels),
            rank_kind=RANK_PRIORITY,
        )


@dataclass(frozen=True)
class OnboardOptions:
    onboard_labels: Sequence[str] = DEFAULT_ONBOARD_LABELS
    difficulty_labels: Sequence[str] = DEFAULT_DIFFICULTIES
    category_labels: Sequence[str] = DEFAULT_ONBOARD_CATEGORIES
    target_label: str = DEFAULT_ONBOARD_TARGET_LABEL
    target_title: str = DEFAULT_ONBOARD_TITLE
    dry_run: bool = False
    auto_confirm: bool = False

    def taxonomy(self) -> LabelTaxonomy:
        return LabelTaxonomy(
            categories=tuple(self.category_labels),
            ranks=tuple(self.difficulty_labels),
            rank_kind=RANK_DIFFICULTY,
        )


@dataclass
class ReconcileResult:
    action: str
    title: str
    body: str
    number: int | None = None
    url: str | None = None
    duplicates: tuple[int, ...] = ()
    stats: Stats = field(default_factory=Stats)

    @property
    def written(self) -> bool:
        return self.action in (ACTION_CREATED, ACTION_UPDATED)


@dataclass
class BatchResult:
    results: list[ReconcileResult] = field(default_factory=list)
    failures: list[tuple[int, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@contextmanager
def _tracker_call(operation: str) -> Iterator[None]:
    try:
        yield
    except DigestError:
        raise
    except (GitHubAPIError, OSError) as exc:
        raise TrackerError(operation, exc) from exc


def validate_title_template(template: str) -> None:
    """Reject templates naming fields a milestone does not provide."""
    if not template.strip():
        raise InputError("target title must not be empty")
    try:
        fields = [name for _, name, _, _ in Formatter().parse(template) if name is not None]
    except ValueError as exc:
        raise InputError(f"invalid target title template {template!r}: {exc}") from exc
    for name in fields:
        root = name.split(".", 1)[0].split("[", 1)[0]
        if root not in _TEMPLATE_FIELDS:
            allowed = ", ".join(sorted(_TEMPLATE_FIELDS))
            raise InputError(
                f"unknown field {{{name}}} in target title template; available: {allowed}"
            )


def format_title(template: str, milestone: Milestone) -> str:
    try:
        return template.format(**milestone.template_fields())
    except (KeyError, IndexError, ValueError, AttributeError) as exc:
        raise InputError(f"invalid target title template {template!r}: {exc}") from exc


def onboarding_query(repo: str, labels: Sequence[str]) -> str:
    """Search query matching issues that carry any of ``labels``."""
    quoted = ",".join(f'"{label}"' for label in labels)
    return f"repo:{repo} is:issue label:{quoted} sort:updated-desc"


def _drop_pull_requests(issues: Iterable[Issue]) -> list[Issue]:
    return [issue for issue in issues if not issue.is_pull_request]


def _dedupe(issues: Iterable[Issue]) -> list[Issue]:
    seen: dict[int, Issue] = {}
    for issue in issues:
        seen.setdefault(issue.number, issue)
    return sorted(seen.values(), key=lambda issue: (issue.completed, issue.number))


class Reconciler:
    def __init__(
        self,
        client: IssueTracker,
        *,
        reporter: Reporter,
        confirm: Callable[[str], bool],
        clock: Callable[[], datetime] = utc_now,
        web_url: str = DEFAULT_WEB_URL,
    ) -> None:
        self.client = client
        self.reporter = reporter
        self.confirm = confirm
        self.clock = clock
        self.web_url = web_url
        self.logger = get_logger()

    # ---- planning -----------------------------------------------------
    def reconcile_milestone(
        self, repo: str, milestone_number: int, options: PlanOptions
    ) -> ReconcileResult:
        if milestone_number <= 0:
            raise InputError(f"milestone number must be a positive integer, got {milestone_number}")
        validate_title_template(options.target_title)
        self.logger.log_operation(
            "reconcile_start", kind="planning", repo=repo, milestone=milestone_number
        )

        with _tracker_call(f"get milestone #{milestone_number}"):
            milestone = self.client.get_milestone(milestone_number)
        self.reporter.debug(f"Fetching issues for milestone #{milestone.number} ({milestone.title})")
        with _tracker_call(f"list issues for milestone #{milestone_number}"):
            issues = self.client.list_issues(milestone=milestone.number, state="all")
        fetched = len(issues)
        if options.exclude_pull_requests:
            issues = _drop_pull_requests(issues)
        self.logger.debug(
            "milestone issues fetched",
            milestone=milestone.number,
            fetched=fetched,
            kept=len(issues),
        )

        taxonomy = options.taxonomy()
        classified = classify_issues(issues, taxonomy)
        stats = aggregate(classified)
        with self.logger.timed_operation("render_planning", milestone=milestone.number):
            body = render_planning(
                repo, milestone, classified, stats, taxonomy, now=self.clock(), web_url=self.web_url
            )
        title = format_title(options.target_title, milestone)
        self.logger.log_digest("planning", title, stats, milestone=milestone.number)
        return self._publish(
            repo,
            title=title,
            body=body,
            stats=stats,
            target_label=options.target_label,
            dry_run=options.dry_run,
            auto_confirm=options.auto_confirm,
        )

    def reconcile_open_milestones(self, repo: str, options: PlanOptions) -> BatchResult:
        """Reconcile every open milestone; one milestone failing does not stop the rest."""
        validate_title_template(options.target_title)
        with _tracker_call("list open milestones"):
            milestones = self.client.list_milestones(state="open")
        batch = BatchResult()
        if not milestones:
            self.reporter.info("No open milestones found")
            return batch

        self.reporter.info(f"Found {len(milestones)} open milestone(s)")
        for milestone in milestones:
            self.reporter.info(f"Processing milestone #{milestone.number}: {milestone.title}")
            try:
                batch.results.append(self.reconcile_milestone(repo, milestone.number, options))
            except DigestError as exc:
                self.reporter.error(f"Milestone #{milestone.number} failed: {exc}")
                info = classify_error(exc)
                self.logger.log_error(
                    "milestone reconciliation failed",
                    error=info.message,
                    category=info.category,
                    transient=info.transient,
                    milestone=milestone.number,
                )
                batch.failures.append((milestone.number, str(exc)))
        return batch

    # ---- onboarding ---------------------------------------------------
    def reconcile_onboarding(self, repo: str, options: OnboardOptions) -> ReconcileResult:
        labels = [label for label in options.onboard_labels if label.strip()]
        if not labels:
            raise InputError("at least one onboarding label is required")
        if not options.target_title.strip():
            raise InputError("target title must not be empty")
        self.logger.log_operation("reconcile_start", kind="onboarding", repo=repo, labels=labels)

        query = onboarding_query(repo, labels)
        self.reporter.debug(f"Searching issues: {query}")
        with _tracker_call("search onboarding issues"):
            found = self.client.search_issues(query)
        issues = _dedupe(_drop_pull_requests(found))
        self.logger.debug("onboarding issues fetched", fetched=len(found), kept=len(issues))

        taxonomy = options.taxonomy()
        classified = classify_issues(issues, taxonomy)
        stats = aggregate(classified)
        with self.logger.timed_operation("render_onboarding", issues=len(classified)):
            body = render_onboarding(
                repo, classified, stats, taxonomy, labels, now=self.clock(), web_url=self.web_url
            )
        self.logger.log_digest("onboarding", options.target_title, stats)
        return self._publish(
            repo,
            title=options.target_title,
            body=body,
            stats=stats,
            target_label=options.target_label,
            dry_run=options.dry_run,
            auto_confirm=options.auto_confirm,
        )

    # ---- shared write path --------------------------------------------
    def _resolve(self, title: str, target_label: str) -> ResolveResult:
        with _tracker_call(f"list issues labeled {target_label!r}"):
            candidates = self.client.list_issues(labels=[target_label], state="all")
        resolved = resolve_target(_drop_pull_requests(candidates), title)
        if resolved.duplicates and resolved.target is not None:
            others = ", ".join(f"#{n}" for n in resolved.duplicates)
            self.reporter.warning(
                f"Multiple issues titled {title!r} ({others}); using #{resolved.target.number}"
            )
        return resolved

    def _publish(
        self,
        repo: str,
        *,
        title: str,
        body: str,
        stats: Stats,
        target_label: str,
        dry_run: bool,
        auto_confirm: bool,
    ) -> ReconcileResult:
        resolved = self._resolve(title, target_label)
        target = resolved.target
        result = ReconcileResult(
            action=ACTION_SKIPPED,
            title=title,
            body=body,
            number=target.number if target else None,
            url=(target.html_url or issue_url(repo, target.number, web_url=self.web_url))
            if target
            else None,
            duplicates=resolved.duplicates,
            stats=stats,
        )

        self.reporter.preview(title, body)

        if dry_run:
            self.reporter.info("Dry-run mode, skipping update")
            self.logger.log_issue_action(
                "updated" if target else "created",
                title,
                issue_number=result.number,
                dry_run=True,
            )
            return result

        if auto_confirm:
            self.reporter.info("Auto-confirm enabled, skipping confirmation")
        else:
            if target:
                self.reporter.info(f"Will update issue #{target.number}")
                self.reporter.detail(str(result.url))
            else:
                self.reporter.info(f"Will create a new issue labeled {target_label!r}")
            if not self.confirm(CONFIRM_MESSAGE):
                self.reporter.info("Update cancelled")
                result.action = ACTION_DECLINED
                return result

        if target is None:
            with _tracker_call(f"create issue {title!r}"):
                number = self.client.create_issue(title=title, body=body, labels=[target_label])
            result.action = ACTION_CREATED
            result.number = number
            result.url = issue_url(repo, number, web_url=self.web_url)
            self.reporter.success(f"Created issue #{number}")
        else:
            with _tracker_call(f"update issue #{target.number}"):
                self.client.update_issue(number=target.number, title=title, body=body)
            result.action = ACTION_UPDATED
            self.reporter.success(f"Updated issue #{target.number}")
        self.reporter.detail(str(result.url))
        self.logger.log_issue_action(result.action, title, issue_number=result.number)
        return result


__all__ = [
    "ACTION_CREATED",
    "ACTION_UPDATED",
    "ACTION_SKIPPED",
    "ACTION_DECLINED",
    "IssueTracker",
    "PlanOptions",
    "OnboardOptions",
    "ReconcileResult",
    "BatchResult",
    "Reconciler",
    "format_title",
    "validate_title_template",
    "onboarding_query",
    "utc_now",
]
