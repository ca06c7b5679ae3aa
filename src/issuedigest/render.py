"""Markdown rendering for tracking-issue bodies.

Documents are assembled from small section builders, each returning one
markdown block (no trailing newline). Blocks are joined with a blank line
and the document ends with a single newline. All ordering is explicit:

* categories follow the taxonomy, ``Uncategorized`` last
* ranked lists sort by ``(rank, number)``
* onboarding groups sort open-before-closed, then by number
* labels inside an issue line are sorted case-insensitively

Nothing here reads the clock or the network; the generation timestamp is
an argument so the same input always yields the same bytes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone
from urllib.parse import quote_plus

from .models import UNCATEGORIZED, ClassifiedIssue, LabelTaxonomy, Milestone, Stats

DEFAULT_WEB_URL = "https://github.com"
PROGRESS_WIDTH = 20
FILLED_CELL = "█"
EMPTY_CELL = "░"
RANK_SYMBOL = "!"
TOP_TIERS = 2

UNCATEGORIZED_TITLE = "Uncategorized"
UNSPECIFIED_TITLE = "Unspecified"
AUTOGEN_NOTICE = "> 🤖 Auto-generated by issuedigest. DO NOT EDIT."

ONBOARDING_DESCRIPTION = (
    "As a programming enthusiast, have you ever felt that you want to participate in the "
    "development of an open source project, but don't know where to start?\n"
    "In order to help everyone better participate in open source projects, we regularly "
    "publish issues suitable for new contributors to help everyone learn by doing!"
)

# ---- formatting primitives ---------------------------------------------


def progress_bar(
    completed: int, total: int, *, width: int = PROGRESS_WIDTH, decimals: int = 0
) -> str:
    """Fixed-width bar followed by the completion percentage.

    ``decimals == 0`` truncates the percentage to an integer (1 of 3 is
    ``33%``). Cells truncate too, so 1 of 30 fills none. ``0/0`` is an
    empty bar at ``0%``.
    """
    if total <= 0:
        filled = 0
        percent = "0%" if decimals <= 0 else f"{0:.{decimals}f}%"
    else:
        completed = max(0, min(completed, total))
        filled = completed * width // total
        if decimals <= 0:
            percent = f"{completed * 100 // total}%"
        else:
            percent = f"{completed * 100 / total:.{decimals}f}%"
    filled = min(filled, width)
    return FILLED_CELL * filled + EMPTY_CELL * (width - filled) + " " + percent


def rank_marker(rank: int, levels: int, symbol: str = RANK_SYMBOL) -> str:
    """``symbol`` repeated ``levels - rank`` times; empty for unranked issues."""
    if rank < 0 or rank >= levels:
        return ""
    return symbol * (levels - rank)


def format_date(value: datetime | None) -> str:
    if value is None:
        return "No due date"
    return f"{value:%B} {value.day}, {value.year}"


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return f"{value:%B} {value.day}, {value.year} {value:%H:%M} UTC"


def _code_list(labels: Sequence[str]) -> str:
    quoted = [f"`{label}`" for label in labels]
    if len(quoted) <= 1:
        return "".join(quoted)
    return ", ".join(quoted[:-1]) + " and " + quoted[-1]


def _sorted_labels(labels: Iterable[str]) -> list[str]:
    return sorted(labels, key=lambda name: (name.lower(), name))


# ---- link building ------------------------------------------------------


def issue_url(repo: str, number: int, *, web_url: str = DEFAULT_WEB_URL) -> str:
    return f"{web_url.rstrip('/')}/{repo}/issues/{number}"


def milestone_url(repo: str, number: int, *, web_url: str = DEFAULT_WEB_URL) -> str:
    return f"{web_url.rstrip('/')}/{repo}/milestone/{number}"


def label_term(label: str, *, negate: bool = False) -> str:
    return f'{"-" if negate else ""}label:"{label}"'


def any_label_term(labels: Sequence[str]) -> str:
    """``(label:"a" OR label:"b")``; empty when no labels are given."""
    if not labels:
        return ""
    if len(labels) == 1:
        return label_term(labels[0])
    return "(" + " OR ".join(label_term(label) for label in labels) + ")"


def search_url(repo: str, terms: Iterable[str], *, web_url: str = DEFAULT_WEB_URL) -> str:
    query = "+".join(quote_plus(term, safe="/*()") for term in terms if term)
    return f"{web_url.rstrip('/')}/{repo}/issues?q={query}"


# ---- ordering rules -----------------------------------------------------


def sort_by_rank(items: Iterable[ClassifiedIssue]) -> list[ClassifiedIssue]:
    return sorted(items, key=lambda item: (item.rank, item.number))


def sort_open_first(items: Iterable[ClassifiedIssue]) -> list[ClassifiedIssue]:
    return sorted(items, key=lambda item: (item.issue.completed, item.number))


def group_by_category(
    items: Iterable[ClassifiedIssue],
    categories: Sequence[str],
    *,
    order: Callable[[Iterable[ClassifiedIssue]], list[ClassifiedIssue]] = sort_by_rank,
) -> list[tuple[str, list[ClassifiedIssue]]]:
    """Taxonomy-ordered ``(category, issues)`` pairs, uncategorized last, empties dropped."""
    buckets: dict[str, list[ClassifiedIssue]] = {name: [] for name in categories}
    buckets[UNCATEGORIZED] = []
    for item in items:
        buckets.setdefault(item.category, []).append(item)
    groups: list[tuple[str, list[ClassifiedIssue]]] = []
    for name in (*categories, UNCATEGORIZED):
        members = buckets.get(name) or []
        if members:
            groups.append((name, order(members)))
    return groups


def group_by_rank(
    items: Iterable[ClassifiedIssue], ranks: Sequence[str]
) -> list[tuple[str, list[ClassifiedIssue]]]:
    """Rank-ordered ``(rank_label, issues)`` pairs, unspecified last, empties dropped."""
    buckets: list[list[ClassifiedIssue]] = [[] for _ in range(len(ranks) + 1)]
    for item in items:
        buckets[min(item.rank, len(ranks))].append(item)
    labels = [*ranks, UNCATEGORIZED]
    return [(labels[idx], members) for idx, members in enumerate(buckets) if members]


def top_tier(
    items: Iterable[ClassifiedIssue], levels: int, tiers: int = TOP_TIERS
) -> list[ClassifiedIssue]:
    cutoff = min(tiers, levels)
    return sort_by_rank(item for item in items if item.rank < cutoff)


def _unique(items: Iterable[ClassifiedIssue]) -> list[ClassifiedIssue]:
    seen: set[int] = set()
    out: list[ClassifiedIssue] = []
    for item in items:
        if item.number in seen:
            continue
        seen.add(item.number)
        out.append(item)
    return out


# ---- issue lines --------------------------------------------------------


def _checkbox(item: ClassifiedIssue) -> str:
    return "- [x]" if item.issue.completed else "- [ ]"


def planning_line(item: ClassifiedIssue, levels: int) -> str:
    parts = [_checkbox(item)]
    marker = rank_marker(item.rank, levels)
    if marker:
        parts.append(marker)
    parts.append(f"#{item.number}")
    if item.issue.assignee:
        parts.append(f"(@{item.issue.assignee})")
    parts.extend(f"`{label}`" for label in _sorted_labels(item.issue.labels))
    return " ".join(parts)


def onboarding_line(item: ClassifiedIssue) -> str:
    line = f"{_checkbox(item)} #{item.number}"
    assignee = item.issue.assignee
    if not assignee:
        return line
    if item.issue.completed:
        return f"{line} **[@{assignee} did it! Cheers! 🍻]**"
    return f"{line} (@{assignee} is working on it)"


# ---- shared sections ----------------------------------------------------


def _footer(links: Sequence[tuple[str, str, str]], now: datetime) -> str:
    lines = ["## Links", ""]
    lines.extend(f"- {icon} [{text}]({url})" for icon, text, url in links)
    lines.extend(["", "---", "", AUTOGEN_NOTICE, f"> Last Updated: {format_timestamp(now)}"])
    return "\n".join(lines)


def _join(blocks: Iterable[str]) -> str:
    return "\n\n".join(block for block in blocks if block) + "\n"


# ---- planning document --------------------------------------------------


def _planning_overview(repo: str, milestone: Milestone, stats: Stats, web_url: str) -> str:
    source = milestone.html_url or milestone_url(repo, milestone.number, web_url=web_url)
    return "\n".join(
        [
            "## Overview",
            "",
            f"- Progress: {progress_bar(stats.completed, stats.total)}",
            f"- Total Issues: {stats.total}",
            f"  - ✅ Completed: {stats.completed}",
            f"  - 🚧 In Progress: {stats.in_progress}",
            f"  - 📋 Unassigned: {stats.unassigned}",
            f"- Due Date: {format_date(milestone.due_on)}",
            f"- Data comes from [Milestone #{milestone.number}]({source})",
        ]
    )


def _planning_description(milestone: Milestone) -> str:
    text = milestone.description.strip() or "_No description provided._"
    return f"## Description\n\n{text}"


def _high_priority(items: Sequence[ClassifiedIssue], taxonomy: LabelTaxonomy) -> str:
    selected = top_tier(items, taxonomy.levels)
    if not selected:
        return ""
    tiers = list(taxonomy.ranks[: min(TOP_TIERS, taxonomy.levels)])
    lines = ["## High Priority Tasks", "", f"> Issues labeled with {_code_list(tiers)}", ""]
    lines.extend(planning_line(item, taxonomy.levels) for item in selected)
    return "\n".join(lines)


def _tasks_by_category(items: Sequence[ClassifiedIssue], taxonomy: LabelTaxonomy) -> str:
    lines = ["## Tasks by Category"]
    groups = group_by_category(items, taxonomy.categories)
    if not groups:
        lines.extend(["", "_No issues in this milestone._"])
    for category, members in groups:
        title = category or UNCATEGORIZED_TITLE
        lines.extend(["", f"### {title} ({len(members)})", ""])
        lines.extend(planning_line(item, taxonomy.levels) for item in members)
    return "\n".join(lines)


def _planning_contributors(stats: Stats) -> str:
    if not stats.contributors:
        return "## Contributors\n\n_No completed issues yet._"
    lines = [
        "## Contributors",
        "",
        "Thanks to all our contributors for their efforts on completed issues:",
        "",
    ]
    lines.extend(f"- @{login}" for login in stats.contributors)
    return "\n".join(lines)


def _planning_links(
    repo: str, milestone: Milestone, taxonomy: LabelTaxonomy, web_url: str
) -> list[tuple[str, str, str]]:
    scope = ["is:open", "is:issue", f'milestone:"{milestone.title}"']
    links: list[tuple[str, str, str]] = []
    if taxonomy.ranks:
        missing = [label_term(label, negate=True) for label in taxonomy.ranks]
        links.append(
            ("📋", "Issues without priority", search_url(repo, [*scope, *missing], web_url=web_url))
        )
    links.append(
        ("👥", "Unassigned issues", search_url(repo, [*scope, "no:assignee"], web_url=web_url))
    )
    links.append(
        ("📊", "All milestone issues", milestone_url(repo, milestone.number, web_url=web_url))
    )
    return links


def render_planning(
    repo: str,
    milestone: Milestone,
    classified: Sequence[ClassifiedIssue],
    stats: Stats,
    taxonomy: LabelTaxonomy,
    *,
    now: datetime,
    web_url: str = DEFAULT_WEB_URL,
) -> str:
    """Render the milestone planning digest."""
    items = _unique(classified)
    return _join(
        [
            _planning_overview(repo, milestone, stats, web_url),
            _planning_description(milestone),
            _high_priority(items, taxonomy),
            _tasks_by_category(items, taxonomy),
            _planning_contributors(stats),
            _footer(_planning_links(repo, milestone, taxonomy, web_url), now),
        ]
    )


# ---- onboarding document ------------------------------------------------


def _onboarding_overview(repo: str, stats: Stats, onboard_labels: Sequence[str], web_url: str) -> str:
    scope = any_label_term(onboard_labels)

    def link(text: str, *terms: str) -> str:
        return f"[{text}]({search_url(repo, ['is:issue', *terms, scope], web_url=web_url)})"

    return "\n".join(
        [
            "## Overview",
            "",
            f"- Progress: {progress_bar(stats.completed, stats.total, decimals=1)}",
            f"- {link(f'Total Issues: {stats.total}')}",
            f"  - ✅ {link(f'Completed: {stats.completed}', 'is:closed')}",
            f"  - 🚧 {link(f'In Progress: {stats.in_progress}', 'is:open', 'assignee:*')}",
            f"  - 📋 {link(f'Unassigned: {stats.unassigned}', 'is:open', 'no:assignee')}",
        ]
    )


def _start_here(items: Sequence[ClassifiedIssue], taxonomy: LabelTaxonomy) -> str:
    available = [item for item in items if not item.issue.completed and not item.issue.assignee]
    selected = top_tier(available, taxonomy.levels)
    if not selected:
        return ""
    tiers = list(taxonomy.ranks[: min(TOP_TIERS, taxonomy.levels)])
    lines = [
        "## Start Here",
        "",
        f"> Open issues nobody has claimed yet, labeled {_code_list(tiers)}, easiest first.",
        "",
    ]
    lines.extend(onboarding_line(item) for item in selected)
    return "\n".join(lines)


def _issue_list(items: Sequence[ClassifiedIssue], taxonomy: LabelTaxonomy) -> str:
    lines = [
        f"## Issue List ({len(items)})",
        "",
        "> The following onboarding issues are organized first by difficulty level "
        "(from easy to hard), and then by category within each difficulty level.",
    ]
    for difficulty, members in group_by_rank(items, taxonomy.ranks):
        lines.extend(["", f"### Difficulty: {difficulty or UNSPECIFIED_TITLE} ({len(members)})"])
        for category, grouped in group_by_category(
            members, taxonomy.categories, order=sort_open_first
        ):
            lines.extend(["", f"#### Category: {category or UNCATEGORIZED_TITLE} ({len(grouped)})", ""])
            lines.extend(onboarding_line(item) for item in grouped)
    return "\n".join(lines)


def _onboarding_contributors(stats: Stats) -> str:
    header = f"## Contributors ({len(stats.contributors)})"
    if not stats.contributors:
        return f"{header}\n\n_No contributors yet. Be the first!_"
    return "\n".join(
        [
            header,
            "",
            "Thanks to all our contributors who have completed onboarding issues! "
            "Your contributions help make our project better:",
            "",
            " ".join(f"@{login}" for login in stats.contributors),
        ]
    )


def _onboarding_links(
    repo: str, taxonomy: LabelTaxonomy, onboard_labels: Sequence[str], web_url: str
) -> list[tuple[str, str, str]]:
    scope = any_label_term(onboard_labels)
    links = [
        (
            "👥",
            "Unassigned issues",
            search_url(repo, ["is:issue", "is:open", "no:assignee", scope], web_url=web_url),
        )
    ]
    if taxonomy.ranks:
        missing = [label_term(label, negate=True) for label in taxonomy.ranks]
        links.append(
            (
                "🏷️",
                "Issues without difficulty",
                search_url(repo, ["is:issue", "is:open", scope, *missing], web_url=web_url),
            )
        )
    links.append(
        ("🔍", "All onboarding issues", search_url(repo, ["is:issue", scope], web_url=web_url))
    )
    return links


def render_onboarding(
    repo: str,
    classified: Sequence[ClassifiedIssue],
    stats: Stats,
    taxonomy: LabelTaxonomy,
    onboard_labels: Sequence[str],
    *,
    now: datetime,
    web_url: str = DEFAULT_WEB_URL,
) -> str:
    """Render the community onboarding digest."""
    items = _unique(classified)
    return _join(
        [
            _onboarding_overview(repo, stats, onboard_labels, web_url),
            f"## Description\n\n{ONBOARDING_DESCRIPTION}",
            _start_here(items, taxonomy),
            _issue_list(items, taxonomy),
            _onboarding_contributors(stats),
            _footer(_onboarding_links(repo, taxonomy, onboard_labels, web_url), now),
        ]
    )


__all__ = [
    "DEFAULT_WEB_URL",
    "progress_bar",
    "rank_marker",
    "format_date",
    "format_timestamp",
    "issue_url",
    "milestone_url",
    "label_term",
    "any_label_term",
    "search_url",
    "sort_by_rank",
    "sort_open_first",
    "group_by_category",
    "group_by_rank",
    "top_tier",
    "planning_line",
    "onboarding_line",
    "render_planning",
    "render_onboarding",
]
