"""issuedigest CLI.

Subcommands:
  plan [milestone]  -> render the planning digest for one milestone, or for
                       every open milestone when no number is given
  onboard           -> render the onboarding digest for new contributors

Both preview the body, then create or update the tracking issue after
confirmation (``--yes`` skips the question, ``--dry-run`` never writes).

Exit codes: 0 success (also declined / dry-run, or a batch where at least
one milestone succeeded), 1 tracker or other runtime failure (including a
batch where every milestone failed), 2 invalid input.
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any

from . import __version__
from .config import CONFIG_DEFAULT, ConfigError, DigestConfig, parse_label_list
from .env_auth import EnvAuthConfig, create_env_auth_manager
from .errors import DigestError, InputError, redact
from .github_rest import GitHubRestClient
from .logging import configure_logging
from .prompt import ask_for_confirmation
from .reconcile import (
    IssueTracker,
    OnboardOptions,
    PlanOptions,
    Reconciler,
    validate_title_template,
)
from .repo import resolve_repository
from .runtime import execute_command, prepare_config
from .ux import ConsoleReporter

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INPUT = 2

REPO_HELP = "Override target repository (owner/repo)"
_MAX_HELP_WIDTH = 100


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


class _FormatterArgumentParser(argparse.ArgumentParser):
    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("formatter_class", _HelpFormatter)
        super().__init__(*args, **kwargs)


def _add_write_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-n", "--dry-run", action="store_true", help="Preview only, never create or update"
    )
    parser.add_argument(
        "-y", "--yes", action="store_true", help="Skip the confirmation prompt"
    )


def _build_parser() -> argparse.ArgumentParser:
    """Construct top-level CLI parser with subcommands."""
    p = _FormatterArgumentParser(
        prog="issuedigest",
        description="Keep a GitHub tracking issue in sync with milestone and onboarding issues",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", help=f"Configuration file (default: {CONFIG_DEFAULT} if present)")
    p.add_argument("--repo", help=REPO_HELP)
    p.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    p.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output (env: ISSUEDIGEST_QUIET=1)",
    )
    p.add_argument("--log-json", action="store_true", help="Emit diagnostics as JSON lines")
    sub = p.add_subparsers(
        dest="cmd",
        required=True,
        parser_class=_FormatterArgumentParser,
        metavar="<command>",
    )

    pp = sub.add_parser("plan", help="Create or update the milestone planning issue")
    pp.add_argument(
        "milestone", nargs="?", help="Milestone number (default: every open milestone)"
    )
    pp.add_argument("-t", "--target-label", help="Label identifying the planning issue")
    pp.add_argument(
        "-T", "--target-title", help="Title template, e.g. 'Planning: {title}'"
    )
    pp.add_argument("-c", "--category-labels", help="Comma-separated category labels, in order")
    pp.add_argument(
        "-p", "--priority-labels", help="Comma-separated priority labels, highest first"
    )
    pr_group = pp.add_mutually_exclusive_group()
    pr_group.add_argument(
        "-e",
        "--exclude-pr",
        dest="exclude_pr",
        action="store_true",
        default=None,
        help="Leave pull requests out of the digest (default)",
    )
    pr_group.add_argument(
        "--include-pr",
        dest="exclude_pr",
        action="store_false",
        help="Count pull requests assigned to the milestone",
    )
    _add_write_flags(pp)

    po = sub.add_parser("onboard", help="Create or update the onboarding issue")
    po.add_argument(
        "-o", "--onboard-labels", help="Comma-separated labels selecting onboarding issues"
    )
    po.add_argument(
        "-d", "--difficulty-labels", help="Comma-separated difficulty labels, easiest first"
    )
    po.add_argument("-c", "--category-labels", help="Comma-separated category labels, in order")
    po.add_argument("-t", "--target-label", help="Label identifying the onboarding issue")
    po.add_argument("-T", "--target-title", help="Title of the onboarding issue")
    _add_write_flags(po)
    return p


def _parse_milestone(value: str) -> int:
    try:
        number = int(value.strip().lstrip("#"))
    except ValueError:
        raise InputError(f"invalid milestone number {value!r}") from None
    if number <= 0:
        raise InputError(f"milestone number must be positive, got {number}")
    return number


def _build_client(cfg: DigestConfig, repo: str) -> IssueTracker:
    auth = create_env_auth_manager(
        EnvAuthConfig(load_dotenv=cfg.env_auth_load_dotenv, dotenv_path=cfg.env_auth_dotenv_path)
    )
    token = auth.get_github_token()
    if not token:
        hints = "; ".join(auth.get_authentication_recommendations())
        raise InputError(f"no GitHub token found ({hints})")
    return GitHubRestClient(token=token, repo=repo, base_url=cfg.api_url)


def _build_reconciler(cfg: DigestConfig, repo: str, reporter: ConsoleReporter) -> Reconciler:
    return Reconciler(
        _build_client(cfg, repo),
        reporter=reporter,
        confirm=ask_for_confirmation,
        web_url=cfg.web_url,
    )


def _cmd_plan(cfg: DigestConfig, args: argparse.Namespace, reporter: ConsoleReporter) -> int:
    milestone = _parse_milestone(args.milestone) if args.milestone is not None else None
    options = PlanOptions(
        target_label=args.target_label or cfg.plan_target_label,
        target_title=args.target_title or cfg.plan_target_title,
        category_labels=parse_label_list(args.category_labels, cfg.plan_category_labels),
        priority_labels=parse_label_list(args.priority_labels, cfg.plan_priority_labels),
        exclude_pull_requests=(
            cfg.plan_exclude_pull_requests if args.exclude_pr is None else args.exclude_pr
        ),
        dry_run=args.dry_run or cfg.dry_run_default,
        auto_confirm=args.yes or cfg.auto_confirm,
    )
    validate_title_template(options.target_title)
    repo = resolve_repository(args.repo, cfg.github_repo)
    reconciler = _build_reconciler(cfg, repo, reporter)

    if milestone is not None:
        reconciler.reconcile_milestone(repo, milestone, options)
        return EXIT_OK

    batch = reconciler.reconcile_open_milestones(repo, options)
    if batch.failures:
        failed = ", ".join(f"#{number}" for number, _ in batch.failures)
        reporter.warning(f"{len(batch.failures)} milestone(s) failed: {failed}")
        if not batch.results:
            return EXIT_FAILURE
    return EXIT_OK


def _cmd_onboard(cfg: DigestConfig, args: argparse.Namespace, reporter: ConsoleReporter) -> int:
    options = OnboardOptions(
        onboard_labels=parse_label_list(args.onboard_labels, cfg.onboard_labels),
        difficulty_labels=parse_label_list(args.difficulty_labels, cfg.onboard_difficulty_labels),
        category_labels=parse_label_list(args.category_labels, cfg.onboard_category_labels),
        target_label=args.target_label or cfg.onboard_target_label,
        target_title=args.target_title or cfg.onboard_target_title,
        dry_run=args.dry_run or cfg.dry_run_default,
        auto_confirm=args.yes or cfg.auto_confirm,
    )
    if not options.onboard_labels:
        raise InputError("at least one onboarding label is required")
    repo = resolve_repository(args.repo, cfg.github_repo)
    _build_reconciler(cfg, repo, reporter).reconcile_onboarding(repo, options)
    return EXIT_OK


def _build_handlers(
    args: argparse.Namespace, cfg: DigestConfig, reporter: ConsoleReporter
) -> dict[str, Any]:
    return {
        "plan": lambda: _cmd_plan(cfg, args, reporter),
        "onboard": lambda: _cmd_onboard(cfg, args, reporter),
    }


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.quiet and os.environ.get("ISSUEDIGEST_QUIET") == "1":
        args.quiet = True
    reporter = ConsoleReporter(
        sys.stdout, err_stream=sys.stderr, verbose=args.verbose, quiet=args.quiet
    )

    try:
        cfg = prepare_config(args)
    except ConfigError as exc:
        reporter.error(redact(str(exc)))
        return EXIT_INPUT
    configure_logging(
        json_logging=args.log_json or cfg.logging_json_enabled,
        level="DEBUG" if args.verbose else cfg.logging_level,
    )

    handlers = _build_handlers(args, cfg, reporter)
    handler = handlers.get(args.cmd)
    if handler is None:  # pragma: no cover - argparse enforces valid choices
        parser.print_help()
        return EXIT_FAILURE
    try:
        return execute_command(handler, args.cmd)
    except InputError as exc:
        reporter.error(redact(str(exc)))
        return EXIT_INPUT
    except DigestError as exc:
        reporter.error(redact(str(exc)))
        return EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
