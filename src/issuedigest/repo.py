"""Repository selection: ``--repo``, config, ``GITHUB_REPOSITORY`` or the git remote."""

from __future__ import annotations

import os
import re
import subprocess  # nosec B404 - reads the local git remote only
from collections.abc import Callable, Mapping

from .errors import InputError
from .logging import get_logger

_SLUG = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_REMOTE_PATTERNS = (
    re.compile(r"^(?:https?|git|ssh)://(?:[^@/]+@)?[^/]+(?::\d+)?/(?P<slug>[^/]+/[^/]+?)(?:\.git)?/?$"),
    re.compile(r"^(?:[^@/]+@)?[^:/]+:(?P<slug>[^/]+/[^/]+?)(?:\.git)?/?$"),
)


def parse_remote_url(url: str) -> str | None:
    """Extract ``owner/name`` from an https, ssh or scp-style git URL."""
    url = url.strip()
    for pattern in _REMOTE_PATTERNS:
        m = pattern.match(url)
        if m:
            return m.group("slug")
    return None


def git_origin_url(cwd: str | None = None) -> str | None:
    try:
        result = subprocess.run(  # nosec B603 B607 - fixed git invocation
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
            cwd=cwd,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        get_logger().debug(f"git remote lookup failed: {exc}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def validate_repository(repo: str) -> str:
    repo = repo.strip()
    if not _SLUG.match(repo):
        raise InputError(f"repository must be in owner/name form, got {repo!r}")
    return repo


def resolve_repository(
    explicit: str | None,
    configured: str | None,
    *,
    env: Mapping[str, str] | None = None,
    git_remote: Callable[[], str | None] = git_origin_url,
) -> str:
    """Return the first repository found, validated as ``owner/name``."""
    env = os.environ if env is None else env
    for source, value in (
        ("--repo", explicit),
        ("config", configured),
        ("GITHUB_REPOSITORY", env.get("GITHUB_REPOSITORY")),
    ):
        if value and value.strip():
            get_logger().debug(f"repository from {source}: {value}")
            return validate_repository(value)

    remote = git_remote()
    if remote:
        slug = parse_remote_url(remote)
        if slug:
            get_logger().debug(f"repository from git remote: {slug}")
            return validate_repository(slug)
    raise InputError(
        "could not determine the repository; pass --repo owner/name, set github.repo "
        "in the config file or GITHUB_REPOSITORY"
    )


__all__ = ["parse_remote_url", "git_origin_url", "validate_repository", "resolve_repository"]
