"""Centralized retry / backoff helpers.

``run_with_retries`` wraps a thunk with exponential backoff and jitter.
Only transient GitHub failures are retried: HTTP 429/502/503/504 or error
text mentioning rate limits / abuse detection. Everything else propagates
on the first attempt.

Environment overrides:
  ISSUEDIGEST_RETRY_ATTEMPTS (default 3)
  ISSUEDIGEST_RETRY_BASE (seconds base, default 0.5)
  ISSUEDIGEST_RETRY_MAX_SLEEP (optional cap on a single sleep)

A ``retry_after`` attribute on the raised error (the server's Retry-After
header) takes precedence over hints found in the error text.
"""

from __future__ import annotations

import os
import random
import re
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .logging import get_logger

T = TypeVar("T")

TRANSIENT_TOKENS = (
    "rate limit",
    "abuse detection",
    "secondary rate",
)
TRANSIENT_STATUSES = frozenset({429, 502, 503, 504})

_RE_RETRY_AFTER = re.compile(r"retry[-\s]after:?\s*(\d+)", re.IGNORECASE)
_RE_SECONDS_HINT = re.compile(r"wait\s*(\d+)\s*seconds", re.IGNORECASE)
_JITTER = random.SystemRandom()


def _extract_explicit_backoff(text: str) -> float | None:
    """Extract an explicit backoff (seconds) from error output.

    Supports patterns like:
      Retry-After: 12
      retry after 12
      wait 30 seconds
    Returns None if no valid positive value found.
    """
    if not text:
        return None
    for pattern in (_RE_RETRY_AFTER, _RE_SECONDS_HINT):
        m = pattern.search(text)
        if m:
            val = float(m.group(1))
            return val if val > 0 else None
    return None


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, default))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass
class RetryConfig:
    attempts: int = field(default_factory=lambda: _env_int("ISSUEDIGEST_RETRY_ATTEMPTS", 3))
    base_sleep: float = field(default_factory=lambda: _env_float("ISSUEDIGEST_RETRY_BASE", 0.5))


def is_transient(output: str, status: int | None = None) -> bool:
    if status in TRANSIENT_STATUSES:
        return True
    out_lower = (output or "").lower()
    return any(tok in out_lower for tok in TRANSIENT_TOKENS)


def _error_text(exc: BaseException) -> str:
    body = getattr(exc, "response_text", None) or ""
    return f"{exc} {body}".strip()


def _compute_sleep(
    attempt: int, cfg: RetryConfig, out: str, retry_after: float | None = None
) -> float:
    explicit = retry_after if retry_after is not None else _extract_explicit_backoff(out)
    backoff = cfg.base_sleep * (2 ** (attempt - 1)) + _JITTER.uniform(0, 0.25)
    sleep_for: float = explicit if explicit is not None else backoff
    max_cap_env = os.environ.get("ISSUEDIGEST_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def run_with_retries(
    fn: Callable[[], T],
    *,
    cfg: RetryConfig | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    cfg = cfg or RetryConfig()
    attempts = max(1, cfg.attempts)
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except Exception as exc:
            text = _error_text(exc)
            if attempt >= attempts or not is_transient(text, getattr(exc, "status", None)):
                raise
            sleep_for = _compute_sleep(attempt, cfg, text, getattr(exc, "retry_after", None))
            get_logger().warning(
                f"[retry] transient error, attempt {attempt}/{attempts}, sleeping {sleep_for:.2f}s",
                attempt=attempt,
                error=str(exc),
            )
            sleep(sleep_for)
    raise RuntimeError("retry logic exited unexpectedly")  # pragma: no cover


__all__ = ["RetryConfig", "run_with_retries", "is_transient", "TRANSIENT_STATUSES"]
