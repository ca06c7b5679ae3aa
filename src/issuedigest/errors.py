"""Error taxonomy & redaction helpers.

Every failure the engine expects to surface to a user derives from
``DigestError`` so the CLI (and batch reconciliation) can catch one base
class while letting programming errors propagate untouched.

Categories:
- ``InputError``        bad milestone id, missing repository/token, bad title template
- ``TrackerError``      transport failure (network / auth / rate limit) wrapped with
                        the operation that was attempted
- ``ConfirmationError`` the interactive answer could not be read

Public helpers:
- classify_error(exc) -> ErrorInfo
- redact(text) -> str
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

# Simple token patterns; can be expanded (e.g., GitHub token, private key markers)
_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ghp_[A-Za-z0-9]{20,40}"),  # GitHub classic tokens
    re.compile(r"gho_[A-Za-z0-9]{20,40}"),  # OAuth app tokens
    re.compile(r"github_pat_\w{20,}"),  # GitHub fine-grained tokens
    re.compile(r"(?i)bearer\s+[A-Za-z0-9_\-\.]{20,}"),
]

_REDACTION_PLACEHOLDER = "<redacted>"
_AUTH_STATUSES = {401, 403}


class DigestError(RuntimeError):
    """Base class for failures reported to the user without a traceback."""


class InputError(DigestError):
    """Raised for invalid user input; always before any network call."""


class ConfirmationError(DigestError):
    """Raised when the confirmation answer cannot be read."""


class TrackerError(DigestError):
    """A tracker call failed; carries the attempted operation and HTTP details."""

    def __init__(
        self,
        operation: str,
        cause: BaseException,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        self.operation = operation
        self.status = status if status is not None else getattr(cause, "status", None)
        self.response_text = (
            response_text if response_text is not None else getattr(cause, "response_text", None)
        )
        message = f"failed to {operation}: {cause}"
        if self.response_text:
            message += f" ({self.response_text.strip()[:300]})"
        super().__init__(message)


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str) -> str:
    """Redact sensitive tokens in arbitrary text."""
    if not text:
        return text
    redacted = text
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException) -> ErrorInfo:
    """Best-effort classification of an exception.

    - rate limit wording or HTTP 429 -> 'github.rate_limit', transient
    - abuse detection -> 'github.abuse', transient
    - HTTP 401/403 -> 'github.auth'
    - network-y keywords -> 'network', transient
    - InputError -> 'input'
    - YAML / parse errors -> 'parse'
    - fallback -> 'generic'
    """
    msg = str(exc) if exc else ""
    low = msg.lower()
    status = getattr(exc, "status", None)
    name = exc.__class__.__name__
    details = {"status": status} if status is not None else None

    if "rate limit" in low or "secondary rate" in low or status == 429:
        return ErrorInfo("github.rate_limit", redact(msg), name, transient=True, details=details)
    if "abuse" in low:
        return ErrorInfo("github.abuse", redact(msg), name, transient=True, details=details)
    if status in _AUTH_STATUSES or "bad credentials" in low:
        return ErrorInfo("github.auth", redact(msg), name, details=details)
    if any(k in low for k in ("timeout", "timed out", "connection reset", "temporarily unavailable")):
        return ErrorInfo("network", redact(msg), name, transient=True, details=details)
    if isinstance(exc, InputError):
        return ErrorInfo("input", redact(msg), name)
    if any(k in low for k in ("yaml", "scannererror", "parsererror")):
        return ErrorInfo("parse", redact(msg), name)
    return ErrorInfo("generic", redact(msg), name, details=details)


__all__ = [
    "DigestError",
    "InputError",
    "ConfirmationError",
    "TrackerError",
    "ErrorInfo",
    "classify_error",
    "redact",
]
