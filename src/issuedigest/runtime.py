"""Runtime helpers for issuedigest CLI orchestration."""

from __future__ import annotations

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from .config import CONFIG_DEFAULT, DigestConfig, default_config, load_config
from .logging import get_logger


class _HandlerCallable(Protocol):
    def __call__(self) -> Any: ...


def prepare_config(
    args: Any, *, loader: Callable[[str], DigestConfig] = load_config
) -> DigestConfig:
    """Load DigestConfig for the given argparse namespace and apply overrides.

    An explicit ``--config`` must exist. Without one, the default file is
    used when present and built-in defaults otherwise.
    """
    if not hasattr(args, "config"):
        raise AttributeError("Command namespace is missing 'config' attribute")
    if args.config:
        cfg = loader(args.config)
    elif Path(CONFIG_DEFAULT).is_file():
        cfg = loader(CONFIG_DEFAULT)
    else:
        cfg = default_config()
    repo_override = getattr(args, "repo", None)
    if repo_override:
        cfg.github_repo = repo_override
    return cfg


def _instrument_command(command: str, exit_code: int, start_time: float) -> None:
    duration = max(0.0, time.monotonic() - start_time)
    get_logger().log_performance(f"command_{command}", duration * 1000, exit_code=exit_code)


def execute_command(handler: _HandlerCallable, command: str) -> int:
    """Execute a command handler and record its duration and exit code."""
    start = time.monotonic()
    try:
        result = handler()
    except Exception:
        _instrument_command(command, 1, start)
        raise
    exit_code = int(result) if result is not None else 0
    _instrument_command(command, exit_code, start)
    return exit_code


__all__ = ["prepare_config", "execute_command"]
