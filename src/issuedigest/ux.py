"""Terminal output for the CLI: ANSI colors and the reporter sink."""

from __future__ import annotations

import os
import sys
from typing import Protocol, TextIO


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


def _supports_color(stream: TextIO | None = None) -> bool:
    """Check if terminal supports color output."""
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return True


def colorize(text: str, color: str, bold: bool = False, stream: TextIO | None = None) -> str:
    """Apply color to text if terminal supports it."""
    if not _supports_color(stream):
        return text
    prefix = (Colors.BOLD if bold else "") + color
    return f"{prefix}{text}{Colors.RESET}"


class Reporter(Protocol):
    """Where the reconciler sends user-facing progress and the preview."""

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def detail(self, message: str) -> None: ...

    def preview(self, title: str, body: str) -> None: ...


class ConsoleReporter:
    """Reporter that prints colored lines to a stream.

    ``quiet`` drops info, detail and debug lines. Previews, warnings and
    errors are always shown. Debug lines need ``verbose``. Errors go to
    ``err_stream`` (the main stream unless given).
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        *,
        err_stream: TextIO | None = None,
        verbose: bool = False,
        quiet: bool = False,
    ):
        self.stream = stream or sys.stdout
        self.err_stream = err_stream or self.stream
        self.verbose = verbose
        self.quiet = quiet

    def _line(self, icon: str, color: str, message: str, stream: TextIO | None = None) -> None:
        stream = stream or self.stream
        print(colorize(icon, color, bold=True, stream=stream) + " " + message, file=stream)

    def debug(self, message: str) -> None:
        if self.verbose and not self.quiet:
            print(colorize(f"· {message}", Colors.DIM, stream=self.stream), file=self.stream)

    def info(self, message: str) -> None:
        if not self.quiet:
            self._line("ℹ", Colors.BLUE, message)

    def warning(self, message: str) -> None:
        self._line("⚠", Colors.YELLOW, message)

    def success(self, message: str) -> None:
        if not self.quiet:
            self._line("✓", Colors.GREEN, message)

    def error(self, message: str) -> None:
        self._line("✗", Colors.RED, message, self.err_stream)

    def detail(self, message: str) -> None:
        if not self.quiet:
            print(f"  {colorize('→', Colors.DIM, stream=self.stream)} {message}", file=self.stream)

    def preview(self, title: str, body: str) -> None:
        rule = colorize("─" * 60, Colors.DIM, stream=self.stream)
        print(colorize(f"\n{title}", Colors.CYAN, bold=True, stream=self.stream), file=self.stream)
        print(rule, file=self.stream)
        self.stream.write(body if body.endswith("\n") else body + "\n")
        print(rule, file=self.stream)


__all__ = ["Colors", "colorize", "Reporter", "ConsoleReporter"]
