"""Tests for UX helpers module."""

from __future__ import annotations

import io

import pytest

from issuedigest.ux import Colors, ConsoleReporter, colorize


def _tty() -> io.StringIO:
    stream = io.StringIO()
    stream.isatty = lambda: True  # type: ignore[method-assign]
    return stream


def test_colorize_with_tty_support(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")

    result = colorize("test", Colors.RED, bold=True, stream=_tty())
    assert result == f"{Colors.BOLD}{Colors.RED}test{Colors.RESET}"


def test_colorize_respects_no_color(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NO_COLOR", "1")
    assert colorize("test", Colors.RED, bold=True, stream=_tty()) == "test"


def test_colorize_no_tty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    assert colorize("test", Colors.RED, stream=io.StringIO()) == "test"


def test_colorize_dumb_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "dumb")
    assert colorize("test", Colors.RED, stream=_tty()) == "test"


def test_console_reporter_lines() -> None:
    out = io.StringIO()
    reporter = ConsoleReporter(out)
    reporter.info("Fetching")
    reporter.success("Created issue #3")
    reporter.warning("Duplicate")
    reporter.error("Boom")
    reporter.detail("https://github.com/acme/widgets/issues/3")
    reporter.debug("hidden")
    assert out.getvalue().splitlines() == [
        "ℹ Fetching",
        "✓ Created issue #3",
        "⚠ Duplicate",
        "✗ Boom",
        "  → https://github.com/acme/widgets/issues/3",
    ]


def test_console_reporter_verbose_shows_debug() -> None:
    out = io.StringIO()
    ConsoleReporter(out, verbose=True).debug("details")
    assert out.getvalue() == "· details\n"


def test_console_reporter_quiet_keeps_preview_and_problems() -> None:
    out = io.StringIO()
    reporter = ConsoleReporter(out, verbose=True, quiet=True)
    reporter.info("hidden")
    reporter.debug("hidden")
    reporter.success("hidden")
    reporter.detail("hidden")
    reporter.warning("shown")
    reporter.error("shown")
    reporter.preview("Planning: v1", "## Overview\n")
    text = out.getvalue()
    assert "hidden" not in text
    assert text.count("shown") == 2
    assert "Planning: v1" in text
    assert "## Overview\n" in text


def test_preview_adds_missing_newline() -> None:
    out = io.StringIO()
    ConsoleReporter(out).preview("T", "body")
    lines = out.getvalue().splitlines()
    assert lines[1] == "T"
    assert lines[3] == "body"
    assert lines[2] == lines[4] == "─" * 60
