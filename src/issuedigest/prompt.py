"""Interactive yes/no confirmation."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import TextIO

from .errors import ConfirmationError

_YES = {"y", "yes"}
_NO = {"n", "no", ""}


def ask_for_confirmation(
    message: str,
    *,
    input_func: Callable[[], str] | None = None,
    stream: TextIO | None = None,
) -> bool:
    """Ask ``? <message> [y/n]: `` until the answer is recognised.

    ``y``/``yes`` confirm; ``n``/``no`` or an empty line decline. Anything
    else asks again. End of input raises :class:`ConfirmationError`.
    """
    stream = stream or sys.stdout
    read = input_func or sys.stdin.readline
    while True:
        stream.write(f"? {message} [y/n]: ")
        stream.flush()
        try:
            raw = read()
        except (EOFError, OSError) as exc:
            raise ConfirmationError(f"failed to read confirmation: {exc}") from exc
        if input_func is None and raw == "":
            raise ConfirmationError("failed to read confirmation: end of input")
        answer = raw.strip().lower()
        if answer in _YES:
            return True
        if answer in _NO:
            return False


__all__ = ["ask_for_confirmation"]
