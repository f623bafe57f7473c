"""User-facing prompts and notifications."""

from __future__ import annotations

import enum
import sys
from typing import Protocol

from .utils import colorize


class Severity(enum.StrEnum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_SEVERITY_COLORS = {
    Severity.INFO: "dim",
    Severity.WARN: "yellow",
    Severity.ERROR: "red",
}


class Interaction(Protocol):
    def prompt(self, text: str) -> str: ...

    def notify(self, text: str, severity: Severity = Severity.INFO) -> None: ...


class ConsoleInteraction:
    """Prompt on stdin, notify on stderr."""

    def __init__(self, input_fn=input, stream=None):
        self._input = input_fn
        self._stream = stream or sys.stderr

    def prompt(self, text: str) -> str:
        try:
            return self._input(text)
        except EOFError:
            return ""

    def notify(self, text: str, severity: Severity = Severity.INFO) -> None:
        prefix = "  Error: " if severity == Severity.ERROR else "  "
        color = _SEVERITY_COLORS.get(severity, "dim")
        print(colorize(f"{prefix}{text}", color, self._stream), file=self._stream)


__all__ = ["ConsoleInteraction", "Interaction", "Severity"]
