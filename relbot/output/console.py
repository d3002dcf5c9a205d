"""Release log output.

Every pipeline step reports through a `ConsoleProtocol`. `RichConsole`
writes the bot's server-side log to stderr; `MockConsole` keeps records for
assertions. A failure that the requester sees as one short chat line is
written here in full, with its kind and hint.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
]


class Style(Enum):
    DEFAULT = auto()
    DIM = auto()  # per-step progress: git commands, version, name
    HEADER = auto()  # one per release run
    SUCCESS = auto()
    WARNING = auto()
    ERROR = auto()


class ConsoleProtocol(Protocol):
    """Where release progress and failures are logged."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def header(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None:
        """Log a problem that does not change the outcome (e.g. cleanup)."""
        ...

    def error(self, message: str) -> None: ...


_RICH_STYLES = {
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
    Style.SUCCESS: "green",
    Style.WARNING: "yellow",
    Style.ERROR: "red bold",
}


class RichConsole:
    """Log to stderr through `rich`, leaving stdout to the chat channel."""

    def __init__(self, *, stderr: bool = True) -> None:
        from rich.console import Console

        self._console = Console(stderr=stderr)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        # git and gh output is printed verbatim, never parsed as markup
        self._console.print(message, style=_RICH_STYLES.get(style), markup=False)

    def header(self, message: str) -> None:
        self._console.print()
        self.print(message, Style.HEADER)

    def success(self, message: str) -> None:
        self._tagged("OK", Style.SUCCESS, message)

    def warning(self, message: str) -> None:
        self._tagged("warning:", Style.WARNING, message)

    def error(self, message: str) -> None:
        self._tagged("error:", Style.ERROR, message)

    def _tagged(self, tag: str, style: Style, message: str) -> None:
        from rich.text import Text

        line = Text(tag, style=_RICH_STYLES[style])
        line.append(f" {message}")
        self._console.print(line)


@dataclass(frozen=True, slots=True)
class LogRecord:
    message: str
    style: Style


@dataclass
class MockConsole:
    """Captures log records in memory."""

    records: list[LogRecord] = field(default_factory=list)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.records.append(LogRecord(message, style))

    def header(self, message: str) -> None:
        self.print(message, Style.HEADER)

    def success(self, message: str) -> None:
        self.print(f"OK {message}", Style.SUCCESS)

    def warning(self, message: str) -> None:
        self.print(f"warning: {message}", Style.WARNING)

    def error(self, message: str) -> None:
        self.print(f"error: {message}", Style.ERROR)

    def has_error(self) -> bool:
        return any(r.style is Style.ERROR for r in self.records)

    def has_warning(self) -> bool:
        return any(r.style is Style.WARNING for r in self.records)

    def find(self, substring: str) -> list[LogRecord]:
        return [r for r in self.records if substring in r.message]
