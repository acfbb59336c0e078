"""User-visible warning sinks.

The packing engine reports truncated and dropped blocks through a
Notifier. Hosts pick the sink: the CLI prints to a Rich console, library
callers can route to logging, and tests use the null sink.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from rich.console import Console


@runtime_checkable
class Notifier(Protocol):
    """Receives human-readable warnings."""

    def warn(self, message: str) -> None: ...


class NullNotifier:
    """Discards every warning."""

    def warn(self, message: str) -> None:
        return None


class LoggingNotifier:
    """Forwards warnings to a logger at WARNING level."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("promptfit.notify")

    def warn(self, message: str) -> None:
        self._logger.warning(message)


class RichNotifier:
    """Prints warnings to a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def warn(self, message: str) -> None:
        self._console.print(f"[yellow]⚠ {message}[/yellow]", highlight=False)


class RecordingNotifier:
    """Keeps warnings in memory, in order."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def warn(self, message: str) -> None:
        self.messages.append(message)
