"""Notification sinks for user-visible outcomes.

Managers report successes and failures here; the surrounding application
decides where they end up (terminal, request buffer, nowhere).
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Generator, Optional, Protocol

from rich.console import Console

from .errors import LibraryError


class Severity(str, Enum):
    """Severity of a notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class NotificationSink(Protocol):
    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        ...


@dataclass
class Notification:
    """A single recorded notification."""

    message: str
    severity: Severity


class NullNotifier:
    """Discards all notifications."""

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        pass


class MemoryNotifier:
    """Collects notifications in order, e.g. to return with an API response."""

    def __init__(self) -> None:
        self.notifications: list[Notification] = []

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.notifications.append(Notification(message=message, severity=severity))

    def messages(self, severity: Optional[Severity] = None) -> list[str]:
        """Messages recorded so far, optionally filtered by severity."""
        return [
            n.message
            for n in self.notifications
            if severity is None or n.severity == severity
        ]

    def clear(self) -> None:
        self.notifications.clear()


class ConsoleNotifier:
    """Prints notifications with Rich."""

    STYLES = {
        Severity.SUCCESS: "[bold green]Success:[/bold green] {}",
        Severity.INFO: "[dim]{}[/dim]",
        Severity.WARNING: "[bold yellow]Warning:[/bold yellow] {}",
        Severity.ERROR: "[bold red]Error:[/bold red] {}",
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.console.print(self.STYLES[severity].format(message))


@contextmanager
def report_errors(sink: NotificationSink) -> Generator[None, None, None]:
    """Send any library failure raised in the block to the sink, then re-raise."""
    try:
        yield
    except LibraryError as e:
        sink.notify(str(e), Severity.ERROR)
        raise
