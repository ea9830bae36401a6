"""
User-facing notifications.

The pipeline never notifies on its own; the caller facade and the formatter
registry report through a Notifier so an editor integration can route
messages to its own UI while the CLI prints them.
"""

import logging
from typing import List, Protocol, Tuple, runtime_checkable

from .errors import Severity

logger = logging.getLogger(__name__)


@runtime_checkable
class Notifier(Protocol):
    """Anything that can show a message to the user."""

    def notify(self, message: str, severity: Severity) -> None:
        ...


class LoggingNotifier:
    """Notifier that forwards messages to a logger at the matching level."""

    def __init__(self, name: str = "bufformat"):
        self._logger = logging.getLogger(name)

    def notify(self, message: str, severity: Severity) -> None:
        self._logger.log(severity.log_level, message)


class RecordingNotifier:
    """Notifier that keeps every message, for callers that report later."""

    def __init__(self):
        self.messages: List[Tuple[str, Severity]] = []

    def notify(self, message: str, severity: Severity) -> None:
        logger.debug(f"Notification ({severity.value}): {message}")
        self.messages.append((message, severity))

    def clear(self) -> None:
        self.messages.clear()
