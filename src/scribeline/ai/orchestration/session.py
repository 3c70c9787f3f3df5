"""Explicit per-host state handed to the edit orchestrator."""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Iterator, Protocol, runtime_checkable

from ...services.settings import Settings

LOGGER = logging.getLogger(__name__)

BUSY_MESSAGE = "Generating..."


@runtime_checkable
class StatusIndicator(Protocol):
    """Host surface that shows whether a request is in flight."""

    def set_busy(self, busy: bool, message: str = "") -> None:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Host surface for transient user-facing messages."""

    def notify(self, message: str) -> None:
        ...


class LoggingStatusIndicator:
    """Status indicator that records state and logs transitions."""

    def __init__(self) -> None:
        self.busy = False
        self.message = ""

    def set_busy(self, busy: bool, message: str = "") -> None:
        self.busy = busy
        self.message = message if busy else ""
        LOGGER.debug("Status busy=%s %s", busy, self.message)


class LoggingNotifier:
    """Notifier that keeps a history and forwards messages to the log."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)
        LOGGER.info(message)


@dataclass(slots=True)
class EditSession:
    """Settings plus the host's status and notice surfaces.

    The caller owns the session; the orchestrator only reads settings and
    drives the two surfaces.
    """

    settings: Settings = field(default_factory=Settings)
    status: StatusIndicator = field(default_factory=LoggingStatusIndicator)
    notifier: Notifier = field(default_factory=LoggingNotifier)

    @contextlib.contextmanager
    def busy(self, message: str = BUSY_MESSAGE) -> Iterator[None]:
        """Show the busy state for the duration of the block, clearing it on any exit."""

        self.status.set_busy(True, message)
        try:
            yield
        finally:
            self.status.set_busy(False)

    def notify(self, message: str) -> None:
        self.notifier.notify(message)


__all__ = [
    "BUSY_MESSAGE",
    "EditSession",
    "LoggingNotifier",
    "LoggingStatusIndicator",
    "Notifier",
    "StatusIndicator",
]
