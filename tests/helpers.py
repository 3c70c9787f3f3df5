"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

from typing import Callable, Optional

from scribeline.ai.ai_types import EditRequest
from scribeline.ai.orchestration import EditSession
from scribeline.services.settings import Settings


class FakeBackend:
    """Generation backend that returns a canned response and records requests."""

    def __init__(
        self,
        response: str = "",
        *,
        error: Optional[BaseException] = None,
        on_generate: Optional[Callable[[EditRequest], None]] = None,
    ) -> None:
        self.response = response
        self.error = error
        self.on_generate = on_generate
        self.requests: list[EditRequest] = []
        self.closed = False

    async def generate(self, request: EditRequest) -> str:
        self.requests.append(request)
        if self.on_generate is not None:
            self.on_generate(request)
        if self.error is not None:
            raise self.error
        return self.response

    async def aclose(self) -> None:
        self.closed = True


class RecordingStatus:
    """Status indicator that records every transition."""

    def __init__(self) -> None:
        self.events: list[tuple[bool, str]] = []

    @property
    def busy(self) -> bool:
        return bool(self.events) and self.events[-1][0]

    def set_busy(self, busy: bool, message: str = "") -> None:
        self.events.append((busy, message))


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


def local_settings(**overrides) -> Settings:
    """Settings pointed at a local endpoint so no API key is required."""

    values = {"base_url": "http://localhost:1234/v1", "api_key": ""}
    values.update(overrides)
    return Settings(**values)


def make_session(**overrides) -> EditSession:
    return EditSession(
        settings=local_settings(**overrides),
        status=RecordingStatus(),
        notifier=RecordingNotifier(),
    )
