"""Shared typing contracts for the generation layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal, Protocol

ApplyMode = Literal["replace", "insert"]
APPLY_MODES: tuple[str, ...] = ("replace", "insert")


@dataclass(slots=True, frozen=True)
class EditRequest:
    """Context sent to the model for one edit.

    Offsets are absolute character offsets into ``document``; the percent
    fields express the same points as fractions of the document length so
    models can place them in long documents.
    """

    mode: ApplyMode
    instruction: str
    document: str
    selected_text: str
    context_before: str
    context_after: str
    selection_start_offset: int
    selection_end_offset: int
    selection_percent_start: float
    selection_percent_end: float

    def as_payload(self) -> dict[str, Any]:
        return asdict(self)


class GenerationBackend(Protocol):
    """Capability that turns an :class:`EditRequest` into replacement text.

    Implementations raise :class:`~scribeline.errors.GenerationError` for any
    failure: refusals, truncated output, transport and schema errors alike.
    """

    async def generate(self, request: EditRequest) -> str:
        ...


__all__ = ["APPLY_MODES", "ApplyMode", "EditRequest", "GenerationBackend"]
