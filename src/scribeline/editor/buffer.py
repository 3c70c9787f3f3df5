"""Buffer capability consumed by the edit pipeline, plus an in-memory implementation."""

from __future__ import annotations

from typing import Literal, Protocol, runtime_checkable

from ..core.ranges import Position
from .document_model import DocumentSnapshot

CursorSide = Literal["from", "to"]


@runtime_checkable
class EditorBuffer(Protocol):
    """Minimal surface an editor host exposes to the edit orchestrator."""

    def get_value(self) -> str:
        ...

    def get_selection(self) -> str:
        ...

    def get_cursor(self, which: CursorSide = "to") -> Position:
        ...

    def pos_to_offset(self, pos: Position) -> int:
        ...

    def offset_to_pos(self, offset: int) -> Position:
        ...

    def replace_selection(self, text: str) -> None:
        ...

    def replace_range(self, text: str, start: Position, end: Position | None = None) -> None:
        ...


class InMemoryBuffer:
    """String-backed :class:`EditorBuffer` used by the CLI and tests.

    The selection is stored as absolute offsets. After a write the selection
    covers the written text, matching how editors select pasted content.
    """

    def __init__(self, text: str = "", *, selection: tuple[int, int] | None = None) -> None:
        self._text = text
        start, end = selection if selection is not None else (len(text), len(text))
        self._sel_start = 0
        self._sel_end = 0
        self.set_selection(start, end)
        self.write_count = 0

    @property
    def text(self) -> str:
        return self._text

    @property
    def selection_offsets(self) -> tuple[int, int]:
        return (self._sel_start, self._sel_end)

    def set_selection(self, start: int, end: int | None = None) -> None:
        length = len(self._text)
        start = max(0, min(int(start), length))
        end = start if end is None else max(0, min(int(end), length))
        if end < start:
            start, end = end, start
        self._sel_start, self._sel_end = start, end

    def set_cursor(self, pos: Position) -> None:
        offset = self.pos_to_offset(pos)
        self.set_selection(offset, offset)

    def get_value(self) -> str:
        return self._text

    def get_selection(self) -> str:
        return self._text[self._sel_start : self._sel_end]

    def get_cursor(self, which: CursorSide = "to") -> Position:
        offset = self._sel_start if which == "from" else self._sel_end
        return self.offset_to_pos(offset)

    def pos_to_offset(self, pos: Position) -> int:
        return DocumentSnapshot(self._text).pos_to_offset(pos)

    def offset_to_pos(self, offset: int) -> Position:
        return DocumentSnapshot(self._text).offset_to_pos(offset)

    def replace_selection(self, text: str) -> None:
        self._splice(self._sel_start, self._sel_end, text)

    def replace_range(self, text: str, start: Position, end: Position | None = None) -> None:
        start_offset = self.pos_to_offset(start)
        end_offset = self.pos_to_offset(end) if end is not None else start_offset
        if end_offset < start_offset:
            start_offset, end_offset = end_offset, start_offset
        self._splice(start_offset, end_offset, text)

    def _splice(self, start: int, end: int, text: str) -> None:
        self._text = self._text[:start] + text + self._text[end:]
        self._sel_start, self._sel_end = start, start + len(text)
        self.write_count += 1


__all__ = ["CursorSide", "EditorBuffer", "InMemoryBuffer"]
