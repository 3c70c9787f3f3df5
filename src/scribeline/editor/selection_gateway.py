"""Facade capturing read-only selection snapshots from an editor buffer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..core.ranges import Position, TextRange
from .buffer import EditorBuffer
from .document_model import DocumentSnapshot


@dataclass(slots=True, frozen=True)
class SelectionSnapshot:
    """Document text plus the selection, taken together at call start."""

    document: DocumentSnapshot
    start: Position
    end: Position
    start_offset: int
    end_offset: int
    selected_text: str

    @property
    def has_selection(self) -> bool:
        return self.end_offset > self.start_offset

    @property
    def insertion_point(self) -> Position:
        """Insertion anchor: the end of the selection, or the cursor."""

        return self.end

    @property
    def insertion_offset(self) -> int:
        return self.end_offset

    @property
    def span(self) -> TextRange:
        return TextRange(self.start_offset, self.end_offset)


class SelectionSnapshotProvider(Protocol):
    """Protocol implemented by selection gateways consumed by the orchestrator."""

    def capture(self, buffer: EditorBuffer) -> SelectionSnapshot:
        ...


class SelectionGateway(SelectionSnapshotProvider):
    """Reads text, cursor, and selection from a buffer into one snapshot."""

    def capture(self, buffer: EditorBuffer) -> SelectionSnapshot:
        document = DocumentSnapshot(buffer.get_value() or "")
        length = document.length
        start_offset, end_offset = self._clamp_range(
            buffer.pos_to_offset(buffer.get_cursor("from")),
            buffer.pos_to_offset(buffer.get_cursor("to")),
            length,
        )
        return SelectionSnapshot(
            document=document,
            start=document.offset_to_pos(start_offset),
            end=document.offset_to_pos(end_offset),
            start_offset=start_offset,
            end_offset=end_offset,
            selected_text=buffer.get_selection() or "",
        )

    @staticmethod
    def _clamp_range(start: int, end: int, length: int) -> tuple[int, int]:
        start = max(0, min(int(start), length))
        end = max(0, min(int(end), length))
        if end < start:
            start, end = end, start
        return start, end


__all__ = [
    "SelectionGateway",
    "SelectionSnapshot",
    "SelectionSnapshotProvider",
]
