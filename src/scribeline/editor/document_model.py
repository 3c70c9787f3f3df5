"""Immutable document snapshots used by the insertion pipeline."""

from __future__ import annotations

import hashlib
from bisect import bisect_right
from dataclasses import dataclass, field

from ..core.ranges import Position


def hash_text(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


@dataclass(slots=True, frozen=True)
class DocumentSnapshot:
    """Point-in-time view of a document buffer.

    Lines are split on ``\\n`` only, so a document ending in a newline has a
    trailing empty line. Offsets and positions convert consistently with every
    line except the last being terminated by a single newline.
    """

    text: str
    lines: tuple[str, ...] = field(init=False)
    line_start_offsets: tuple[int, ...] = field(init=False)
    content_hash: str = field(init=False)

    def __post_init__(self) -> None:
        lines = tuple(self.text.split("\n"))
        offsets: list[int] = []
        cursor = 0
        for line in lines:
            offsets.append(cursor)
            cursor += len(line) + 1
        object.__setattr__(self, "lines", lines)
        object.__setattr__(self, "line_start_offsets", tuple(offsets))
        object.__setattr__(self, "content_hash", hash_text(self.text))

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line(self, index: int) -> str:
        """Return line ``index`` or an empty string when it does not exist."""

        if 0 <= index < len(self.lines):
            return self.lines[index]
        return ""

    def has_line(self, index: int) -> bool:
        return 0 <= index < len(self.lines)

    def char_before(self, offset: int) -> str:
        return self.text[offset - 1] if 0 < offset <= len(self.text) else ""

    def char_at(self, offset: int) -> str:
        return self.text[offset] if 0 <= offset < len(self.text) else ""

    def pos_to_offset(self, pos: Position) -> int:
        """Convert ``pos`` to an absolute offset, clamping out-of-range values."""

        line = min(pos.line, len(self.lines) - 1)
        column = min(pos.column, len(self.lines[line]))
        return self.line_start_offsets[line] + column

    def offset_to_pos(self, offset: int) -> Position:
        offset = max(0, min(int(offset), len(self.text)))
        line = bisect_right(self.line_start_offsets, offset) - 1
        return Position(line, offset - self.line_start_offsets[line])

    def matches(self, text: str) -> bool:
        """Return ``True`` when ``text`` is the content this snapshot was taken from."""

        return len(text) == len(self.text) and hash_text(text) == self.content_hash

    def version_signature(self) -> str:
        return f"{len(self.text)}:{self.content_hash}"


__all__ = ["DocumentSnapshot", "hash_text"]
