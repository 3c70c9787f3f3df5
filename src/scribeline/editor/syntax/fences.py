"""Fenced-code tracking over whole documents.

Fence state is recomputed with a linear scan on every query; documents in an
editor rarely exceed tens of thousands of lines, so no index is maintained.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from .markdown import fence_marker


@dataclass(slots=True, frozen=True)
class FenceSpan:
    """Line bounds of a fenced block; both boundary lines are included."""

    start: int
    end: int

    def contains(self, line_index: int) -> bool:
        return self.start <= line_index <= self.end


def _as_lines(document: str | Sequence[str]) -> Sequence[str]:
    if isinstance(document, str):
        return document.split("\n")
    return document


def iter_fence_spans(lines: Sequence[str]) -> Iterator[FenceSpan]:
    """Yield matched fence pairs top to bottom.

    Only a boundary of the same marker style closes an open fence, so ``~~~``
    inside a backtick fence is literal text. An unterminated fence yields
    nothing.
    """

    open_marker: str | None = None
    open_line = -1
    for index, line in enumerate(lines):
        marker = fence_marker(line)
        if marker is None:
            continue
        if open_marker is None:
            open_marker, open_line = marker, index
        elif marker == open_marker:
            yield FenceSpan(open_line, index)
            open_marker, open_line = None, -1


def is_inside_fence(document: str | Sequence[str], line_index: int) -> bool:
    """Return ``True`` when an open fence covers ``line_index``.

    Both boundary lines count as inside: the closing marker belongs to the
    block it closes. A fence left open covers every following line.
    """

    lines = _as_lines(document)
    if not 0 <= line_index < len(lines):
        return False
    open_marker: str | None = None
    for index, line in enumerate(lines[: line_index + 1]):
        marker = fence_marker(line)
        if marker is None:
            continue
        if open_marker is None:
            open_marker = marker
        elif marker == open_marker:
            if index == line_index:
                return True
            open_marker = None
    return open_marker is not None


def find_fence_bounds(lines: Sequence[str], line_index: int) -> Optional[FenceSpan]:
    """Return the fence enclosing ``line_index``, or ``None``.

    The candidate pair is the nearest boundary at or above ``line_index`` and
    the nearest at or below it. The pair is accepted only when the two lines
    differ and the document scan matched them as one open/close pair, so
    lines between two separate blocks report ``None``.
    """

    if not 0 <= line_index < len(lines):
        return None
    start = next(
        (index for index in range(line_index, -1, -1) if fence_marker(lines[index])),
        None,
    )
    if start is None:
        return None
    end = next(
        (index for index in range(line_index, len(lines)) if fence_marker(lines[index])),
        None,
    )
    if end is None or end == start:
        return None
    candidate = FenceSpan(start, end)
    for span in iter_fence_spans(lines):
        if span == candidate:
            return candidate
        if span.start > start:
            break
    return None


__all__ = ["FenceSpan", "find_fence_bounds", "is_inside_fence", "iter_fence_spans"]
