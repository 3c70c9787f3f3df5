"""Insertion planning: where model output lands and in what shape."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from ..core.ranges import Position, TextRange
from ..errors import PipelineError
from .buffer import EditorBuffer
from .document_model import DocumentSnapshot
from .normalizer import (
    ensure_trailing_newline,
    normalize_paragraph_spacing,
    reapply_blockquote_prefix,
    rewrite_list_stub,
    strip_outer_fence,
    trim_boundary_blank_lines,
)
from .syntax.fences import FenceSpan, find_fence_bounds, is_inside_fence, iter_fence_spans
from .syntax.markdown import blockquote, is_blank, list_item

LOGGER = logging.getLogger(__name__)

PlanKind = Literal[
    "fence_blank_line",
    "fence_insert",
    "list_stub",
    "blockquote_stub",
    "blockquote",
    "list_item",
    "plain",
]


@dataclass(slots=True, frozen=True)
class InsertionPlan:
    """A single buffer write: replace ``start..end`` or insert at ``start``."""

    kind: PlanKind
    start: Position
    end: Optional[Position]
    text: str


def plan_insertion(document: DocumentSnapshot, point: Position, content: str) -> InsertionPlan:
    """Decide how ``content`` merges into ``document`` at ``point``.

    Fence handling is checked first and excludes every other heuristic. Outside
    fences the destination line picks one of list-stub, blockquote, or plain
    insertion; paragraph spacing only applies to plain insertions.
    """

    _validate_point(document, point)
    lines = document.lines
    line_index = point.line
    current = lines[line_index]
    offset = document.pos_to_offset(point)

    content = trim_boundary_blank_lines(
        content,
        trim_start=document.char_before(offset) == "\n",
        trim_end=document.char_at(offset) == "\n",
    )

    bounds = find_fence_bounds(lines, line_index)
    if bounds is not None or is_inside_fence(lines, line_index):
        body = ensure_trailing_newline(strip_outer_fence(content))
        if is_blank(current) and line_index + 1 < len(lines):
            return InsertionPlan(
                "fence_blank_line", Position(line_index, 0), Position(line_index + 1, 0), body
            )
        span = bounds or _span_on_boundary(lines, line_index)
        target = span.end if span else line_index
        return InsertionPlan("fence_insert", Position(target, 0), None, body)

    whole_line = (Position(line_index, 0), Position(line_index, len(current)))
    at_line_end = point.column == len(current)

    item = list_item(current)
    if item is not None and item.is_stub:
        text = rewrite_list_stub(content, item.indent, item.marker) if content.strip() else current
        return InsertionPlan("list_stub", *whole_line, text)

    quote = blockquote(current)
    if quote is not None and quote.is_stub:
        text = reapply_blockquote_prefix(content.strip("\n"), quote.prefix)
        return InsertionPlan("blockquote_stub", *whole_line, text)
    if quote is not None:
        if at_line_end:
            text = "\n" + reapply_blockquote_prefix(content.strip("\n"), quote.prefix)
        else:
            text = reapply_blockquote_prefix(content, quote.prefix, continue_line=True)
        return InsertionPlan("blockquote", point, None, text)

    if item is not None and at_line_end:
        text = content if content.startswith("\n") else f"\n{content}"
        return InsertionPlan("list_item", point, None, text)

    text = normalize_paragraph_spacing(content, lines, line_index)
    return InsertionPlan("plain", point, None, text)


def apply_plan(buffer: EditorBuffer, plan: InsertionPlan) -> TextRange:
    """Perform the plan as one buffer write and return the span it now occupies."""

    start = buffer.pos_to_offset(plan.start)
    buffer.replace_range(plan.text, plan.start, plan.end)
    LOGGER.debug("Applied %s plan at %s (%d chars)", plan.kind, plan.start, len(plan.text))
    return TextRange(start, start + len(plan.text))


def _validate_point(document: DocumentSnapshot, point: Position) -> None:
    if not document.has_line(point.line):
        raise PipelineError(
            f"Insertion line {point.line} is outside the document ({document.line_count} lines).",
            details={"line": point.line, "line_count": document.line_count},
        )
    line_length = len(document.line(point.line))
    if point.column > line_length:
        raise PipelineError(
            f"Insertion column {point.column} is past the end of line {point.line}.",
            details={"line": point.line, "column": point.column, "line_length": line_length},
        )


def _span_on_boundary(lines: Sequence[str], line_index: int) -> Optional[FenceSpan]:
    for span in iter_fence_spans(lines):
        if span.contains(line_index):
            return span
        if span.start > line_index:
            break
    return None


__all__ = ["InsertionPlan", "PlanKind", "apply_plan", "plan_insertion"]
