"""Rewriting passes that adapt raw model output to its destination.

Each pass is a pure ``str -> str`` function. The insertion planner decides
which passes run and in what order; none of them read the buffer.
"""

from __future__ import annotations

import re
from typing import Literal, Sequence

from .syntax.markdown import apply_blockquote_prefix, fence_marker, is_blank, list_item

_LEADING_NEWLINES = re.compile(r"^\n+")
_TRAILING_NEWLINES = re.compile(r"\n+$")

Neighbour = Literal["text", "blank", "none"]


def unescape_literal_newlines(content: str) -> str:
    """Turn literal ``\\n`` sequences into newlines when the text has no real ones."""

    if "\n" not in content and "\\n" in content:
        return content.replace("\\n", "\n")
    return content


def strip_outer_fence(content: str) -> str:
    """Drop a fence pair wrapping the whole content.

    The first and last non-empty lines must both be boundaries of the same
    marker style; blank lines outside the pair are dropped with it.
    """

    lines = content.split("\n")
    filled = [index for index, line in enumerate(lines) if not is_blank(line)]
    if len(filled) < 2:
        return content
    first, last = filled[0], filled[-1]
    opening = fence_marker(lines[first])
    if opening is None or opening != fence_marker(lines[last]):
        return content
    return "\n".join(lines[first + 1 : last])


def trim_boundary_blank_lines(content: str, *, trim_start: bool, trim_end: bool) -> str:
    if trim_start:
        content = _LEADING_NEWLINES.sub("", content)
    if trim_end:
        content = _TRAILING_NEWLINES.sub("", content)
    return content


def _neighbour(lines: Sequence[str], index: int) -> Neighbour:
    if not 0 <= index < len(lines):
        return "none"
    return "blank" if is_blank(lines[index]) else "text"


def _fit_newline_run(run: str, neighbour: Neighbour) -> str:
    if neighbour == "text":
        return "\n"
    if neighbour == "blank":
        return ""
    return run[:1]


def normalize_paragraph_spacing(content: str, lines: Sequence[str], line_index: int) -> str:
    """Bound the blank-line runs around content inserted on a blank line.

    A side bordering text gets exactly one newline, a side bordering another
    blank line gets none, and a side at the start or end of the document
    keeps at most one. Content destined for a non-blank line is untouched.
    """

    if not 0 <= line_index < len(lines) or not is_blank(lines[line_index]):
        return content
    body = content.strip("\n")
    if not body:
        return content
    leading = content[: len(content) - len(content.lstrip("\n"))]
    trailing = content[len(content.rstrip("\n")) :]
    before = _fit_newline_run(leading, _neighbour(lines, line_index - 1))
    after = _fit_newline_run(trailing, _neighbour(lines, line_index + 1))
    return f"{before}{body}{after}"


def rewrite_list_stub(content: str, indent: str, marker: str) -> str:
    """Re-derive every line of ``content`` as an item under a stub list line.

    The first line takes the stub's own prefix. Later lines with a marker
    keep it, nested below the stub indent; later lines without one continue
    the item and align under its text column.
    """

    base_prefix = f"{indent}{marker} "
    continuation = f"{indent}{' ' * (len(marker) + 1)}"
    lines = content.strip("\n").split("\n")
    output: list[str] = []
    for index, line in enumerate(lines):
        if is_blank(line):
            output.append(base_prefix.rstrip())
            continue
        item = list_item(line)
        if index == 0:
            text = item.content if item else line.strip()
            output.append(f"{base_prefix}{text}".rstrip())
        elif item is not None:
            output.append(f"{indent}{item.indent}{item.marker} {item.content}".rstrip())
        else:
            output.append(f"{continuation}{line.strip()}")
    return "\n".join(output)


def reapply_blockquote_prefix(content: str, prefix: str, *, continue_line: bool = False) -> str:
    """Replace whatever quoting the model produced with the destination ``prefix``."""

    return apply_blockquote_prefix(content, prefix, skip_first=continue_line)


def ensure_trailing_newline(content: str) -> str:
    """Return ``content`` ending in exactly one newline."""

    return content.rstrip("\n") + "\n"


__all__ = [
    "ensure_trailing_newline",
    "normalize_paragraph_spacing",
    "reapply_blockquote_prefix",
    "rewrite_list_stub",
    "strip_outer_fence",
    "trim_boundary_blank_lines",
    "unescape_literal_newlines",
]
