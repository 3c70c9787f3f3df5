"""Markdown line classification.

Every structural syntax the insertion pipeline understands is recognized here:
list items (bulleted, numbered, and task checkboxes), blockquote prefixes, and
fenced-code boundaries. Classification is per line and has no state, so the
same line always classifies the same way regardless of what came before it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional, Union

_LIST_PATTERN = re.compile(
    r"^(?P<indent>\s*)"
    r"(?P<marker>(?:[-*+]|\d+\.)(?:\s+\[[ xX]\])?)"
    r"(?:\s+(?P<rest>.*)|\s*)$"
)
_BLOCKQUOTE_PATTERN = re.compile(r"^(?P<prefix>\s*>+ ?)(?P<rest>.*)$")
_FENCE_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<marker>```|~~~)(?P<info>.*)$")

LineKind = Literal["list", "blockquote", "fence"]


@dataclass(slots=True, frozen=True)
class ListItem:
    """A bulleted or numbered list line."""

    indent: str
    marker: str
    content: str
    is_stub: bool
    kind: LineKind = "list"

    @property
    def prefix(self) -> str:
        """Indent, marker, and the single space that precedes item text."""

        return f"{self.indent}{self.marker} "

    @property
    def is_ordered(self) -> bool:
        return self.marker[:1].isdigit()


@dataclass(slots=True, frozen=True)
class Blockquote:
    """A line carrying a ``>`` prefix; ``prefix`` is the exact matched span."""

    prefix: str
    content: str
    is_stub: bool
    kind: LineKind = "blockquote"

    @property
    def depth(self) -> int:
        return self.prefix.count(">")


@dataclass(slots=True, frozen=True)
class FenceBoundary:
    """An opening or closing fenced-code delimiter line."""

    indent: str
    marker: str
    info: str
    kind: LineKind = "fence"


Classification = Union[ListItem, Blockquote, FenceBoundary]


def classify(line: str) -> Optional[Classification]:
    """Return the structural role of ``line`` or ``None`` for plain text and blank lines."""

    return fence_boundary(line) or list_item(line) or blockquote(line)


def list_item(line: str) -> Optional[ListItem]:
    match = _LIST_PATTERN.match(line or "")
    if match is None:
        return None
    content = match.group("rest") or ""
    return ListItem(
        indent=match.group("indent"),
        marker=match.group("marker"),
        content=content,
        is_stub=not content.strip(),
    )


def blockquote(line: str) -> Optional[Blockquote]:
    match = _BLOCKQUOTE_PATTERN.match(line or "")
    if match is None:
        return None
    content = match.group("rest")
    return Blockquote(prefix=match.group("prefix"), content=content, is_stub=not content.strip())


def fence_boundary(line: str) -> Optional[FenceBoundary]:
    match = _FENCE_PATTERN.match(line or "")
    if match is None:
        return None
    return FenceBoundary(
        indent=match.group("indent"),
        marker=match.group("marker"),
        info=match.group("info").strip(),
    )


def fence_marker(line: str) -> Optional[str]:
    """Return ```` ``` ```` or ``~~~`` when ``line`` is a fence boundary."""

    boundary = fence_boundary(line)
    return boundary.marker if boundary else None


def blockquote_prefix(line: str) -> Optional[str]:
    quote = blockquote(line)
    return quote.prefix if quote else None


def strip_blockquote_prefix(line: str) -> str:
    quote = blockquote(line)
    return quote.content if quote else line


def apply_blockquote_prefix(text: str, prefix: str, *, skip_first: bool = False) -> str:
    """Prefix every line of ``text`` with ``prefix`` after removing any existing prefix.

    Blank lines receive the prefix without its trailing space. With
    ``skip_first`` the first line is stripped but left unprefixed.
    """

    output: list[str] = []
    for index, line in enumerate(text.split("\n")):
        stripped = strip_blockquote_prefix(line)
        if skip_first and index == 0:
            output.append(stripped)
        elif stripped.strip():
            output.append(f"{prefix}{stripped}")
        else:
            output.append(prefix.rstrip())
    return "\n".join(output)


def is_blank(line: str) -> bool:
    return not (line or "").strip()


__all__ = [
    "Blockquote",
    "Classification",
    "FenceBoundary",
    "LineKind",
    "ListItem",
    "apply_blockquote_prefix",
    "blockquote",
    "blockquote_prefix",
    "classify",
    "fence_boundary",
    "fence_marker",
    "is_blank",
    "list_item",
    "strip_blockquote_prefix",
]
