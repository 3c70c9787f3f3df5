"""Value types for cursor positions and text spans."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Iterator


def _coerce_index(owner: str, value: Any, label: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{owner} {label} must be an integer") from exc
    if number < 0:
        return 0
    return number


@dataclass(slots=True, frozen=True, order=True)
class Position:
    """Zero-based ``(line, column)`` location inside a document.

    Positions order in document order, so ``Position(1, 0) > Position(0, 9)``.
    """

    line: int
    column: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "line", _coerce_index("Position", self.line, "line"))
        object.__setattr__(self, "column", _coerce_index("Position", self.column, "column"))

    @classmethod
    def from_value(cls, value: Any) -> Position:
        """Coerce a mapping, ``(line, column)`` pair, or ``LINE:COL`` string."""

        if isinstance(value, Position):
            return value
        if isinstance(value, str):
            line, sep, column = value.partition(":")
            if not sep:
                raise ValueError(f"Position strings use LINE:COL, got {value!r}")
            return cls(line.strip(), column.strip())
        if isinstance(value, Mapping):
            line = value.get("line")
            column = value.get("column", value.get("ch"))
            if line is None or column is None:
                raise ValueError("Position mappings require line and column keys")
            return cls(line, column)
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            seq = list(value)
            if len(seq) != 2:
                raise ValueError("Position sequences must have exactly two entries")
            return cls(seq[0], seq[1])
        raise TypeError("Unsupported Position input")


@dataclass(slots=True, frozen=True)
class TextRange:
    """Half-open ``[start, end)`` span of absolute offsets; reversed input is swapped."""

    start: int
    end: int

    def __post_init__(self) -> None:
        low, high = sorted(
            (_coerce_index("TextRange", self.start, "start"), _coerce_index("TextRange", self.end, "end"))
        )
        object.__setattr__(self, "start", low)
        object.__setattr__(self, "end", high)

    def __iter__(self) -> Iterator[int]:
        return iter((self.start, self.end))

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_caret(self) -> bool:
        return self.start == self.end

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)


__all__ = ["Position", "TextRange"]
