"""Core value types shared by the editor and AI layers."""

from .ranges import Position, TextRange

__all__ = ["Position", "TextRange"]
