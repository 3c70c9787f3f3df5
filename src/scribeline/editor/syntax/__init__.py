"""Markdown syntax helpers used by the insertion pipeline."""

from .fences import FenceSpan, find_fence_bounds, is_inside_fence, iter_fence_spans
from .markdown import Blockquote, Classification, FenceBoundary, ListItem, classify

__all__ = [
    "Blockquote",
    "Classification",
    "FenceBoundary",
    "FenceSpan",
    "ListItem",
    "classify",
    "find_fence_bounds",
    "is_inside_fence",
    "iter_fence_spans",
]
