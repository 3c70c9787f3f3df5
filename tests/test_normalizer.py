"""Tests for the content normalizer passes."""

from __future__ import annotations

import pytest

from scribeline.editor.normalizer import (
    ensure_trailing_newline,
    normalize_paragraph_spacing,
    reapply_blockquote_prefix,
    rewrite_list_stub,
    strip_outer_fence,
    trim_boundary_blank_lines,
    unescape_literal_newlines,
)


def test_unescape_literal_newlines_only_without_real_newlines() -> None:
    assert unescape_literal_newlines("first\\nsecond") == "first\nsecond"
    assert unescape_literal_newlines("first\nsecond \\n kept") == "first\nsecond \\n kept"
    assert unescape_literal_newlines("plain") == "plain"


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        ("```js\ncode();\n```", "code();"),
        ("\n\n```\ncode\nmore\n```\n\n", "code\nmore"),
        ("~~~\nx\n~~~", "x"),
    ],
)
def test_strip_outer_fence_removes_wrapping_pair(content: str, expected: str) -> None:
    assert strip_outer_fence(content) == expected


@pytest.mark.parametrize(
    "content",
    [
        "```\ncode\n~~~",
        "```",
        "intro\n```\ncode\n```",
        "no fences at all",
    ],
)
def test_strip_outer_fence_leaves_other_content_alone(content: str) -> None:
    assert strip_outer_fence(content) == content


def test_trim_boundary_blank_lines_is_per_side() -> None:
    content = "\n\nbody\n\n"

    assert trim_boundary_blank_lines(content, trim_start=True, trim_end=False) == "body\n\n"
    assert trim_boundary_blank_lines(content, trim_start=False, trim_end=True) == "\n\nbody"
    assert trim_boundary_blank_lines(content, trim_start=False, trim_end=False) == content


def test_paragraph_spacing_between_text_neighbours() -> None:
    lines = ["Above", "", "Below"]

    assert normalize_paragraph_spacing("\n\n\nNew\n\n\n", lines, 1) == "\nNew\n"
    assert normalize_paragraph_spacing("New", lines, 1) == "\nNew\n"


def test_paragraph_spacing_next_to_blank_lines_adds_nothing() -> None:
    lines = ["Above", "", "", "", "Below"]

    assert normalize_paragraph_spacing("\nNew\n", lines, 2) == "New"


def test_paragraph_spacing_at_document_edges_keeps_at_most_one() -> None:
    assert normalize_paragraph_spacing("\n\n\nNew", ["", "Below"], 0) == "\nNew\n"
    assert normalize_paragraph_spacing("New", ["", "Below"], 0) == "New\n"
    assert normalize_paragraph_spacing("New\n\n\n", ["Above", ""], 1) == "\nNew\n"


def test_paragraph_spacing_ignores_non_blank_destination_lines() -> None:
    assert normalize_paragraph_spacing("\n\nNew\n\n", ["Text here"], 0) == "\n\nNew\n\n"


@pytest.mark.parametrize("content", ["Plain sentence.", "Two\nlines", "\nLeading"])
def test_paragraph_spacing_is_idempotent_for_plain_text(content: str) -> None:
    lines = ["Above", "", "Below"]
    once = normalize_paragraph_spacing(content, lines, 1)

    assert normalize_paragraph_spacing(once, lines, 1) == once


def test_rewrite_list_stub_takes_the_stub_marker() -> None:
    assert rewrite_list_stub("- Mail handling", "", "-") == "- Mail handling"
    assert rewrite_list_stub("3. Second item", "", "2.") == "2. Second item"
    assert rewrite_list_stub("Bare text", "  ", "*") == "  * Bare text"


def test_rewrite_list_stub_nests_marked_lines_under_the_stub_indent() -> None:
    result = rewrite_list_stub("- Child\n  - Grandchild\n- Sibling", "  ", "-")

    assert result == "  - Child\n    - Grandchild\n  - Sibling"


def test_rewrite_list_stub_aligns_continuation_lines_with_item_text() -> None:
    assert rewrite_list_stub("First line\nwraps here", "", "10.") == "10. First line\n    wraps here"
    assert rewrite_list_stub("First\nwrapped", "\t", "-") == "\t- First\n\t  wrapped"


def test_rewrite_list_stub_drops_edge_blanks_and_marks_interior_blanks() -> None:
    result = rewrite_list_stub("\n\n- One\n\n- Two\n\n", "", "-")

    assert result == "- One\n-\n- Two"


def test_rewrite_list_stub_keeps_task_checkbox_marker() -> None:
    assert rewrite_list_stub("- [ ] Water plants", "", "- [ ]") == "- [ ] Water plants"


def test_reapply_blockquote_prefix_strips_model_quoting() -> None:
    assert reapply_blockquote_prefix("> Already quoted\nplain", "> ") == "> Already quoted\n> plain"
    assert reapply_blockquote_prefix("tail\nnext", ">> ", continue_line=True) == "tail\n>> next"


def test_ensure_trailing_newline_leaves_exactly_one() -> None:
    assert ensure_trailing_newline("code") == "code\n"
    assert ensure_trailing_newline("code\n\n\n") == "code\n"
