"""Tests for insertion planning and the single buffer write."""

from __future__ import annotations

import pytest

from scribeline.core.ranges import Position
from scribeline.editor.buffer import InMemoryBuffer
from scribeline.editor.document_model import DocumentSnapshot
from scribeline.editor.planner import apply_plan, plan_insertion
from scribeline.errors import PipelineError


def _insert(text: str, point: Position, content: str) -> tuple[str, str]:
    buffer = InMemoryBuffer(text)
    plan = plan_insertion(DocumentSnapshot(text), point, content)
    span = apply_plan(buffer, plan)
    assert buffer.write_count == 1
    assert buffer.text[span.start : span.end] == plan.text
    return buffer.text, plan.kind


def test_list_stub_is_replaced_with_model_item() -> None:
    result, kind = _insert("Workspace\n- Desk\n- \n", Position(2, 2), "- Mail handling")

    assert result == "Workspace\n- Desk\n- Mail handling\n"
    assert kind == "list_stub"


def test_blank_output_leaves_list_stub_unchanged() -> None:
    result, kind = _insert("- \n", Position(0, 2), "\n")

    assert result == "- \n"
    assert kind == "list_stub"


def test_nested_list_stub_keeps_children_nested() -> None:
    result, _ = _insert("- Parent\n  - \n", Position(1, 4), "- Child\n  - Grandchild")

    assert result == "- Parent\n  - Child\n    - Grandchild\n"


def test_ordered_list_stub_keeps_its_number() -> None:
    result, _ = _insert("1. First\n2. \n", Position(1, 3), "3. Second item")

    assert result == "1. First\n2. Second item\n"


def test_blockquote_stub_does_not_double_the_prefix() -> None:
    result, kind = _insert("> Quote\n> \n", Position(1, 2), "> Already quoted")

    assert result == "> Quote\n> Already quoted\n"
    assert kind == "blockquote_stub"


def test_blockquote_line_end_starts_a_new_quoted_line() -> None:
    result, kind = _insert("> Quote line", Position(0, 12), "More quoted text\nand more")

    assert result == "> Quote line\n> More quoted text\n> and more"
    assert kind == "blockquote"


def test_blockquote_mid_line_continues_current_line() -> None:
    result, _ = _insert("> Hello world", Position(0, 8), "big\nnew line ")

    assert result == "> Hello big\n> new line world"


def test_fence_blank_line_is_replaced_and_outer_fence_dropped() -> None:
    result, kind = _insert("```\ncode line\n\n```\n", Position(2, 0), "```\nnewCall();\n```")

    assert result == "```\ncode line\nnewCall();\n```\n"
    assert kind == "fence_blank_line"


def test_fence_content_line_inserts_before_closing_marker() -> None:
    result, kind = _insert("```\na\nb\n```", Position(1, 1), "c")

    assert result == "```\na\nb\nc\n```"
    assert kind == "fence_insert"


@pytest.mark.parametrize("point", [Position(0, 3), Position(2, 3)])
def test_cursor_on_fence_boundary_inserts_inside_that_block(point: Position) -> None:
    result, kind = _insert("```\na\n```\n", point, "b\n\n")

    assert result == "```\na\nb\n```\n"
    assert kind == "fence_insert"


def test_unterminated_fence_inserts_at_the_cursor_line() -> None:
    result, kind = _insert("```\ncode", Position(1, 4), "new")

    assert result == "```\nnew\ncode"
    assert kind == "fence_insert"


def test_fences_are_kept_outside_code_blocks() -> None:
    result, kind = _insert("Intro\n", Position(1, 0), "```\nblock\n```")

    assert result == "Intro\n\n```\nblock\n```"
    assert kind == "plain"


def test_paragraph_between_blank_lines_gets_one_blank_line_each_side() -> None:
    result, _ = _insert("Para1\n\n\nPara2\n", Position(1, 0), "Inserted paragraph")

    assert result == "Para1\n\nInserted paragraph\n\nPara2\n"


def test_boundary_newlines_are_trimmed_against_existing_ones() -> None:
    result, _ = _insert("Intro\n\n", Position(2, 0), "\n\nMore text\n")

    assert result == "Intro\n\nMore text\n"


def test_spacing_is_conservative_at_end_of_document() -> None:
    result, _ = _insert("Hello\n\n", Position(2, 0), "\n\n\nWorld\n\n\n")

    assert result == "Hello\n\nWorld\n"


def test_end_of_list_item_starts_a_new_line() -> None:
    result, kind = _insert("- A\n- B\n- Quiet space", Position(2, 13), "- Good lighting\n- Ergonomic chair")

    assert result == "- A\n- B\n- Quiet space\n- Good lighting\n- Ergonomic chair"
    assert kind == "list_item"


def test_plain_mid_line_insert_is_verbatim() -> None:
    result, kind = _insert("Hello world", Position(0, 6), "big ")

    assert result == "Hello big world"
    assert kind == "plain"


def test_empty_document_accepts_plain_text() -> None:
    result, _ = _insert("", Position(0, 0), "Hello")

    assert result == "Hello"


@pytest.mark.parametrize("point", [Position(5, 0), Position(0, 99)])
def test_points_outside_the_document_raise_pipeline_error(point: Position) -> None:
    with pytest.raises(PipelineError):
        plan_insertion(DocumentSnapshot("one\ntwo"), point, "x")
