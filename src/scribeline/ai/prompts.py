"""Prompt builders for edit requests."""

from __future__ import annotations

from .ai_types import EditRequest

RESPONSE_SCHEMA_NAME = "scribeline_edit"
JSON_MODE_SUFFIX = "If you cannot follow the schema, still output a single JSON object with key `content`."


def system_instructions(*, json_mode: bool = False) -> str:
    """Return the system message shared by every edit request."""

    lines = [
        "You are a writing assistant working inside a Markdown document.",
        "You will receive a markdown document, an optional selected excerpt, surrounding context, and a user instruction.",
        "Return ONLY JSON matching the provided schema.",
        "The `content` you return must be markdown (no HTML).",
        "If mode=replace: rewrite ONLY the selected text. Do not return the whole document.",
        "If mode=insert: write new text to insert at the cursor/end-of-selection. Do not repeat surrounding context.",
    ]
    if json_mode:
        lines.append(JSON_MODE_SUFFIX)
    return "\n".join(lines)


def user_message(request: EditRequest) -> str:
    """Render ``request`` as plain labelled sections."""

    return "\n".join(
        [
            f"mode: {request.mode}",
            "",
            "user_prompt:",
            request.instruction,
            "",
            "document_markdown:",
            request.document,
            "",
            "selected_text:",
            request.selected_text or "(none)",
            "",
            "context_before (closest text before selection/cursor):",
            request.context_before or "(none)",
            "",
            "context_after (closest text after selection/cursor):",
            request.context_after or "(none)",
            "",
            f"selection_start_offset: {request.selection_start_offset}",
            f"selection_end_offset: {request.selection_end_offset}",
            f"selection_percent_start: {request.selection_percent_start}",
            f"selection_percent_end: {request.selection_percent_end}",
        ]
    )


def build_messages(request: EditRequest, *, json_mode: bool = False) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system_instructions(json_mode=json_mode)},
        {"role": "user", "content": user_message(request)},
    ]


def response_schema() -> dict[str, object]:
    """JSON schema for the structured ``{"content": str}`` response."""

    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {"content": {"type": "string"}},
        "required": ["content"],
    }


def structured_response_format() -> dict[str, object]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": RESPONSE_SCHEMA_NAME,
            "strict": True,
            "schema": response_schema(),
        },
    }


__all__ = [
    "RESPONSE_SCHEMA_NAME",
    "build_messages",
    "response_schema",
    "structured_response_format",
    "system_instructions",
    "user_message",
]
