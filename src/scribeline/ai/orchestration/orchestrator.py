"""Edit orchestrator: one model request, one buffer write.

The orchestrator captures a snapshot of the buffer, sends the document and
selection context to a :class:`~scribeline.ai.ai_types.GenerationBackend`,
and routes the returned text either straight into the selection (replace
mode) or through the normalizer and insertion planner (insert mode).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ...core.ranges import TextRange
from ...editor.buffer import EditorBuffer
from ...editor.normalizer import unescape_literal_newlines
from ...editor.planner import apply_plan, plan_insertion
from ...editor.selection_gateway import SelectionGateway, SelectionSnapshot, SelectionSnapshotProvider
from ...errors import ConfigurationError, EditError, ModeError, PipelineError, StaleEditError
from ...services.settings import requires_api_key
from ..ai_types import APPLY_MODES, ApplyMode, EditRequest, GenerationBackend
from .session import EditSession

__all__ = ["EditOrchestrator", "EditResult", "REPLACED_MESSAGE", "INSERTED_MESSAGE"]

LOGGER = logging.getLogger(__name__)

REPLACED_MESSAGE = "Selection replaced."
INSERTED_MESSAGE = "Text inserted."


@dataclass(slots=True, frozen=True)
class EditResult:
    """Outcome of a successful edit.

    Attributes:
        mode: The mode that actually ran (``auto`` is resolved).
        text: The exact text written to the buffer.
        span: Absolute offsets the written text occupies after the edit.
        message: The confirmation shown to the user.
        plan_kind: Insertion plan kind, ``None`` for replacements.
    """

    mode: ApplyMode
    text: str
    span: TextRange
    message: str
    plan_kind: Optional[str] = None


class EditOrchestrator:
    """Runs a single edit invocation against an editor buffer."""

    def __init__(
        self,
        session: EditSession,
        backend: GenerationBackend,
        *,
        gateway: SelectionSnapshotProvider | None = None,
    ) -> None:
        self._session = session
        self._backend = backend
        self._gateway = gateway or SelectionGateway()

    @property
    def session(self) -> EditSession:
        return self._session

    async def run_edit(self, buffer: EditorBuffer, mode: str = "auto", instruction: str = "") -> EditResult:
        """Generate text for ``instruction`` and apply it to ``buffer``.

        Raises an :class:`~scribeline.errors.EditError` subclass on failure, in
        which case the buffer is left untouched.
        """

        try:
            return await self._run(buffer, mode, instruction)
        except EditError as exc:
            LOGGER.warning("Edit failed (%s): %s", exc.error_code, exc)
            raise

    async def _run(self, buffer: EditorBuffer, mode: str, instruction: str) -> EditResult:
        self._check_configuration()
        if not instruction or not instruction.strip():
            raise ModeError("Instruction is empty.", suggestion="Describe the edit you want.")

        snapshot = self._gateway.capture(buffer)
        resolved = self._resolve_mode(mode, snapshot)
        request = self._build_request(resolved, instruction, snapshot)
        LOGGER.debug(
            "Running %s edit (offsets %d..%d, %d chars)",
            resolved,
            request.selection_start_offset,
            request.selection_end_offset,
            snapshot.document.length,
        )

        with self._session.busy():
            text = unescape_literal_newlines(await self._backend.generate(request))

        self._check_stale(buffer, snapshot)
        if resolved == "replace":
            return self._apply_replacement(buffer, snapshot, text)
        return self._apply_insertion(buffer, snapshot, text)

    def _check_configuration(self) -> None:
        settings = self._session.settings
        if requires_api_key(settings.base_url) and not (settings.api_key or "").strip():
            raise ConfigurationError(
                "Missing API key for hosted endpoint.",
                details={"base_url": settings.base_url},
                suggestion="Set SCRIBELINE_API_KEY or save an api_key in settings.",
            )

    def _resolve_mode(self, mode: str, snapshot: SelectionSnapshot) -> ApplyMode:
        normalized = (mode or "auto").strip().lower()
        has_selection = bool(snapshot.selected_text)
        if normalized == "auto":
            return "replace" if has_selection else "insert"
        if normalized not in APPLY_MODES:
            raise ModeError(f"Unknown mode '{mode}'.", details={"mode": mode})
        if normalized == "replace" and not has_selection:
            raise ModeError("Select text to replace first.")
        return "replace" if normalized == "replace" else "insert"

    def _build_request(self, mode: ApplyMode, instruction: str, snapshot: SelectionSnapshot) -> EditRequest:
        document = snapshot.document
        if mode == "replace":
            start, end = snapshot.start_offset, snapshot.end_offset
        else:
            start = end = snapshot.insertion_offset
        window = max(0, int(self._session.settings.context_window_chars))
        text = document.text
        length = document.length
        return EditRequest(
            mode=mode,
            instruction=instruction,
            document=text,
            selected_text=snapshot.selected_text,
            context_before=text[max(0, start - window) : start],
            context_after=text[end : end + window],
            selection_start_offset=start,
            selection_end_offset=end,
            selection_percent_start=start / length if length else 0.0,
            selection_percent_end=end / length if length else 0.0,
        )

    def _check_stale(self, buffer: EditorBuffer, snapshot: SelectionSnapshot) -> None:
        if not self._session.settings.reject_stale_edits:
            return
        if not snapshot.document.matches(buffer.get_value() or ""):
            raise StaleEditError(
                "The document changed while the edit was generating.",
                details={"content_hash": snapshot.document.content_hash},
            )

    def _apply_replacement(self, buffer: EditorBuffer, snapshot: SelectionSnapshot, text: str) -> EditResult:
        buffer.replace_range(text, snapshot.start, snapshot.end)
        span = TextRange(snapshot.start_offset, snapshot.start_offset + len(text))
        self._session.notify(REPLACED_MESSAGE)
        return EditResult("replace", text, span, REPLACED_MESSAGE)

    def _apply_insertion(self, buffer: EditorBuffer, snapshot: SelectionSnapshot, text: str) -> EditResult:
        try:
            plan = plan_insertion(snapshot.document, snapshot.insertion_point, text)
        except (IndexError, ValueError) as exc:
            raise PipelineError(f"Could not plan insertion: {exc}") from exc
        LOGGER.debug("Insertion plan %s at %s", plan.kind, plan.start)
        span = apply_plan(buffer, plan)
        self._session.notify(INSERTED_MESSAGE)
        return EditResult("insert", plan.text, span, INSERTED_MESSAGE, plan.kind)
