"""Error hierarchy for edit invocations.

Every error aborts the current edit before the buffer is touched and carries
a single human-readable message suitable for a notice or stderr.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


class ErrorCode:
    """Machine-readable identifiers carried by :class:`EditError`."""

    CONFIGURATION = "configuration"
    MODE = "mode"
    GENERATION = "generation"
    PIPELINE = "pipeline"
    STALE_EDIT = "stale_edit"


@dataclass
class EditError(Exception):
    """Base class for failures surfaced to the user.

    Attributes:
        message: Human-readable error description.
        details: Additional structured error information.
        suggestion: Actionable guidance for recovery.
    """

    message: str
    details: dict[str, Any] = field(default_factory=dict)
    suggestion: str = ""

    error_code: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and JSON output."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def __str__(self) -> str:
        return self.message


@dataclass
class ConfigurationError(EditError):
    """A required setting, such as a hosted endpoint's API key, is missing."""

    error_code: ClassVar[str] = ErrorCode.CONFIGURATION


@dataclass
class ModeError(EditError):
    """The requested mode cannot run against the current selection or input."""

    error_code: ClassVar[str] = ErrorCode.MODE


@dataclass
class GenerationError(EditError):
    """The generation capability failed; ``message`` comes from the backend."""

    error_code: ClassVar[str] = ErrorCode.GENERATION


@dataclass
class PipelineError(EditError):
    """Normalization or planning hit an invariant violation."""

    error_code: ClassVar[str] = ErrorCode.PIPELINE


@dataclass
class StaleEditError(PipelineError):
    """The document changed while the model request was in flight."""

    error_code: ClassVar[str] = ErrorCode.STALE_EDIT
    suggestion: str = "Run the edit again against the current document."


__all__ = [
    "ConfigurationError",
    "EditError",
    "ErrorCode",
    "GenerationError",
    "ModeError",
    "PipelineError",
    "StaleEditError",
]
