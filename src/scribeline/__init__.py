"""Scribeline: model-assisted Markdown edits that respect document structure."""

from .errors import (
    ConfigurationError,
    EditError,
    GenerationError,
    ModeError,
    PipelineError,
    StaleEditError,
)

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "EditError",
    "GenerationError",
    "ModeError",
    "PipelineError",
    "StaleEditError",
    "__version__",
]
