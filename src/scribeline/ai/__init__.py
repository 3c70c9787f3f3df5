"""Generation client, prompt builders, and edit orchestration."""

from .ai_types import ApplyMode, EditRequest, GenerationBackend
from .client import AIClient, ClientSettings

__all__ = ["AIClient", "ApplyMode", "ClientSettings", "EditRequest", "GenerationBackend"]
