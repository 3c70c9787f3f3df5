"""Edit orchestration: session state and the single-edit runner."""

from .orchestrator import EditOrchestrator, EditResult
from .session import EditSession, LoggingNotifier, LoggingStatusIndicator, Notifier, StatusIndicator

__all__ = [
    "EditOrchestrator",
    "EditResult",
    "EditSession",
    "LoggingNotifier",
    "LoggingStatusIndicator",
    "Notifier",
    "StatusIndicator",
]
