"""Editor-side document model, buffer capability, and insertion pipeline."""

from .buffer import EditorBuffer, InMemoryBuffer
from .document_model import DocumentSnapshot
from .planner import InsertionPlan, apply_plan, plan_insertion
from .selection_gateway import SelectionGateway, SelectionSnapshot

__all__ = [
    "DocumentSnapshot",
    "EditorBuffer",
    "InMemoryBuffer",
    "InsertionPlan",
    "SelectionGateway",
    "SelectionSnapshot",
    "apply_plan",
    "plan_insertion",
]
