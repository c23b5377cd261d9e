"""UI package for the access console."""

from .assignments import AssignmentController, AssignmentEditorWidget
from .main import AssignmentWindow

__all__ = [
    "AssignmentController",
    "AssignmentEditorWidget",
    "AssignmentWindow",
]
