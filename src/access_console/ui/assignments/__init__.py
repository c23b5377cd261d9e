"""Assignment editing screens: catalog tree, counters and save workflow."""

from .controller import AssignmentController, exclude_system_items
from .models import GROUP_ROLE, ITEM_ID_ROLE, CatalogTreeModel
from .widgets import (
    AssignmentEditorWidget,
    AssignmentFooter,
    ChangePreviewDialog,
    SelectionCounter,
    confirm_with_dialog,
)

__all__ = [
    "AssignmentController",
    "AssignmentEditorWidget",
    "AssignmentFooter",
    "CatalogTreeModel",
    "ChangePreviewDialog",
    "GROUP_ROLE",
    "ITEM_ID_ROLE",
    "SelectionCounter",
    "confirm_with_dialog",
    "exclude_system_items",
]
