"""Bulk selection and change tracking for assignment screens."""

from .catalog_filter import (
    CatalogFilter,
    FilterCriteria,
    SortKey,
    group_by_label,
)
from .changes import (
    BaselineSnapshot,
    ChangeDelta,
    ChangePreview,
    ChangeTracker,
    ImpactLevel,
)
from .errors import (
    InvalidStateError,
    PersistenceFailure,
    StaleIdentifier,
    WorkflowError,
)
from .expansion import GroupExpansionTracker
from .pagination import Page, Paginator
from .selection_set import GroupSelectionState, SelectionSet
from .workflow import (
    AssignmentWorkflow,
    CommitEvent,
    PersistSelection,
    SelectablePredicate,
    WorkflowState,
)

__all__ = [
    "AssignmentWorkflow",
    "BaselineSnapshot",
    "CatalogFilter",
    "ChangeDelta",
    "ChangePreview",
    "ChangeTracker",
    "CommitEvent",
    "FilterCriteria",
    "GroupExpansionTracker",
    "GroupSelectionState",
    "ImpactLevel",
    "InvalidStateError",
    "Page",
    "Paginator",
    "PersistSelection",
    "PersistenceFailure",
    "SelectablePredicate",
    "SelectionSet",
    "SortKey",
    "StaleIdentifier",
    "WorkflowError",
    "WorkflowState",
    "group_by_label",
]
