"""Service layer bridging the REST API and the assignment screens."""

from .base import EventHook, MutationStatus, ServiceErrorEvent, run_optimistic_mutation
from .assignments import AssignmentService, SelectionReplacedEvent
from .catalog import CatalogLoadedEvent, CatalogService
from .registry import ServiceRegistry

__all__ = [
    "AssignmentService",
    "CatalogLoadedEvent",
    "CatalogService",
    "EventHook",
    "MutationStatus",
    "SelectionReplacedEvent",
    "ServiceErrorEvent",
    "ServiceRegistry",
    "run_optimistic_mutation",
]
