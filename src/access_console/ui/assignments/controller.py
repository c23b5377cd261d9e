from __future__ import annotations

import asyncio
from collections.abc import Callable

from access_console.api import AssignmentKind, endpoints_for
from access_console.config import Settings
from access_console.data import CatalogItem, ItemId, PermissionTemplate
from access_console.selection import AssignmentWorkflow, SelectablePredicate
from access_console.services import (
    AssignmentService,
    CatalogService,
    SelectionReplacedEvent,
    ServiceErrorEvent,
    ServiceRegistry,
)
from access_console.utils.logging import get_logger


logger = get_logger(__name__)


def exclude_system_items(item: CatalogItem) -> bool:
    return not item.is_system


class AssignmentController:
    """Bridge between the assignment screens and the service layer."""

    def __init__(
        self,
        services: ServiceRegistry,
        settings: Settings | None = None,
    ) -> None:
        self._services = services
        self._settings = settings or Settings()
        self._catalog_service: CatalogService | None = services.catalog
        self._assignment_service: AssignmentService | None = services.assignments
        self._subscriptions: list[Callable[[], None]] = []

    # ----------------------------------------------------------------- Events

    def register_callbacks(
        self,
        *,
        replaced: Callable[[SelectionReplacedEvent], None] | None = None,
        error: Callable[[ServiceErrorEvent], None] | None = None,
    ) -> None:
        if self._assignment_service is not None and replaced is not None:
            self._subscriptions.append(self._assignment_service.replaced.subscribe(replaced))
        if error is not None:
            if self._assignment_service is not None:
                self._subscriptions.append(self._assignment_service.errors.subscribe(error))
            if self._catalog_service is not None:
                self._subscriptions.append(self._catalog_service.errors.subscribe(error))

    def dispose(self) -> None:
        while self._subscriptions:
            unsubscribe = self._subscriptions.pop()
            unsubscribe()

    # ----------------------------------------------------------------- Queries

    def can_edit(self, kind: AssignmentKind | str) -> bool:
        access = self._services.access
        if access is None:
            return True
        return access.has_permission(endpoints_for(kind).required_permission)

    # ----------------------------------------------------------------- Actions

    async def open_workflow(
        self,
        kind: AssignmentKind | str,
        target_id: ItemId,
        *,
        selectable: SelectablePredicate | None = None,
    ) -> AssignmentWorkflow:
        """Load the catalog and current assignment, then start a workflow."""
        kind = AssignmentKind(kind)
        self._require_access(kind)
        catalog_service = self._require_catalog()
        assignment_service = self._require_assignments()

        catalog, current = await asyncio.gather(
            catalog_service.fetch_catalog(kind),
            catalog_service.fetch_current_selection(kind, target_id),
        )
        workflow = AssignmentWorkflow(
            target_id,
            catalog,
            assignment_service.persister(kind),
            selectable=selectable,
            expanded_groups=None if self._settings.expand_groups_by_default else (),
            commit_timeout=self._settings.commit_timeout,
        )
        workflow.filter.set_sort("name")
        workflow.start(current)
        logger.info(
            "Assignment workflow opened",
            kind=kind.value,
            target_id=target_id,
            catalog=len(catalog),
            selected=len(current),
        )
        return workflow

    async def reload_catalog(
        self,
        kind: AssignmentKind | str,
        workflow: AssignmentWorkflow,
    ) -> list[ItemId]:
        """Refresh the catalog in place and return ids that no longer resolve."""
        catalog = await self._require_catalog().fetch_catalog(kind)
        return [entry.item_id for entry in workflow.refresh_catalog(catalog)]

    async def list_templates(self) -> list[PermissionTemplate]:
        return await self._require_catalog().list_templates()

    async def apply_template(
        self,
        workflow: AssignmentWorkflow,
        template_id: ItemId,
    ) -> list[ItemId]:
        ids = await self._require_catalog().evaluate_template(template_id)
        workflow.apply_template(ids)
        return ids

    # ----------------------------------------------------------------- Helpers

    def _require_access(self, kind: AssignmentKind) -> None:
        access = self._services.access
        if access is not None:
            access.require(endpoints_for(kind).required_permission)

    def _require_catalog(self) -> CatalogService:
        if self._catalog_service is None:
            raise RuntimeError("Catalog service not configured")
        return self._catalog_service

    def _require_assignments(self) -> AssignmentService:
        if self._assignment_service is None:
            raise RuntimeError("Assignment service not configured")
        return self._assignment_service


__all__ = ["AssignmentController", "exclude_system_items"]
