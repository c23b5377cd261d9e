from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from access_console.api import ApiClient, AssignmentKind, endpoints_for
from access_console.api.endpoints import TEMPLATES_PATH, template_evaluate_path
from access_console.data import (
    CatalogItem,
    ItemId,
    MenuEntry,
    Permission,
    PermissionTemplate,
    Role,
    reference_ids,
)
from access_console.services.base import EventHook, ServiceErrorEvent
from access_console.utils.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

_CATALOG_MODELS: dict[AssignmentKind, type[Permission] | type[Role] | type[MenuEntry]] = {
    AssignmentKind.ROLE_PERMISSIONS: Permission,
    AssignmentKind.USER_ROLES: Role,
    AssignmentKind.ROLE_MENUS: MenuEntry,
}


@dataclass(slots=True)
class CatalogLoadedEvent:
    kind: AssignmentKind
    items: list[CatalogItem]


def _unwrap_list(payload: Any) -> list[dict[str, Any]]:
    """Accept bare lists as well as ``{"data": [...]}`` envelopes."""

    if isinstance(payload, dict):
        payload = payload.get("data", payload.get("items", []))
    if not isinstance(payload, list):
        return []
    return [entry for entry in payload if isinstance(entry, dict)]


class CatalogService:
    """Load catalogs, current assignments and templates for assignment screens."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self.loaded: EventHook[CatalogLoadedEvent] = EventHook()
        self.errors: EventHook[ServiceErrorEvent] = EventHook()

    async def fetch_catalog(self, kind: AssignmentKind | str) -> list[CatalogItem]:
        kind = AssignmentKind(kind)
        endpoints = endpoints_for(kind)
        model = _CATALOG_MODELS[kind]

        payload = await self._guard(
            "fetch_catalog",
            lambda: self._client.get_json(endpoints.catalog_path),
        )
        items = [
            model.from_api(entry).to_catalog_item() for entry in _unwrap_list(payload)
        ]
        logger.debug("Catalog loaded", kind=kind.value, items=len(items))
        self.loaded.emit(CatalogLoadedEvent(kind=kind, items=items))
        return items

    async def fetch_current_selection(
        self,
        kind: AssignmentKind | str,
        target_id: ItemId,
    ) -> list[ItemId]:
        endpoints = endpoints_for(kind)
        payload = await self._guard(
            "fetch_current_selection",
            lambda: self._client.get_json(endpoints.target(target_id)),
            target_id=target_id,
        )
        ids = reference_ids(payload, endpoints.current_key)
        logger.debug(
            "Current selection loaded",
            kind=str(kind),
            target_id=target_id,
            selected=len(ids),
        )
        return ids

    async def list_templates(self) -> list[PermissionTemplate]:
        payload = await self._guard(
            "list_templates",
            lambda: self._client.get_json(TEMPLATES_PATH),
        )
        return [PermissionTemplate.from_api(entry) for entry in _unwrap_list(payload)]

    async def evaluate_template(self, template_id: ItemId) -> list[ItemId]:
        payload = await self._guard(
            "evaluate_template",
            lambda: self._client.post_json(template_evaluate_path(template_id)),
            target_id=template_id,
        )
        return reference_ids(payload, None)

    async def _guard(
        self,
        operation: str,
        call: Callable[[], Awaitable[T]],
        *,
        target_id: ItemId | None = None,
    ) -> T:
        try:
            return await call()
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "Catalog request failed", operation=operation, target_id=target_id
            )
            self.errors.emit(
                ServiceErrorEvent(operation=operation, error=exc, target_id=target_id)
            )
            raise


__all__ = ["CatalogLoadedEvent", "CatalogService"]
