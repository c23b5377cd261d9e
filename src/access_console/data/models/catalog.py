from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field

from .common import ApiBaseModel


ItemId = int | str

DEFAULT_GROUP_LABEL = "Other"


class CatalogItem(ApiBaseModel):
    """Selectable entry shown by an assignment workflow.

    Only the identifier, labels and the optional sort attributes matter to the
    selection engine; everything else about the underlying record stays with
    the screen that produced it.
    """

    id: ItemId
    name: str
    display_name: str | None = Field(default=None, alias="displayName")
    description: str | None = None
    group: str | None = Field(
        default=None,
        validation_alias=AliasChoices("group", "groupName", "category"),
    )
    usage_count: int | None = Field(default=None, alias="usageCount")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    is_system: bool = Field(default=False, alias="isSystem")

    @property
    def label(self) -> str:
        return self.display_name or self.name

    @property
    def group_label(self) -> str:
        return self.group or DEFAULT_GROUP_LABEL


class _Counted(ApiBaseModel):
    counts: dict[str, int] | None = Field(default=None, alias="_count")

    def count_of(self, key: str) -> int:
        if not self.counts:
            return 0
        return int(self.counts.get(key) or 0)


class IdReference(ApiBaseModel):
    id: ItemId
    name: str | None = None


class Permission(_Counted):
    id: int
    name: str
    display_name: str | None = Field(default=None, alias="displayName")
    group_name: str | None = Field(default=None, alias="groupName")
    description: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")

    def to_catalog_item(self) -> CatalogItem:
        return CatalogItem(
            id=self.id,
            name=self.name,
            display_name=self.display_name,
            description=self.description,
            group=self.group_name,
            usage_count=self.count_of("rolePermissions"),
            created_at=self.created_at,
        )


class Role(_Counted):
    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    is_system: bool = Field(default=False, alias="isSystem")
    permissions: list[IdReference] | None = None

    def to_catalog_item(self) -> CatalogItem:
        return CatalogItem(
            id=self.id,
            name=self.name,
            description=self.description,
            usage_count=self.count_of("userRoles"),
            created_at=self.created_at,
            is_system=self.is_system,
        )


class MenuEntry(_Counted):
    id: int
    name: str
    path: str | None = None
    description: str | None = None
    order: int = 0
    is_active: bool = Field(default=True, alias="isActive")
    parent: IdReference | None = None

    def to_catalog_item(self) -> CatalogItem:
        # Menus group under their parent entry; root entries fall into "Other".
        parent_name = self.parent.name if self.parent else None
        return CatalogItem(
            id=self.id,
            name=self.name,
            description=self.description or self.path,
            group=parent_name,
            usage_count=self.count_of("children"),
        )


class PermissionTemplate(ApiBaseModel):
    id: int
    name: str
    description: str | None = None
    icon: str | None = None
    color: str | None = None
    is_system: bool = Field(default=False, alias="isSystem")


def reference_ids(payload: Any, key: str | None) -> list[ItemId]:
    """Pull ``[{"id": ...}, ...]`` identifiers out of a payload.

    ``key`` selects a nested list on a dict payload; ``None`` treats the
    payload itself as the list.
    """

    entries = payload.get(key) if key and isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        return []
    ids: list[ItemId] = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get("id") is not None:
            ids.append(entry["id"])
        elif isinstance(entry, (int, str)):
            ids.append(entry)
    return ids


__all__ = [
    "CatalogItem",
    "DEFAULT_GROUP_LABEL",
    "IdReference",
    "ItemId",
    "MenuEntry",
    "Permission",
    "PermissionTemplate",
    "Role",
    "reference_ids",
]
