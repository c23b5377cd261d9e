"""Domain payload models shared by services and the selection engine."""

from .models import (
    ApiBaseModel,
    CatalogItem,
    DEFAULT_GROUP_LABEL,
    IdReference,
    ItemId,
    MenuEntry,
    Permission,
    PermissionTemplate,
    Role,
    reference_ids,
)

__all__ = [
    "ApiBaseModel",
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
