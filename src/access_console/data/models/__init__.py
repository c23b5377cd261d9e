"""Domain models for the role, permission and menu catalogs."""

from .common import ApiBaseModel
from .catalog import (
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
