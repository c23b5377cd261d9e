from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class AssignmentKind(StrEnum):
    """Which membership relation an assignment workflow edits."""

    ROLE_PERMISSIONS = "role_permissions"
    USER_ROLES = "user_roles"
    ROLE_MENUS = "role_menus"


@dataclass(frozen=True, slots=True)
class AssignmentEndpoints:
    catalog_path: str
    target_path: str
    selection_path: str
    payload_key: str
    current_key: str | None = None
    required_permission: str | None = None

    def target(self, target_id: int | str) -> str:
        return self.target_path.format(target_id=target_id)

    def selection(self, target_id: int | str) -> str:
        return self.selection_path.format(target_id=target_id)


ENDPOINTS: dict[AssignmentKind, AssignmentEndpoints] = {
    AssignmentKind.ROLE_PERMISSIONS: AssignmentEndpoints(
        catalog_path="/permissions",
        target_path="/roles/{target_id}",
        selection_path="/roles/{target_id}/permissions",
        payload_key="permissionIds",
        current_key="permissions",
        required_permission="roles.assign_permissions",
    ),
    AssignmentKind.USER_ROLES: AssignmentEndpoints(
        catalog_path="/roles",
        target_path="/users/{target_id}",
        selection_path="/users/{target_id}/roles",
        payload_key="roleIds",
        current_key="roles",
        required_permission="users.assign_roles",
    ),
    AssignmentKind.ROLE_MENUS: AssignmentEndpoints(
        catalog_path="/menu/flat",
        target_path="/menu/role/{target_id}",
        selection_path="/menu/role/{target_id}/assign",
        payload_key="menuIds",
        required_permission="menus.assign",
    ),
}

TEMPLATES_PATH = "/permission-templates"


def endpoints_for(kind: AssignmentKind | str) -> AssignmentEndpoints:
    return ENDPOINTS[AssignmentKind(kind)]


def template_evaluate_path(template_id: int | str) -> str:
    return f"{TEMPLATES_PATH}/{template_id}/evaluate"


__all__ = [
    "AssignmentEndpoints",
    "AssignmentKind",
    "ENDPOINTS",
    "TEMPLATES_PATH",
    "endpoints_for",
    "template_evaluate_path",
]
