from __future__ import annotations

from typing import Any, Iterable

from access_console.api.errors import AccessDeniedError


PROFILE_PATH = "/auth/me"


def _names(entries: Any) -> list[str]:
    if not isinstance(entries, list):
        return []
    names: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            names.append(entry)
        elif isinstance(entry, dict) and entry.get("name"):
            names.append(str(entry["name"]))
    return names


class AccessChecker:
    """Answer "may the signed-in operator do X" from their granted keys.

    Permission keys are exact strings such as ``roles.assign_permissions``.
    The check gates which screens and actions are offered; the server remains
    the authority on what is actually allowed.
    """

    def __init__(
        self,
        permissions: Iterable[str] = (),
        roles: Iterable[str] = (),
    ) -> None:
        self._permissions = frozenset(permissions)
        self._roles = frozenset(roles)

    @classmethod
    def from_profile(cls, payload: dict[str, Any] | None) -> "AccessChecker":
        """Build from the ``/auth/me`` payload (``{"permissions": [...], "roles": [...]}``)."""
        payload = payload or {}
        user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        return cls(
            permissions=_names(user.get("permissions") or payload.get("permissions")),
            roles=_names(user.get("roles") or payload.get("roles")),
        )

    @property
    def permissions(self) -> frozenset[str]:
        return self._permissions

    @property
    def roles(self) -> frozenset[str]:
        return self._roles

    def has_permission(self, permission: str | None) -> bool:
        if not permission:
            return True
        return permission in self._permissions

    def has_role(self, role: str | None) -> bool:
        if not role:
            return True
        return role in self._roles

    def require(self, permission: str | None) -> None:
        if not self.has_permission(permission):
            raise AccessDeniedError(
                f"Missing permission: {permission}",
                permission=permission,
            )


__all__ = ["AccessChecker", "PROFILE_PATH"]
