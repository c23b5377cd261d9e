from __future__ import annotations

from dataclasses import dataclass

from access_console.api import ApiClient
from access_console.auth import AccessChecker

from .assignments import AssignmentService
from .catalog import CatalogService


@dataclass(slots=True)
class ServiceRegistry:
    """Centralised container for lazily-initialised services."""

    client: ApiClient | None = None
    catalog: CatalogService | None = None
    assignments: AssignmentService | None = None
    access: AccessChecker | None = None


__all__ = ["ServiceRegistry"]
