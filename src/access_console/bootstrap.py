from __future__ import annotations

from access_console.api import ApiClient, ApiClientConfig
from access_console.auth import PROFILE_PATH, AccessChecker
from access_console.config import Settings
from access_console.services import AssignmentService, CatalogService, ServiceRegistry
from access_console.utils import get_logger


logger = get_logger(__name__)


def build_services(settings: Settings, *, client: ApiClient | None = None) -> ServiceRegistry:
    """Initialise the API client and the services that share it."""

    api_client = client or ApiClient(ApiClientConfig.from_settings(settings))
    registry = ServiceRegistry(
        client=api_client,
        catalog=CatalogService(api_client),
        assignments=AssignmentService(api_client),
    )
    logger.debug(
        "Service registry initialised",
        base_url=settings.normalized_base_url(),
        authenticated=settings.api_token is not None,
    )
    return registry


async def load_access(registry: ServiceRegistry) -> AccessChecker:
    """Fetch the signed-in operator's profile and attach an access checker."""

    if registry.client is None:
        raise RuntimeError("API client not configured")
    payload = await registry.client.get_json(PROFILE_PATH)
    access = AccessChecker.from_profile(payload if isinstance(payload, dict) else None)
    registry.access = access
    logger.info(
        "Operator profile loaded",
        permissions=len(access.permissions),
        roles=len(access.roles),
    )
    return access


__all__ = ["build_services", "load_access"]
