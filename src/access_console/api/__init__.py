"""HTTP access to the back-office REST API."""

from .errors import (
    AccessDeniedError,
    ApiError,
    ApiErrorCategory,
    AuthenticationError,
    category_for_status,
)
from .endpoints import AssignmentEndpoints, AssignmentKind, endpoints_for
from .client import ApiClient, ApiClientConfig

__all__ = [
    "AccessDeniedError",
    "ApiClient",
    "ApiClientConfig",
    "ApiError",
    "ApiErrorCategory",
    "AssignmentEndpoints",
    "AssignmentKind",
    "AuthenticationError",
    "category_for_status",
    "endpoints_for",
]
