from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ApiErrorCategory(str, Enum):
    PERMISSION = "permission"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    UNKNOWN = "unknown"


_STATUS_CATEGORIES: dict[int, ApiErrorCategory] = {
    400: ApiErrorCategory.VALIDATION,
    401: ApiErrorCategory.AUTHENTICATION,
    403: ApiErrorCategory.PERMISSION,
    404: ApiErrorCategory.NOT_FOUND,
    409: ApiErrorCategory.CONFLICT,
    422: ApiErrorCategory.VALIDATION,
    429: ApiErrorCategory.RATE_LIMIT,
}


def category_for_status(status_code: int) -> ApiErrorCategory:
    return _STATUS_CATEGORIES.get(status_code, ApiErrorCategory.UNKNOWN)


@dataclass(slots=True)
class ApiError(Exception):
    message: str
    category: ApiErrorCategory = ApiErrorCategory.UNKNOWN
    status_code: int | None = None
    code: str | None = None
    inner_error: Exception | None = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message

    @property
    def recovery_suggestion(self) -> str | None:
        if self.category is ApiErrorCategory.AUTHENTICATION:
            return "Your session has expired. Sign in again and retry."
        if self.category is ApiErrorCategory.PERMISSION:
            return "Ask an administrator to grant you access to this screen."
        if self.category is ApiErrorCategory.RATE_LIMIT:
            return "The server is busy. Wait a moment and retry."
        if self.category is ApiErrorCategory.NETWORK:
            return "Check your network connection and try again."
        if self.category is ApiErrorCategory.CONFLICT:
            return "Another operator changed this record. Reload and review the latest state."
        if self.category is ApiErrorCategory.NOT_FOUND:
            return "The record no longer exists. Reload the list."
        if self.category is ApiErrorCategory.VALIDATION:
            return "The server rejected the request. Review the selection and try again."
        return None

    @property
    def is_retriable(self) -> bool:
        if self.category in {ApiErrorCategory.RATE_LIMIT, ApiErrorCategory.NETWORK}:
            return True
        if self.status_code and 500 <= self.status_code <= 599:
            return True
        return False


class AuthenticationError(ApiError):
    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(
            message=message,
            category=ApiErrorCategory.AUTHENTICATION,
            status_code=401,
        )


class AccessDeniedError(ApiError):
    def __init__(
        self,
        message: str = "Insufficient permissions",
        *,
        permission: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            category=ApiErrorCategory.PERMISSION,
            status_code=403,
            code=permission,
        )


__all__ = [
    "AccessDeniedError",
    "ApiError",
    "ApiErrorCategory",
    "AuthenticationError",
    "category_for_status",
]
