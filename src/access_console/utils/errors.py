from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

import httpx

from access_console.api.errors import ApiError, ApiErrorCategory
from access_console.selection.errors import InvalidStateError, PersistenceFailure


class ErrorSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ErrorDescriptor:
    headline: str
    detail: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    transient: bool = False
    suggestion: str | None = None


def describe_exception(error: BaseException) -> ErrorDescriptor:
    descriptor = ErrorDescriptor(
        headline="Operation failed.",
        detail=f"{type(error).__name__}: {error}",
        severity=ErrorSeverity.ERROR,
        transient=False,
    )

    if isinstance(error, InvalidStateError):
        descriptor.headline = "That action is not available right now."
        descriptor.detail = str(error)
        descriptor.severity = ErrorSeverity.WARNING
        return descriptor

    saving = isinstance(error, PersistenceFailure)
    api_error = _locate_api_error(error)
    if api_error is not None:
        descriptor.detail = _format_api_detail(api_error)
        descriptor.suggestion = api_error.recovery_suggestion
        descriptor.transient = api_error.is_retriable
        if api_error.is_retriable:
            descriptor.severity = ErrorSeverity.WARNING
        descriptor.headline = _api_headline(api_error, saving=saving)
        return descriptor

    root = _unwrap_error(error)

    if isinstance(root, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        descriptor.headline = "The server did not respond in time."
        descriptor.detail = f"{type(root).__name__}: timed out"
        descriptor.severity = ErrorSeverity.WARNING
        descriptor.transient = True
        descriptor.suggestion = "Retry once the connection is stable. Your selection was kept."
        return descriptor

    if saving:
        descriptor.headline = "Changes could not be saved."
        descriptor.detail = str(error)
        descriptor.suggestion = "Your selection was kept. Retry or reset the changes."
    return descriptor


def _locate_api_error(error: BaseException) -> ApiError | None:
    current: BaseException | None = error
    visited: set[int] = set()
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        if isinstance(current, ApiError):
            return current
        current = current.__cause__ or current.__context__
    return None


def _unwrap_error(error: BaseException) -> BaseException:
    current = error
    visited: set[int] = set()
    while True:
        visited.add(id(current))
        inner: BaseException | None = None
        if isinstance(current, ApiError) and current.inner_error is not None:
            inner = current.inner_error
        elif isinstance(current, PersistenceFailure) and current.cause is not None:
            inner = current.cause
        elif current.__cause__ is not None:
            inner = current.__cause__
        elif current.__context__ is not None:
            inner = current.__context__
        if inner is None or id(inner) in visited:
            return current
        current = inner


def _api_headline(error: ApiError, *, saving: bool) -> str:
    prefix = "Changes could not be saved: " if saving else ""
    match error.category:
        case ApiErrorCategory.RATE_LIMIT:
            message = "the server is throttling requests."
        case ApiErrorCategory.NETWORK:
            message = "network issue contacting the server."
        case ApiErrorCategory.AUTHENTICATION:
            message = "your session has expired."
        case ApiErrorCategory.PERMISSION:
            message = "you do not have access to this action."
        case ApiErrorCategory.CONFLICT:
            message = "the record was changed by someone else."
        case ApiErrorCategory.NOT_FOUND:
            message = "the record no longer exists."
        case ApiErrorCategory.VALIDATION:
            message = "the server rejected the request."
        case _:
            message = "the request failed."
    if prefix:
        return prefix + message
    return message[0].upper() + message[1:]


def _format_api_detail(error: ApiError) -> str:
    if error.code:
        return f"{error.code}: {error}"
    if error.status_code:
        return f"HTTP {error.status_code}: {error}"
    return str(error)


__all__ = [
    "ErrorDescriptor",
    "ErrorSeverity",
    "describe_exception",
]
