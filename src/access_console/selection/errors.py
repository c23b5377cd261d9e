from __future__ import annotations

from dataclasses import dataclass

from access_console.data import ItemId


class WorkflowError(Exception):
    """Base class for assignment workflow failures."""


class InvalidStateError(WorkflowError):
    """An operation was invoked outside the state in which it is legal."""

    def __init__(self, operation: str, state: str, reason: str | None = None) -> None:
        self.operation = operation
        self.state = state
        self.reason = reason
        detail = f"Cannot {operation} while {state}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


class PersistenceFailure(WorkflowError):
    """The persistence collaborator rejected or failed to apply a commit."""

    def __init__(
        self,
        target_id: ItemId,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        self.target_id = target_id
        self.cause = cause
        super().__init__(message)

    @property
    def is_retriable(self) -> bool:
        return bool(getattr(self.cause, "is_retriable", False))


@dataclass(frozen=True, slots=True)
class StaleIdentifier:
    """Advisory record for a selected id that is missing from the live catalog."""

    item_id: ItemId
    in_baseline: bool


__all__ = [
    "InvalidStateError",
    "PersistenceFailure",
    "StaleIdentifier",
    "WorkflowError",
]
