from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
from typing import Awaitable, Callable, Iterable, Sequence

from access_console.data import CatalogItem, ItemId
from access_console.services.base import (
    EventHook,
    MutationStatus,
    run_optimistic_mutation,
)
from access_console.utils.logging import get_logger

from .catalog_filter import CatalogFilter, group_by_label
from .changes import BaselineSnapshot, ChangeDelta, ChangePreview, ChangeTracker
from .errors import InvalidStateError, PersistenceFailure, StaleIdentifier
from .expansion import GroupExpansionTracker
from .selection_set import GroupSelectionState, SelectionSet


logger = get_logger(__name__)

PersistSelection = Callable[[ItemId, list[ItemId]], Awaitable[object]]
SelectablePredicate = Callable[[CatalogItem], bool]


class WorkflowState(StrEnum):
    IDLE = "idle"
    SUBMITTING = "submitting"


@dataclass(slots=True)
class CommitEvent:
    target_id: ItemId
    delta: ChangeDelta
    status: MutationStatus
    error: BaseException | None = None


def _always_selectable(_: CatalogItem) -> bool:
    return True


class AssignmentWorkflow:
    """One editing session that assigns catalog items to a single target.

    The workflow is the only owner of the baseline and the only path to the
    persistence collaborator. Selection changes go through its methods so they
    can be refused while a commit is in flight.
    """

    def __init__(
        self,
        target_id: ItemId,
        catalog: Iterable[CatalogItem],
        persist: PersistSelection,
        *,
        selectable: SelectablePredicate | None = None,
        expanded_groups: Iterable[str] | None = None,
        commit_timeout: float | None = None,
    ) -> None:
        self._target_id = target_id
        self._catalog: list[CatalogItem] = list(catalog)
        self._persist = persist
        self._selectable = selectable or _always_selectable
        self._commit_timeout = commit_timeout
        self._expand_new_groups = expanded_groups is None

        self._state = WorkflowState.IDLE
        self._last_error: PersistenceFailure | None = None
        self._baseline = BaselineSnapshot()

        self.filter = CatalogFilter(self._catalog)
        self.expansion = GroupExpansionTracker(
            group_by_label(self._catalog) if expanded_groups is None else expanded_groups
        )
        self._selection = SelectionSet()
        self._tracker = ChangeTracker(self._selection, lambda: self._baseline)

        self.commit_status: EventHook[CommitEvent] = EventHook()
        self.committed: EventHook[CommitEvent] = EventHook()

    # ----------------------------------------------------------------- Lifecycle

    def start(self, initial_selection: Iterable[ItemId]) -> None:
        self._require_idle("start")
        self._baseline = BaselineSnapshot.of(initial_selection)
        self._selection.select_all(self._baseline.ids)
        self._last_error = None
        logger.debug(
            "Assignment workflow started",
            target_id=self._target_id,
            baseline=len(self._baseline),
        )

    def refresh_catalog(self, catalog: Iterable[CatalogItem]) -> list[StaleIdentifier]:
        """Swap in a fresh catalog; selections are kept even if now stale."""
        known_groups = set(group_by_label(self._catalog))
        self._catalog = list(catalog)
        if self._expand_new_groups:
            self.expansion.expand(
                group for group in group_by_label(self._catalog) if group not in known_groups
            )
        self.filter.set_items(self._catalog)
        stale = self.stale_identifiers()
        if stale:
            logger.warning(
                "Selection references items missing from refreshed catalog",
                target_id=self._target_id,
                stale_ids=[entry.item_id for entry in stale],
            )
        return stale

    # ----------------------------------------------------------------- Selection

    def toggle(self, item_id: ItemId) -> bool:
        self._require_idle("change the selection")
        return self._selection.toggle(item_id)

    def select_all(self, ids: Iterable[ItemId]) -> None:
        self._require_idle("change the selection")
        self._selection.select_all(ids)

    def select_all_visible(self) -> None:
        self.select_all(item.id for item in self.selectable_items())

    def deselect_all(self) -> None:
        self._require_idle("change the selection")
        self._selection.deselect_all()

    def select_many(self, ids: Iterable[ItemId]) -> None:
        self._require_idle("change the selection")
        self._selection.select_many(ids)

    def deselect_many(self, ids: Iterable[ItemId]) -> None:
        self._require_idle("change the selection")
        self._selection.deselect_many(ids)

    def toggle_group(
        self,
        group: str,
        *,
        within: Iterable[ItemId] | None = None,
    ) -> GroupSelectionState:
        """Select every visible, selectable member of ``group``, or clear them when already full.

        Members hidden by the current search or category are left untouched.
        ``within`` narrows the members further, e.g. to the rows of one page.
        """
        members = [item.id for item in self._visible_members(group, within)]
        if members and all(item_id in self._selection for item_id in members):
            self.deselect_many(members)
        else:
            self.select_many(members)
        return self.group_state(group, within=within)

    def apply_template(self, ids: Iterable[ItemId]) -> None:
        """Replace the selection with a template's ids; an empty template clears it."""
        resolved = list(ids)
        self.select_all(resolved)
        logger.debug(
            "Template applied",
            target_id=self._target_id,
            selected=len(resolved),
        )

    def prune_stale(self) -> list[ItemId]:
        self._require_idle("prune the selection")
        stale = self._selection.stale_ids(self._catalog)
        self._selection.deselect_many(stale)
        return stale

    # ----------------------------------------------------------------- Transitions

    def reset(self) -> None:
        self._require_idle("reset")
        if not self.has_changes:
            logger.debug("Reset skipped; selection matches baseline", target_id=self._target_id)
            return
        self._selection.select_all(self._baseline.ids)
        self._last_error = None

    def preview(self) -> ChangeDelta:
        self._require_idle("preview")
        delta = self._tracker.delta()
        if delta.is_empty:
            raise self._invalid("preview", "there are no changes to review")
        return delta

    def preview_items(self) -> ChangePreview:
        self.preview()
        return self._tracker.preview(self._catalog)

    async def commit(self) -> ChangeDelta:
        self._require_idle("commit")
        if not self.has_changes:
            raise self._invalid("commit", "there are no changes to commit")

        known = {item.id for item in self._catalog}
        target_ids = [item_id for item_id in self._selection.ids if item_id in known]
        delta = self._tracker.delta()

        def event_builder(
            status: MutationStatus, error: Exception | None = None
        ) -> CommitEvent:
            return CommitEvent(
                target_id=self._target_id,
                delta=delta,
                status=status,
                error=error,
            )

        self._state = WorkflowState.SUBMITTING
        self._last_error = None
        logger.info(
            "Committing assignment",
            target_id=self._target_id,
            selected=len(target_ids),
            added=len(delta.added),
            removed=len(delta.removed),
        )
        try:
            await run_optimistic_mutation(
                emitter=self.commit_status,
                event_builder=event_builder,
                operation=lambda: self._call_persist(target_ids),
            )
        except asyncio.CancelledError:
            logger.warning("Assignment commit cancelled", target_id=self._target_id)
            raise
        except Exception as exc:  # noqa: BLE001
            failure = PersistenceFailure(
                self._target_id,
                f"Failed to save changes: {exc}",
                cause=exc,
            )
            self._last_error = failure
            logger.error(
                "Assignment commit failed",
                target_id=self._target_id,
                error=str(exc),
            )
            raise failure from exc
        finally:
            self._state = WorkflowState.IDLE

        self._baseline = BaselineSnapshot.of(target_ids)
        self._selection.select_all(self._baseline.ids)
        logger.info("Assignment committed", target_id=self._target_id)
        self.committed.emit(event_builder(MutationStatus.SUCCEEDED, None))
        return delta

    async def _call_persist(self, ids: list[ItemId]) -> None:
        call = self._persist(self._target_id, list(ids))
        if self._commit_timeout is not None:
            result = await asyncio.wait_for(call, timeout=self._commit_timeout)
        else:
            result = await call
        if result is False:
            raise RuntimeError("Persistence collaborator reported failure")

    # ----------------------------------------------------------------- Queries

    @property
    def target_id(self) -> ItemId:
        return self._target_id

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._state is WorkflowState.SUBMITTING

    @property
    def last_error(self) -> PersistenceFailure | None:
        return self._last_error

    @property
    def baseline(self) -> tuple[ItemId, ...]:
        return self._baseline.ids

    @property
    def selection(self) -> tuple[ItemId, ...]:
        return self._selection.ids

    @property
    def catalog(self) -> Sequence[CatalogItem]:
        return tuple(self._catalog)

    @property
    def has_changes(self) -> bool:
        return self._tracker.has_changes()

    @property
    def can_reset(self) -> bool:
        return not self.is_submitting and self.has_changes

    @property
    def can_commit(self) -> bool:
        return not self.is_submitting and self.has_changes

    @property
    def selected_count(self) -> int:
        return self._selection.live_count(self._catalog)

    @property
    def total_count(self) -> int:
        return len(self._catalog)

    def delta(self) -> ChangeDelta:
        return self._tracker.delta()

    def is_selected(self, item_id: ItemId) -> bool:
        return self._selection.is_selected(item_id)

    def is_expanded(self, group: str) -> bool:
        return self.expansion.is_expanded(group)

    def is_selectable(self, item: CatalogItem) -> bool:
        return self._selectable(item)

    def group_state(
        self,
        group: str,
        *,
        within: Iterable[ItemId] | None = None,
    ) -> GroupSelectionState:
        """Tristate of ``group`` counted over the members the filter currently shows."""
        return self._selection.group_state(self._visible_members(group, within), group)

    def selected_items(self) -> list[CatalogItem]:
        return self._selection.selected_items(self._catalog)

    def filtered_items(self) -> list[CatalogItem]:
        return self.filter.filtered_items()

    def grouped_items(self) -> dict[str, list[CatalogItem]]:
        return self.filter.grouped_items()

    def selectable_items(self) -> list[CatalogItem]:
        return [item for item in self.filter.filtered_items() if self._selectable(item)]

    def stale_identifiers(self) -> list[StaleIdentifier]:
        return [
            StaleIdentifier(item_id=item_id, in_baseline=item_id in self._baseline)
            for item_id in self._selection.stale_ids(self._catalog)
        ]

    # ----------------------------------------------------------------- Helpers

    def _visible_members(
        self,
        group: str,
        within: Iterable[ItemId] | None = None,
    ) -> list[CatalogItem]:
        allowed = None if within is None else set(within)
        return [
            item
            for item in self.filter.filtered_items()
            if item.group_label == group
            and self._selectable(item)
            and (allowed is None or item.id in allowed)
        ]

    def _invalid(self, operation: str, reason: str | None = None) -> InvalidStateError:
        error = InvalidStateError(operation, self._state.value, reason)
        logger.warning(
            "Rejected workflow operation",
            target_id=self._target_id,
            operation=operation,
            state=self._state.value,
            reason=reason,
        )
        return error

    def _require_idle(self, operation: str) -> None:
        if self._state is not WorkflowState.IDLE:
            raise self._invalid(operation, "a commit is in progress")


__all__ = [
    "AssignmentWorkflow",
    "CommitEvent",
    "PersistSelection",
    "SelectablePredicate",
    "WorkflowState",
]
