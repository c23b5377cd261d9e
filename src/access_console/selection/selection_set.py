from __future__ import annotations

from enum import StrEnum
from typing import Iterable, Iterator

from access_console.data import CatalogItem, ItemId


class GroupSelectionState(StrEnum):
    NONE = "none"
    PARTIAL = "partial"
    ALL = "all"


class SelectionSet:
    """Ordered set of chosen item identifiers.

    The set is catalog-agnostic: ids that are not (or no longer) present in a
    catalog may be stored, but every catalog-backed view below leaves them
    out. Enumeration follows insertion order.
    """

    __slots__ = ("_ids",)

    def __init__(self, ids: Iterable[ItemId] = ()) -> None:
        self._ids: dict[ItemId, None] = dict.fromkeys(ids)

    # ----------------------------------------------------------------- Mutation

    def toggle(self, item_id: ItemId) -> bool:
        """Flip membership of ``item_id`` and return whether it is now selected."""
        if item_id in self._ids:
            del self._ids[item_id]
            return False
        self._ids[item_id] = None
        return True

    def select_all(self, ids: Iterable[ItemId]) -> None:
        self._ids = dict.fromkeys(ids)

    def deselect_all(self) -> None:
        self._ids = {}

    def select_many(self, ids: Iterable[ItemId]) -> None:
        for item_id in ids:
            self._ids.setdefault(item_id, None)

    def deselect_many(self, ids: Iterable[ItemId]) -> None:
        for item_id in ids:
            self._ids.pop(item_id, None)

    # ----------------------------------------------------------------- Queries

    def is_selected(self, item_id: ItemId) -> bool:
        return item_id in self._ids

    @property
    def ids(self) -> tuple[ItemId, ...]:
        return tuple(self._ids)

    @property
    def count(self) -> int:
        return len(self._ids)

    def snapshot(self) -> frozenset[ItemId]:
        return frozenset(self._ids)

    def selected_items(self, catalog: Iterable[CatalogItem]) -> list[CatalogItem]:
        return [item for item in catalog if item.id in self._ids]

    def live_count(self, catalog: Iterable[CatalogItem]) -> int:
        return len(self.selected_items(catalog))

    def stale_ids(self, catalog: Iterable[CatalogItem]) -> list[ItemId]:
        known = {item.id for item in catalog}
        return [item_id for item_id in self._ids if item_id not in known]

    def group_state(
        self,
        catalog: Iterable[CatalogItem],
        group: str,
    ) -> GroupSelectionState:
        members = [item.id for item in catalog if item.group_label == group]
        chosen = sum(1 for item_id in members if item_id in self._ids)
        if not members or chosen == 0:
            return GroupSelectionState.NONE
        if chosen == len(members):
            return GroupSelectionState.ALL
        return GroupSelectionState.PARTIAL

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._ids

    def __iter__(self) -> Iterator[ItemId]:
        return iter(tuple(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"SelectionSet({list(self._ids)!r})"


__all__ = ["GroupSelectionState", "SelectionSet"]
