from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, Iterable, Sequence

from access_console.data import CatalogItem, DEFAULT_GROUP_LABEL


SortFunction = Callable[[CatalogItem], Any]


class SortKey(StrEnum):
    NAME = "name"
    USAGE = "usage"
    CREATED = "created"


@dataclass(frozen=True, slots=True)
class SortSpec:
    key: SortFunction
    descending: bool = False


def _name_key(item: CatalogItem) -> str:
    return item.name.casefold()


def _usage_key(item: CatalogItem) -> int:
    return item.usage_count or 0


def _created_key(item: CatalogItem) -> float:
    if item.created_at is None:
        return float("-inf")
    return item.created_at.timestamp()


def group_by_label(items: Iterable[CatalogItem]) -> dict[str, list[CatalogItem]]:
    """Bucket items by group label in first-seen order; unlabelled items go to "Other"."""
    grouped: dict[str, list[CatalogItem]] = {}
    for item in items:
        grouped.setdefault(item.group or DEFAULT_GROUP_LABEL, []).append(item)
    return grouped


DEFAULT_SORTS: dict[str, SortSpec] = {
    SortKey.NAME: SortSpec(_name_key),
    SortKey.USAGE: SortSpec(_usage_key, descending=True),
    SortKey.CREATED: SortSpec(_created_key, descending=True),
}


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    search_term: str = ""
    category: str | None = None
    sort_key: str | None = None

    @property
    def is_active(self) -> bool:
        return bool(self.search_term or self.category or self.sort_key)


class CatalogFilter:
    """Narrow a catalog to the visible subset by search text and category.

    Filtering only decides visibility. It owns no selection state, so changing
    the criteria can never drop an item the operator has already chosen.
    """

    def __init__(
        self,
        items: Iterable[CatalogItem] = (),
        *,
        search_groups: bool = True,
    ) -> None:
        self._items: list[CatalogItem] = list(items)
        self._search_groups = search_groups
        self._criteria = FilterCriteria()
        self._sorts: dict[str, SortSpec] = dict(DEFAULT_SORTS)

    # ----------------------------------------------------------------- State

    @property
    def items(self) -> Sequence[CatalogItem]:
        return tuple(self._items)

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    def set_items(self, items: Iterable[CatalogItem]) -> None:
        self._items = list(items)

    def set_search_term(self, text: str | None) -> None:
        self._criteria = FilterCriteria(
            search_term=text or "",
            category=self._criteria.category,
            sort_key=self._criteria.sort_key,
        )

    def set_category(self, key: str | None) -> None:
        self._criteria = FilterCriteria(
            search_term=self._criteria.search_term,
            category=key or None,
            sort_key=self._criteria.sort_key,
        )

    def set_sort(self, key: str | None) -> None:
        self._criteria = FilterCriteria(
            search_term=self._criteria.search_term,
            category=self._criteria.category,
            sort_key=key or None,
        )

    def register_sort(
        self,
        name: str,
        key: SortFunction,
        *,
        descending: bool = False,
    ) -> None:
        """Add a caller-supplied ordering, e.g. a count attribute sorted descending."""
        self._sorts[name] = SortSpec(key, descending=descending)

    def reset(self) -> None:
        self._criteria = FilterCriteria()

    # ----------------------------------------------------------------- Queries

    def matches(self, item: CatalogItem) -> bool:
        criteria = self._criteria
        if criteria.category and item.group != criteria.category:
            return False
        term = criteria.search_term.casefold()
        if not term:
            return True
        haystacks = [item.name, item.display_name, item.description]
        if self._search_groups:
            haystacks.append(item.group)
        return any(term in value.casefold() for value in haystacks if value)

    def filtered_items(self) -> list[CatalogItem]:
        visible = [item for item in self._items if self.matches(item)]
        spec = self._sorts.get(self._criteria.sort_key or "")
        if spec is None:
            return visible
        # sorted() is stable in both directions, so ties keep catalog order.
        return sorted(visible, key=spec.key, reverse=spec.descending)

    def grouped_items(self) -> dict[str, list[CatalogItem]]:
        return group_by_label(self.filtered_items())

    def unique_categories(self) -> list[str]:
        seen: dict[str, None] = {}
        for item in self._items:
            if item.group:
                seen.setdefault(item.group, None)
        return list(seen)


__all__ = [
    "CatalogFilter",
    "DEFAULT_SORTS",
    "FilterCriteria",
    "SortFunction",
    "SortKey",
    "SortSpec",
    "group_by_label",
]
