from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Callable, Iterable, Mapping

from access_console.data import CatalogItem, ItemId

from .catalog_filter import group_by_label
from .selection_set import SelectionSet


@dataclass(frozen=True, slots=True)
class BaselineSnapshot:
    """Immutable copy of a committed selection. Replaced, never edited."""

    ids: tuple[ItemId, ...] = ()
    members: frozenset[ItemId] = field(default_factory=frozenset)

    @classmethod
    def of(cls, ids: Iterable[ItemId]) -> "BaselineSnapshot":
        ordered = tuple(dict.fromkeys(ids))
        return cls(ids=ordered, members=frozenset(ordered))

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.members

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True, slots=True)
class ChangeDelta:
    added: tuple[ItemId, ...] = ()
    removed: tuple[ItemId, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.removed)

    def apply_to(self, baseline: Iterable[ItemId]) -> set[ItemId]:
        return (set(baseline) | set(self.added)) - set(self.removed)


class ImpactLevel(StrEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def for_total(cls, total: int) -> "ImpactLevel":
        if total <= 0:
            return cls.NONE
        if total <= 3:
            return cls.LOW
        if total <= 10:
            return cls.MEDIUM
        return cls.HIGH

    @property
    def message(self) -> str:
        return _IMPACT_MESSAGES[self]


_IMPACT_MESSAGES: Mapping[ImpactLevel, str] = {
    ImpactLevel.NONE: "No changes detected",
    ImpactLevel.LOW: "Minor changes",
    ImpactLevel.MEDIUM: "Moderate changes",
    ImpactLevel.HIGH: "Significant changes",
}


@dataclass(frozen=True, slots=True)
class ChangePreview:
    """What an operator confirms before a commit, resolved against the catalog."""

    delta: ChangeDelta
    added: dict[str, list[CatalogItem]]
    removed: dict[str, list[CatalogItem]]
    unchanged: int

    @property
    def added_count(self) -> int:
        return sum(len(items) for items in self.added.values())

    @property
    def removed_count(self) -> int:
        return sum(len(items) for items in self.removed.values())

    @property
    def total_changes(self) -> int:
        return self.added_count + self.removed_count

    @property
    def impact(self) -> ImpactLevel:
        return ImpactLevel.for_total(self.total_changes)

    def summary_lines(self) -> list[str]:
        lines = [f"{self.impact.message}: {self.total_changes} change(s)"]
        for heading, grouped in (("Added", self.added), ("Removed", self.removed)):
            for group, items in grouped.items():
                names = ", ".join(item.label for item in items)
                lines.append(f"{heading} · {group}: {names}")
        lines.append(f"Unchanged: {self.unchanged}")
        return lines


class ChangeTracker:
    """Derive the divergence between a selection and its baseline.

    Holds no state of its own: every answer is recomputed from the live
    selection and whatever baseline the owner currently exposes.
    """

    def __init__(
        self,
        selection: SelectionSet,
        baseline: Callable[[], BaselineSnapshot],
    ) -> None:
        self._selection = selection
        self._baseline = baseline

    @property
    def baseline(self) -> BaselineSnapshot:
        return self._baseline()

    def delta(self) -> ChangeDelta:
        baseline = self._baseline()
        current = self._selection.ids
        current_members = set(current)
        added = tuple(item_id for item_id in current if item_id not in baseline)
        removed = tuple(
            item_id for item_id in baseline.ids if item_id not in current_members
        )
        return ChangeDelta(added=added, removed=removed)

    def has_changes(self) -> bool:
        return not self.delta().is_empty

    def preview(self, catalog: Iterable[CatalogItem]) -> ChangePreview:
        delta = self.delta()
        added_ids = set(delta.added)
        removed_ids = set(delta.removed)
        items = list(catalog)
        baseline = self._baseline()
        unchanged = sum(1 for item_id in baseline.ids if item_id in self._selection)
        return ChangePreview(
            delta=delta,
            added=group_by_label(item for item in items if item.id in added_ids),
            removed=group_by_label(item for item in items if item.id in removed_ids),
            unchanged=unchanged,
        )


__all__ = [
    "BaselineSnapshot",
    "ChangeDelta",
    "ChangePreview",
    "ChangeTracker",
    "ImpactLevel",
]
