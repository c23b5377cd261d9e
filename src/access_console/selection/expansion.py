from __future__ import annotations

from typing import Iterable


class GroupExpansionTracker:
    """Remember which groups of a grouped catalog view are expanded."""

    def __init__(self, expanded: Iterable[str] = ()) -> None:
        self._expanded: dict[str, None] = dict.fromkeys(expanded)

    @property
    def expanded_groups(self) -> tuple[str, ...]:
        return tuple(self._expanded)

    def toggle(self, group: str) -> bool:
        if group in self._expanded:
            del self._expanded[group]
            return False
        self._expanded[group] = None
        return True

    def expand(self, groups: Iterable[str]) -> None:
        for group in groups:
            self._expanded.setdefault(group, None)

    def expand_all(self, groups: Iterable[str]) -> None:
        self._expanded = dict.fromkeys(groups)

    def collapse_all(self) -> None:
        self._expanded = {}

    def is_expanded(self, group: str) -> bool:
        return group in self._expanded

    def __len__(self) -> int:
        return len(self._expanded)


__all__ = ["GroupExpansionTracker"]
