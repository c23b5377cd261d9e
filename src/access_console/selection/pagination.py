from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    items: tuple[T, ...]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.page_size


class Paginator:
    """Client-side paging over an already-filtered list. Pages are 1-based."""

    def __init__(self, page_size: int = 10, *, page: int = 1) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._page_size = page_size
        self._page = max(1, page)
        self._total_pages = 1

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    def total_pages_for(self, total_items: int) -> int:
        return max(1, math.ceil(total_items / self._page_size))

    def paginate(self, items: Sequence[T]) -> Page[T]:
        self._total_pages = self.total_pages_for(len(items))
        # A shrinking result set (e.g. a narrower search) pulls the page back in range.
        self._page = min(self._page, self._total_pages)
        start = (self._page - 1) * self._page_size
        return Page(
            items=tuple(items[start : start + self._page_size]),
            page=self._page,
            page_size=self._page_size,
            total_items=len(items),
            total_pages=self._total_pages,
        )

    def go_to_page(self, page: int) -> int:
        self._page = max(1, min(page, self._total_pages))
        return self._page

    def next_page(self) -> int:
        if self._page < self._total_pages:
            self._page += 1
        return self._page

    def previous_page(self) -> int:
        if self._page > 1:
            self._page -= 1
        return self._page

    def change_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._page_size = page_size
        self._page = 1

    def reset(self) -> None:
        self._page = 1


__all__ = ["Page", "Paginator"]
