from __future__ import annotations

import time
from typing import Callable, Sequence

from smartmark.client.records import BookmarkRecord


PAGE_SIZE = 6
SEARCH_DEBOUNCE_SECONDS = 0.3


class Debouncer:
    """
    Holds a value that only settles after `delay` seconds without changes.

    Time comes from `clock` so callers decide what "now" is; nothing runs in
    the background.
    """

    def __init__(
        self,
        initial: str = "",
        delay: float = SEARCH_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.delay = delay
        self.clock = clock
        self._settled = initial
        self._pending: str | None = None
        self._changed_at = 0.0

    def set(self, value: str) -> None:
        self._pending = value
        self._changed_at = self.clock()

    @property
    def raw(self) -> str:
        return self._settled if self._pending is None else self._pending

    @property
    def value(self) -> str:
        if self._pending is not None and self.clock() - self._changed_at >= self.delay:
            self._settled = self._pending
            self._pending = None
        return self._settled


def filter_bookmarks(
    bookmarks: Sequence[BookmarkRecord], term: str
) -> list[BookmarkRecord]:
    needle = (term or "").lower()
    return [item for item in bookmarks if needle in item.title.lower()]


def paginate(
    items: Sequence[BookmarkRecord], page: int, page_size: int = PAGE_SIZE
) -> list[BookmarkRecord]:
    return list(items[: max(page, 1) * page_size])


class BookmarkView:
    """Debounced title filter plus "load more" pagination over a bookmark list."""

    def __init__(
        self,
        page_size: int = PAGE_SIZE,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.page_size = page_size
        self.page = 1
        self.search = Debouncer(delay=debounce_seconds, clock=clock)
        self._applied_term = ""

    def set_search(self, term: str) -> None:
        self.search.set(term)
        self.page = 1

    def filtered(self, bookmarks: Sequence[BookmarkRecord]) -> list[BookmarkRecord]:
        term = self.search.value
        if term != self._applied_term:
            # Pages loaded under the previous term do not carry over.
            self._applied_term = term
            self.page = 1
        return filter_bookmarks(bookmarks, term)

    def visible(self, bookmarks: Sequence[BookmarkRecord]) -> list[BookmarkRecord]:
        return paginate(self.filtered(bookmarks), self.page, self.page_size)

    def has_more(self, bookmarks: Sequence[BookmarkRecord]) -> bool:
        return len(self.filtered(bookmarks)) > self.page * self.page_size

    def load_more(self, bookmarks: Sequence[BookmarkRecord]) -> bool:
        if not self.has_more(bookmarks):
            return False
        self.page += 1
        return True
