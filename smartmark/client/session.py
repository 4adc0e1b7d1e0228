from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from smartmark.client.api import ApiClient
from smartmark.client.events import parse_change, reconcile
from smartmark.client.records import BookmarkRecord
from smartmark.client.view import PAGE_SIZE, SEARCH_DEBOUNCE_SECONDS, BookmarkView
from smartmark.services.common import is_valid_url
from smartmark.services.exceptions import (
    ApiError,
    RateLimitedSubmission,
    ValidationError,
)
from smartmark.services.metadata import MetadataResult
from smartmark.services.web_search import SearchResult


logger = logging.getLogger(__name__)

MIN_CREATE_INTERVAL_SECONDS = 1.2


@dataclass
class BookmarkForm:
    title: str = ""
    url: str = ""
    editing_id: int | None = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None


@dataclass(frozen=True)
class MetadataRequest:
    revision: int
    url: str


class BookmarkSession:
    """
    Client-side state for one signed-in user.

    The bookmark list only changes through `sync()`, which replays the
    store's change feed in delivery order. Mutations go straight to the
    store and show up locally once their change event arrives.
    """

    def __init__(
        self,
        api: ApiClient,
        clock: Callable[[], float] = time.monotonic,
        page_size: int = PAGE_SIZE,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
        min_create_interval: float = MIN_CREATE_INTERVAL_SECONDS,
    ):
        self.api = api
        self.clock = clock
        self.min_create_interval = min_create_interval
        self.view = BookmarkView(
            page_size=page_size, debounce_seconds=debounce_seconds, clock=clock
        )
        self.bookmarks: list[BookmarkRecord] = []
        self.cursor = 0
        self.metadata_cache: dict[str, MetadataResult] = {}
        self.last_create_at: float | None = None
        self.form = BookmarkForm()
        self.web_results: list[SearchResult] = []
        self._url_revision = 0

    def start(self) -> None:
        self.bookmarks, self.cursor = self.api.list_bookmarks()

    def sync(self) -> int:
        """Apply every pending change event. Returns how many were applied."""
        applied = 0
        while True:
            page = self.api.pull_changes(self.cursor)
            for payload in page.events:
                event = parse_change(payload)
                if event is not None:
                    self.bookmarks = reconcile(self.bookmarks, event)
                    applied += 1
            self.cursor = page.cursor
            if not page.has_more or not page.events:
                return applied

    def close(self) -> None:
        try:
            self.api.sign_out()
        finally:
            self.api.close()
            self.bookmarks = []
            self.metadata_cache.clear()
            self.last_create_at = None
            self.web_results = []
            self.form = BookmarkForm()

    def set_search(self, term: str) -> None:
        self.view.set_search(term)

    def visible(self) -> list[BookmarkRecord]:
        return self.view.visible(self.bookmarks)

    def has_more(self) -> bool:
        return self.view.has_more(self.bookmarks)

    def load_more(self) -> bool:
        return self.view.load_more(self.bookmarks)

    def total_matches(self) -> int:
        return len(self.view.filtered(self.bookmarks))

    def lookup_metadata(self, url: str) -> MetadataResult | None:
        cached = self.metadata_cache.get(url)
        if cached is not None:
            return cached
        try:
            payload = self.api.fetch_metadata(url)
        except ApiError as exc:
            logger.warning("Metadata lookup failed for %s: %s", url, exc)
            return None
        result = MetadataResult(
            title=payload.get("title") or "",
            url=payload.get("url") or url,
            warning=payload.get("warning"),
        )
        self.metadata_cache[url] = result
        return result

    def request_metadata(self, url: str) -> MetadataRequest | None:
        """
        Record a URL field change and decide whether it should be looked up.

        Every call supersedes earlier requests, even when it returns None.
        """
        self._url_revision += 1
        self.form.url = url
        if not is_valid_url(url) or self.form.is_editing or self.form.title:
            return None
        return MetadataRequest(revision=self._url_revision, url=url)

    def apply_metadata(
        self, request: MetadataRequest, result: MetadataResult | None
    ) -> bool:
        if result is None or not result.title:
            return False
        if request.revision != self._url_revision or self.form.url != request.url:
            logger.debug("Discarding stale metadata for %s", request.url)
            return False
        if self.form.is_editing or self.form.title:
            return False
        self.form.title = result.title
        return True

    def change_url(self, url: str) -> bool:
        request = self.request_metadata(url)
        if request is None:
            return False
        return self.apply_metadata(request, self.lookup_metadata(url))

    def set_title(self, title: str) -> None:
        self.form.title = title

    def start_edit(self, bookmark: BookmarkRecord) -> None:
        self._url_revision += 1
        self.form = BookmarkForm(
            title=bookmark.title, url=bookmark.url, editing_id=bookmark.id
        )

    def reset_form(self) -> None:
        self._url_revision += 1
        self.form = BookmarkForm()

    def _check_create_interval(self) -> None:
        now = self.clock()
        if self.last_create_at is not None:
            elapsed = now - self.last_create_at
            if elapsed < self.min_create_interval:
                raise RateLimitedSubmission(self.min_create_interval - elapsed)
        self.last_create_at = now

    def save(self) -> dict:
        title = self.form.title.strip()
        url = self.form.url.strip()
        if not title or not url:
            raise ValidationError("Fill all fields")
        if not is_valid_url(url):
            raise ValidationError("Invalid URL")

        if self.form.is_editing:
            saved = self.api.update_bookmark(self.form.editing_id, title, url)
        else:
            self._check_create_interval()
            saved = self.api.insert_bookmark(title, url)
        self.reset_form()
        return saved

    def delete(self, bookmark_id: int) -> None:
        self.api.delete_bookmark(bookmark_id)

    def web_search(self, query: str) -> list[SearchResult]:
        if not query or not query.strip():
            raise ValidationError("Enter a search term")
        self.web_results = []
        self.web_results = self.api.search_web(query.strip())
        return self.web_results

    def add_from_search(self, result: SearchResult) -> dict:
        saved = self.api.insert_bookmark(result.title, result.url)
        self.web_results = [row for row in self.web_results if row.url != result.url]
        return saved
