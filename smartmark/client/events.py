"""Change notifications from the store and the reducer that applies them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from smartmark.client.records import BookmarkRecord


@dataclass(frozen=True)
class Insert:
    record: BookmarkRecord


@dataclass(frozen=True)
class Update:
    record: BookmarkRecord


@dataclass(frozen=True)
class Delete:
    id: int


ChangeNotification = Union[Insert, Update, Delete]


def parse_change(payload: dict) -> ChangeNotification | None:
    """
    Build a notification from a wire event `{event_type, new, old}`.

    Unknown event types and events missing their row are ignored (None).
    """
    event_type = (payload.get("event_type") or "").upper()
    new = payload.get("new")
    old = payload.get("old")
    if event_type == "INSERT" and new:
        return Insert(BookmarkRecord.from_dict(new))
    if event_type == "UPDATE" and new:
        return Update(BookmarkRecord.from_dict(new))
    if event_type == "DELETE" and old and old.get("id") is not None:
        return Delete(old["id"])
    return None


def reconcile(
    bookmarks: list[BookmarkRecord], event: ChangeNotification
) -> list[BookmarkRecord]:
    """Return the list with `event` applied. The input list is not modified."""
    if isinstance(event, Insert):
        if any(item.id == event.record.id for item in bookmarks):
            return bookmarks
        return [event.record, *bookmarks]
    if isinstance(event, Update):
        return [
            event.record if item.id == event.record.id else item for item in bookmarks
        ]
    if isinstance(event, Delete):
        return [item for item in bookmarks if item.id != event.id]
    return bookmarks
