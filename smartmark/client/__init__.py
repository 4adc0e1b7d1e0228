from smartmark.client.api import ApiClient
from smartmark.client.events import Delete, Insert, Update, parse_change, reconcile
from smartmark.client.records import BookmarkRecord
from smartmark.client.session import BookmarkSession
from smartmark.client.view import BookmarkView, Debouncer

__all__ = [
    "ApiClient",
    "BookmarkRecord",
    "BookmarkSession",
    "BookmarkView",
    "Debouncer",
    "Delete",
    "Insert",
    "Update",
    "parse_change",
    "reconcile",
]
