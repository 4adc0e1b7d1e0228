from smartmark.client.events import Delete, Insert, Update, parse_change, reconcile
from smartmark.client.records import BookmarkRecord


def _record(bookmark_id: int, title: str = "") -> BookmarkRecord:
    return BookmarkRecord(
        id=bookmark_id,
        title=title or f"B{bookmark_id}",
        url=f"https://b{bookmark_id}.example",
    )


def test_insert_prepends_new_bookmark():
    bookmarks = [_record(1)]

    result = reconcile(bookmarks, Insert(_record(2)))

    assert [item.id for item in result] == [2, 1]
    assert [item.id for item in bookmarks] == [1]


def test_replayed_insert_keeps_single_entry():
    event = Insert(_record(7))

    once = reconcile([], event)
    twice = reconcile(once, event)

    assert [item.id for item in twice] == [7]


def test_update_replaces_in_place():
    bookmarks = [_record(3), _record(2), _record(1)]

    result = reconcile(bookmarks, Update(_record(2, "Renamed")))

    assert [item.id for item in result] == [3, 2, 1]
    assert result[1].title == "Renamed"


def test_update_for_unknown_id_is_dropped():
    bookmarks = [_record(1)]

    result = reconcile(bookmarks, Update(_record(99, "Ghost")))

    assert result == bookmarks


def test_delete_removes_entry_and_ignores_unknown_id():
    bookmarks = [_record(2), _record(1)]

    result = reconcile(bookmarks, Delete(2))
    assert [item.id for item in result] == [1]

    assert reconcile(result, Delete(42)) == result


def test_events_apply_in_delivery_order():
    events = [Insert(_record(1)), Update(_record(1, "New")), Delete(1), Insert(_record(2))]

    bookmarks = []
    for event in events:
        bookmarks = reconcile(bookmarks, event)

    assert [item.id for item in bookmarks] == [2]


def test_parse_change_builds_tagged_events():
    row = {
        "id": 5,
        "title": "Five",
        "url": "https://five.example",
        "user_id": 1,
        "created_at": "2025-01-02T03:04:05+00:00",
    }

    inserted = parse_change({"event_type": "INSERT", "new": row, "old": None})
    assert isinstance(inserted, Insert)
    assert inserted.record.title == "Five"
    assert inserted.record.created_at.year == 2025

    updated = parse_change({"event_type": "update", "new": row, "old": row})
    assert isinstance(updated, Update)

    deleted = parse_change({"event_type": "DELETE", "new": None, "old": {"id": 5}})
    assert deleted == Delete(5)


def test_parse_change_ignores_unknown_or_incomplete_events():
    assert parse_change({"event_type": "TRUNCATE"}) is None
    assert parse_change({"event_type": "INSERT", "new": None}) is None
    assert parse_change({"event_type": "DELETE", "old": {}}) is None
