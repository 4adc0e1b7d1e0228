from smartmark.client.records import BookmarkRecord
from smartmark.client.view import BookmarkView, Debouncer, filter_bookmarks, paginate


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _newest_first(titles):
    return [
        BookmarkRecord(id=index, title=title, url=f"https://{index}.example")
        for index, title in reversed(list(enumerate(titles)))
    ]


def test_debouncer_waits_for_quiet_period():
    clock = FakeClock()
    debouncer = Debouncer(delay=0.3, clock=clock)

    debouncer.set("a")
    clock.advance(0.2)
    debouncer.set("ab")
    clock.advance(0.2)
    assert debouncer.value == ""
    assert debouncer.raw == "ab"

    clock.advance(0.15)
    assert debouncer.value == "ab"


def test_filter_matches_title_case_insensitively_only():
    bookmarks = [
        BookmarkRecord(id=1, title="Python Docs", url="https://docs.python.org"),
        BookmarkRecord(id=2, title="Gardening", url="https://python.example"),
    ]

    assert [item.id for item in filter_bookmarks(bookmarks, "PYTHON")] == [1]
    assert len(filter_bookmarks(bookmarks, "")) == 2


def test_paginate_exposes_page_times_page_size():
    items = _newest_first([f"A{i}" for i in range(10)])

    assert len(paginate(items, 1)) == 6
    assert len(paginate(items, 2)) == 10
    assert len(paginate(items, 0)) == 6


def test_filter_paginate_and_reset():
    clock = FakeClock()
    view = BookmarkView(clock=clock)
    bookmarks = _newest_first([f"A{i}" for i in range(10)])

    view.set_search("A")
    clock.advance(0.35)
    assert [item.title for item in view.visible(bookmarks)] == [
        "A9",
        "A8",
        "A7",
        "A6",
        "A5",
        "A4",
    ]
    assert view.has_more(bookmarks)

    assert view.load_more(bookmarks) is True
    assert len(view.visible(bookmarks)) == 10
    assert view.has_more(bookmarks) is False
    assert view.load_more(bookmarks) is False
    assert view.page == 2

    view.set_search("A9")
    assert view.page == 1
    clock.advance(0.35)
    assert [item.title for item in view.visible(bookmarks)] == ["A9"]
    assert view.has_more(bookmarks) is False


def test_filter_does_not_apply_before_debounce_window():
    clock = FakeClock()
    view = BookmarkView(clock=clock)
    bookmarks = _newest_first(["Alpha", "Beta"])

    view.set_search("beta")
    clock.advance(0.1)
    assert len(view.visible(bookmarks)) == 2

    clock.advance(0.25)
    assert [item.title for item in view.visible(bookmarks)] == ["Beta"]


def test_page_loaded_during_debounce_window_resets_when_term_settles():
    clock = FakeClock()
    view = BookmarkView(page_size=6, debounce_seconds=0.3, clock=clock)
    bookmarks = _newest_first([f"A{i}" for i in range(10)])

    view.set_search("a")
    clock.advance(0.1)
    assert view.load_more(bookmarks)
    assert view.page == 2

    clock.advance(0.25)
    assert [item.title for item in view.visible(bookmarks)] == [
        "A9",
        "A8",
        "A7",
        "A6",
        "A5",
        "A4",
    ]
    assert view.page == 1
    assert view.has_more(bookmarks)


def test_settled_term_does_not_reset_later_pages():
    clock = FakeClock()
    view = BookmarkView(page_size=6, debounce_seconds=0.3, clock=clock)
    bookmarks = _newest_first([f"A{i}" for i in range(10)])

    view.set_search("a")
    clock.advance(0.35)
    assert view.load_more(bookmarks)

    assert len(view.visible(bookmarks)) == 10
    assert view.page == 2
