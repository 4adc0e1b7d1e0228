from __future__ import annotations

from smartmark.extensions import db
from smartmark.models import Bookmark, ChangeEvent
from smartmark.services.common import is_valid_url
from smartmark.services.exceptions import ValidationError


EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"

TITLE_MAX_LENGTH = 512


def _clean_fields(payload: dict) -> tuple[str, str]:
    title = (payload.get("title") or "").strip()
    url = (payload.get("url") or "").strip()
    if not title or not url:
        raise ValidationError("title and url are required")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"title must be at most {TITLE_MAX_LENGTH} characters")
    if not is_valid_url(url):
        raise ValidationError("url must be an absolute http(s) URL")
    return title, url


def log_change_event(
    user_id: int,
    event_type: str,
    record_id: int,
    new: dict | None = None,
    old: dict | None = None,
):
    event = ChangeEvent(
        user_id=user_id,
        event_type=event_type,
        record_id=record_id,
        new=new,
        old=old,
    )
    db.session.add(event)
    return event


def latest_cursor(user_id: int) -> int:
    return (
        db.session.query(db.func.max(ChangeEvent.id)).filter_by(user_id=user_id).scalar()
        or 0
    )


def list_bookmarks(user_id: int) -> list[Bookmark]:
    return (
        Bookmark.query.filter_by(user_id=user_id)
        .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        .all()
    )


def get_user_bookmark(user_id: int, bookmark_id: int) -> Bookmark | None:
    return Bookmark.query.filter_by(id=bookmark_id, user_id=user_id).first()


def create_bookmark(user_id: int, payload: dict) -> Bookmark:
    title, url = _clean_fields(payload)
    bookmark = Bookmark(user_id=user_id, title=title, url=url)
    db.session.add(bookmark)
    db.session.flush()
    log_change_event(user_id, EVENT_INSERT, bookmark.id, new=bookmark.as_dict())
    db.session.commit()
    return bookmark


def replace_bookmark(bookmark: Bookmark, payload: dict) -> Bookmark:
    title, url = _clean_fields(payload)
    old = bookmark.as_dict()
    bookmark.title = title
    bookmark.url = url
    db.session.flush()
    log_change_event(
        bookmark.user_id, EVENT_UPDATE, bookmark.id, new=bookmark.as_dict(), old=old
    )
    db.session.commit()
    return bookmark


def delete_bookmark(bookmark: Bookmark) -> None:
    log_change_event(
        bookmark.user_id, EVENT_DELETE, bookmark.id, old=bookmark.as_dict()
    )
    db.session.delete(bookmark)
    db.session.commit()


def changes_since(user_id: int, since: int, limit: int) -> list[ChangeEvent]:
    return (
        ChangeEvent.query.filter_by(user_id=user_id)
        .filter(ChangeEvent.id > since)
        .order_by(ChangeEvent.id.asc())
        .limit(limit)
        .all()
    )
