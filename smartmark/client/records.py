from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from dateutil import parser as dt_parser


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return dt_parser.isoparse(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class BookmarkRecord:
    id: int
    title: str
    url: str
    user_id: int | None = None
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, payload: dict) -> BookmarkRecord:
        return cls(
            id=payload["id"],
            title=payload.get("title") or "",
            url=payload.get("url") or "",
            user_id=payload.get("user_id"),
            created_at=_parse_time(payload.get("created_at")),
        )
