import re
from urllib.parse import urlparse


_SCHEME_PREFIX = re.compile(r"^https?://(www\.)?", re.IGNORECASE)
_SEGMENT_BOUNDARY = re.compile(r"[/?#]")

ALLOWED_SCHEMES = {"http", "https"}
FALLBACK_TITLE = "Untitled"


def is_valid_url(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    if value != value.strip() or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
        # Accessing .port validates it, urlparse alone does not.
        parsed.port
    except ValueError:
        return False
    return parsed.scheme.lower() in ALLOWED_SCHEMES and bool(parsed.hostname)


def hostname_title(url: str) -> str:
    """`https://www.example.com/path` -> `example.com`."""
    stripped = _SCHEME_PREFIX.sub("", (url or "").strip(), count=1)
    host = _SEGMENT_BOUNDARY.split(stripped, maxsplit=1)[0]
    return host or FALLBACK_TITLE
