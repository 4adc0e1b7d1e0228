from __future__ import annotations

import logging
import time
import warnings
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Callable

import httpx
from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

from smartmark.services.common import hostname_title, is_valid_url
from smartmark.services.exceptions import (
    UpstreamFetchError,
    UpstreamTimeoutError,
    ValidationError,
)


logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "SmartmarkBot/1.0 (+https://smartmark.local)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

_PARSEABLE_CONTENT_TYPES = ("html", "xml")

WARNING_TIMEOUT = "Timed out fetching page metadata"
WARNING_NO_TITLE = "No title found on page"
WARNING_UNEXPECTED = "Could not fetch full metadata"


@dataclass
class MetadataResult:
    title: str
    url: str
    warning: str | None = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None

    def as_dict(self):
        payload = {"title": self.title, "url": self.url}
        if self.warning:
            payload["warning"] = self.warning
        return payload


@dataclass
class FetchedPage:
    html: str
    final_url: str
    status_code: int
    content_type: str


def _read_page(
    client: httpx.Client, url: str, timeout: float, max_bytes: int, deadline: float
) -> FetchedPage:
    with client.stream("GET", url) as response:
        if not response.is_success:
            raise UpstreamFetchError(
                f"HTTP {response.status_code}",
                status_code=response.status_code,
            )
        chunks = []
        total = 0
        for chunk in response.iter_bytes():
            if time.monotonic() > deadline:
                raise UpstreamTimeoutError(f"Timed out after {timeout}s")
            total += len(chunk)
            if total > max_bytes:
                break
            chunks.append(chunk)
        data = b"".join(chunks)
        encoding = response.encoding or "utf-8"
        return FetchedPage(
            html=data.decode(encoding, errors="ignore"),
            final_url=str(response.url),
            status_code=response.status_code,
            content_type=response.headers.get("content-type", ""),
        )


def fetch_page(
    url: str,
    timeout: float,
    max_bytes: int,
    transport: httpx.BaseTransport | None = None,
) -> FetchedPage:
    """
    Fetch `url` once under a fixed wall-clock deadline of `timeout` seconds.

    The deadline covers connecting, headers and body together. When it
    passes the client is closed, which aborts the worker's socket.

    Raises UpstreamTimeoutError when the deadline passes and
    UpstreamFetchError for transport failures or non-2xx statuses.
    """
    deadline = time.monotonic() + timeout
    client = httpx.Client(
        follow_redirects=True,
        timeout=timeout,
        headers=DEFAULT_HEADERS,
        transport=transport,
    )
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="metadata-fetch")
    try:
        future = executor.submit(_read_page, client, url, timeout, max_bytes, deadline)
        return future.result(timeout=max(deadline - time.monotonic(), 0))
    except FutureTimeoutError as exc:
        raise UpstreamTimeoutError(f"Timed out after {timeout}s") from exc
    except httpx.TimeoutException as exc:
        raise UpstreamTimeoutError(f"Timed out after {timeout}s") from exc
    except httpx.HTTPError as exc:
        raise UpstreamFetchError(_normalize_error(exc)) from exc
    finally:
        client.close()
        executor.shutdown(wait=False)


def _normalize_error(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__


def _build_soup(html: str) -> BeautifulSoup:
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)
        return BeautifulSoup(html, "lxml")


def _meta_content(soup: BeautifulSoup, attr: str, value: str) -> str | None:
    tag = soup.find("meta", attrs={attr: value})
    if tag and tag.get("content"):
        return tag["content"]
    return None


def og_title(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "property", "og:title") or _meta_content(
        soup, "name", "og:title"
    )


def twitter_title(soup: BeautifulSoup) -> str | None:
    return _meta_content(soup, "name", "twitter:title") or _meta_content(
        soup, "property", "twitter:title"
    )


def document_title(soup: BeautifulSoup) -> str | None:
    if soup.title and soup.title.string:
        return str(soup.title.string)
    return None


TITLE_EXTRACTORS: tuple[Callable[[BeautifulSoup], str | None], ...] = (
    og_title,
    twitter_title,
    document_title,
)


def clean_title(raw: str | None) -> str:
    text = raw or ""
    # The parser has already decoded entities; only normalise non-breaking spaces.
    return text.replace("\xa0", " ").strip()


def extract_title(html: str) -> str | None:
    soup = _build_soup(html)
    for extractor in TITLE_EXTRACTORS:
        title = clean_title(extractor(soup))
        if title:
            return title
    return None


def _is_parseable(content_type: str) -> bool:
    if not content_type:
        return True
    lowered = content_type.lower()
    return any(marker in lowered for marker in _PARSEABLE_CONTENT_TYPES)


def _fallback(url: str, warning: str) -> MetadataResult:
    logger.warning("Degraded metadata for %s: %s", url, warning)
    return MetadataResult(title=hostname_title(url), url=url, warning=warning)


def resolve_metadata(
    url: str | None,
    timeout: float,
    max_bytes: int,
    transport: httpx.BaseTransport | None = None,
) -> MetadataResult:
    """
    Resolve a display title for `url`.

    Only invalid input raises (ValidationError, before any network call).
    Every upstream failure becomes a degraded result titled after the host.
    """
    if not url:
        raise ValidationError("URL is required")
    if not is_valid_url(url):
        raise ValidationError("Invalid URL")

    logger.info("Fetching metadata for %s", url)
    try:
        page = fetch_page(url, timeout=timeout, max_bytes=max_bytes, transport=transport)
        if not _is_parseable(page.content_type):
            return _fallback(url, f"Unsupported content type: {page.content_type}")
        title = extract_title(page.html)
    except UpstreamTimeoutError:
        return _fallback(url, WARNING_TIMEOUT)
    except UpstreamFetchError as exc:
        return _fallback(url, f"Could not fetch page: {exc.message}")
    except Exception:
        logger.exception("Unexpected metadata failure for %s", url)
        return _fallback(url, WARNING_UNEXPECTED)

    if not title:
        return _fallback(url, WARNING_NO_TITLE)
    return MetadataResult(title=title, url=url)
