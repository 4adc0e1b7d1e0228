from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Protocol
from urllib.parse import quote_plus

import httpx

from smartmark.services.exceptions import UpstreamFetchError, UpstreamTimeoutError
from smartmark.services.metadata import DEFAULT_HEADERS


logger = logging.getLogger(__name__)

DUCKDUCKGO_API_URL = "https://api.duckduckgo.com/"
MAX_RESULTS = 10


@dataclass(frozen=True)
class SearchResult:
    title: str
    url: str
    description: str = ""

    def as_dict(self):
        return asdict(self)


class SearchProvider(Protocol):
    name: str

    def search(self, query: str, max_results: int) -> list[SearchResult]:
        ...


def _get_json(
    url: str,
    params: dict,
    timeout: float,
    transport: httpx.BaseTransport | None = None,
):
    try:
        with httpx.Client(
            timeout=timeout, headers=DEFAULT_HEADERS, transport=transport
        ) as client:
            response = client.get(url, params=params)
    except httpx.TimeoutException as exc:
        raise UpstreamTimeoutError(f"Timed out calling {url}") from exc
    except httpx.HTTPError as exc:
        raise UpstreamFetchError(str(exc) or exc.__class__.__name__) from exc

    if not response.is_success:
        raise UpstreamFetchError(
            f"HTTP {response.status_code}", status_code=response.status_code
        )
    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamFetchError("Provider returned invalid JSON") from exc


class SearxngProvider:
    name = "searxng"

    def __init__(self, base_url: str, timeout: float, transport=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def search(self, query: str, max_results: int) -> list[SearchResult]:
        data = _get_json(
            f"{self.base_url}/search",
            {"q": query, "format": "json"},
            self.timeout,
            self.transport,
        )
        results = []
        for row in data.get("results") or []:
            url = (row.get("url") or "").strip()
            if not url:
                continue
            results.append(
                SearchResult(
                    title=(row.get("title") or "").strip() or url,
                    url=url,
                    description=(row.get("content") or "").strip(),
                )
            )
            if len(results) >= max_results:
                break
        return results


def _flatten_topics(topics) -> list[dict]:
    flat = []
    for topic in topics or []:
        if not isinstance(topic, dict):
            continue
        if "Topics" in topic:
            flat.extend(_flatten_topics(topic["Topics"]))
        else:
            flat.append(topic)
    return flat


class DuckDuckGoProvider:
    """DuckDuckGo Instant Answer API. Free, no key."""

    name = "duckduckgo"

    def __init__(self, timeout: float, transport=None):
        self.timeout = timeout
        self.transport = transport

    def search(self, query: str, max_results: int) -> list[SearchResult]:
        data = _get_json(
            DUCKDUCKGO_API_URL,
            {"q": query, "format": "json", "no_html": 1, "skip_disambig": 1},
            self.timeout,
            self.transport,
        )
        results = []
        if data.get("AbstractURL") and data.get("AbstractText"):
            results.append(
                SearchResult(
                    title=data.get("Heading") or query,
                    url=data["AbstractURL"],
                    description=data["AbstractText"],
                )
            )
        for topic in _flatten_topics(data.get("RelatedTopics")):
            text = topic.get("Text") or ""
            url = topic.get("FirstURL") or ""
            if not text or not url:
                continue
            results.append(
                SearchResult(
                    title=text.split(" - ")[0] or text[:100],
                    url=url,
                    description=text,
                )
            )
        return results[:max_results]


def placeholder_results(query: str) -> list[SearchResult]:
    encoded = quote_plus(query)
    return [
        SearchResult(
            title=f'Search Google for "{query}"',
            url=f"https://www.google.com/search?q={encoded}",
            description="Open Google search in new tab",
        ),
        SearchResult(
            title=f'Search DuckDuckGo for "{query}"',
            url=f"https://duckduckgo.com/?q={encoded}",
            description="Open DuckDuckGo search in new tab",
        ),
    ]


def configured_providers(config) -> list[SearchProvider]:
    timeout = config.get("SEARCH_TIMEOUT", 8.0)
    providers: list[SearchProvider] = []
    if config.get("SEARXNG_URL"):
        providers.append(SearxngProvider(config["SEARXNG_URL"], timeout))
    if config.get("DUCKDUCKGO_ENABLED"):
        providers.append(DuckDuckGoProvider(timeout))
    return providers


def search_web(
    query: str,
    providers: list[SearchProvider],
    max_results: int = MAX_RESULTS,
) -> list[SearchResult]:
    """
    Ask each provider in order and return the first non-empty answer.

    Falls back to placeholder links when nothing is configured or nothing
    matched. Raises UpstreamFetchError only when every provider failed.
    """
    max_results = min(max_results, MAX_RESULTS)
    failures = 0
    for provider in providers:
        try:
            results = provider.search(query, max_results)
        except (UpstreamFetchError, UpstreamTimeoutError) as exc:
            failures += 1
            logger.warning("Search provider %s failed: %s", provider.name, exc)
            continue
        if results:
            return results[:max_results]

    if providers and failures == len(providers):
        raise UpstreamFetchError("search failed")
    return placeholder_results(query)[:max_results]
