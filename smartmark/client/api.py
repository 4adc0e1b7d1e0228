from __future__ import annotations

from dataclasses import dataclass

import httpx

from smartmark.client.records import BookmarkRecord
from smartmark.services.exceptions import ApiError, StoreError
from smartmark.services.web_search import SearchResult


DEFAULT_TIMEOUT = 15.0


@dataclass
class ChangePage:
    events: list[dict]
    cursor: int
    has_more: bool


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"HTTP {response.status_code}"


class ApiClient:
    """Talks to the smartmark API on behalf of one signed-in user."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        self.http = httpx.Client(
            base_url=base_url.rstrip("/") + "/api/v1",
            timeout=timeout,
            transport=transport,
        )
        self.user_id: int | None = None
        self.token = token

    @property
    def token(self) -> str | None:
        return self._token

    @token.setter
    def token(self, value: str | None) -> None:
        self._token = value
        if value:
            self.http.headers["Authorization"] = f"Bearer {value}"
        else:
            self.http.headers.pop("Authorization", None)

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, path: str, error_class=ApiError, **kwargs):
        try:
            response = self.http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise error_class(str(exc) or exc.__class__.__name__) from exc
        if not response.is_success:
            raise error_class(_error_message(response), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise error_class(
                "API returned invalid JSON", status_code=response.status_code
            ) from exc

    def sign_up(self, email: str, password: str) -> int:
        payload = self._request(
            "POST", "/auth/signup", json={"email": email, "password": password}
        )
        return payload["user_id"]

    def sign_in(self, email: str, password: str) -> None:
        payload = self._request(
            "POST", "/auth/token", json={"email": email, "password": password}
        )
        self.token = payload["token"]
        self.user_id = payload["user_id"]

    def sign_out(self) -> None:
        if self.token:
            self._request("POST", "/auth/logout")
        self.token = None
        self.user_id = None

    def list_bookmarks(self) -> tuple[list[BookmarkRecord], int]:
        payload = self._request("GET", "/bookmarks")
        items = [BookmarkRecord.from_dict(item) for item in payload["items"]]
        return items, payload.get("cursor", 0)

    def insert_bookmark(self, title: str, url: str) -> dict:
        return self._request(
            "POST", "/bookmarks", StoreError, json={"title": title, "url": url}
        )

    def update_bookmark(self, bookmark_id: int, title: str, url: str) -> dict:
        return self._request(
            "PUT",
            f"/bookmarks/{bookmark_id}",
            StoreError,
            json={"title": title, "url": url},
        )

    def delete_bookmark(self, bookmark_id: int) -> None:
        self._request("DELETE", f"/bookmarks/{bookmark_id}", StoreError)

    def pull_changes(self, since: int, limit: int | None = None) -> ChangePage:
        params = {"since": since}
        if limit:
            params["limit"] = limit
        payload = self._request("GET", "/changes", params=params)
        return ChangePage(
            events=payload.get("events") or [],
            cursor=payload.get("cursor", since),
            has_more=bool(payload.get("has_more")),
        )

    def fetch_metadata(self, url: str) -> dict:
        return self._request("GET", "/metadata", params={"url": url})

    def search_web(self, query: str) -> list[SearchResult]:
        payload = self._request("GET", "/search", params={"q": query})
        return [
            SearchResult(
                title=row.get("title") or "",
                url=row.get("url") or "",
                description=row.get("description") or "",
            )
            for row in payload.get("results") or []
        ]
