"""Read access to a source site through the WordPress REST API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final

import requests
from bs4 import BeautifulSoup
from requests.exceptions import HTTPError

from .exceptions import SyncError
from .models import SourceMedia, SourcePost

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger: logging.Logger = logging.getLogger(__name__)

API_PREFIX: Final[str] = "/wp-json/wp/v2"
DEFAULT_TIMEOUT: Final[float] = 25.0
PER_PAGE: Final[int] = 100

# REST collection for each post type exported by default
_REST_BASES: Final[dict[str, str]] = {"post": "posts", "page": "pages"}


def _rendered(value: Any) -> str:  # noqa: ANN401 - REST field
    """Return the raw value of a REST field, falling back to the rendered one."""
    if isinstance(value, dict):
        return str(value.get("raw", value.get("rendered", "")))
    return "" if value is None else str(value)


def _meta_values(meta: Any) -> dict[str, list[str]]:  # noqa: ANN401 - REST field
    """Normalize REST meta (single or multi-valued) to key -> list of strings."""
    if not isinstance(meta, dict):
        return {}
    values: dict[str, list[str]] = {}
    for key, value in meta.items():
        items = value if isinstance(value, list) else [value]
        values[key] = ["" if item is None else str(item) for item in items]
    return values


class WordPressRestSource:
    """ContentSource backed by a live site's REST API.

    With credentials, content is read in the ``edit`` context so unrendered
    markup and non-public statuses are exported as stored.
    """

    _base_url: str
    _session: requests.Session
    _timeout: float
    _context: str

    def __init__(
        self,
        base_url: str,
        *,
        username: str | None = None,
        app_password: str | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._context = "view"
        if username and app_password:
            self._session.auth = (username, app_password)
            self._context = "edit"

    def _url(self, endpoint: str) -> str:
        return f"{self._base_url}{API_PREFIX}/{endpoint.lstrip('/')}"

    def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> requests.Response:
        response = self._session.get(self._url(endpoint), params=params or {}, timeout=self._timeout)
        response.raise_for_status()
        return response

    def _get_or_none(self, endpoint: str) -> dict[str, Any] | None:
        try:
            return self._get(endpoint, {"context": self._context}).json()
        except HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            msg = f"Failed to read {endpoint} from {self._base_url}: {e}"
            raise SyncError(msg) from e
        except requests.RequestException as e:
            msg = f"Failed to read {endpoint} from {self._base_url}: {e}"
            raise SyncError(msg) from e

    def _paged(self, endpoint: str, params: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Yield items across REST pagination."""
        page = 1
        while True:
            try:
                response = self._get(endpoint, {**params, "per_page": PER_PAGE, "page": page})
            except HTTPError as e:
                # WordPress answers 400 when asked for a page past the end
                if e.response is not None and e.response.status_code == 400 and page > 1:
                    return
                msg = f"Failed to list {endpoint} from {self._base_url}: {e}"
                raise SyncError(msg) from e
            except requests.RequestException as e:
                msg = f"Failed to list {endpoint} from {self._base_url}: {e}"
                raise SyncError(msg) from e

            items = response.json()
            if not items:
                return
            yield from items

            total_pages = int(response.headers.get("X-WP-TotalPages", page))
            if page >= total_pages:
                return
            page += 1

    def get_content_ids(self, post_types: Sequence[str]) -> list[int]:
        params: dict[str, Any] = {"_fields": "id"}
        if self._context == "edit":
            params["status"] = "any"

        ids: list[int] = []
        for post_type in post_types:
            rest_base = _REST_BASES.get(post_type, post_type)
            ids.extend(int(item["id"]) for item in self._paged(rest_base, params))
        return ids

    def _term_names(self, taxonomy_base: str, term_ids: list[int]) -> list[str]:
        if not term_ids:
            return []
        terms = self._paged(taxonomy_base, {"include": ",".join(str(i) for i in term_ids), "_fields": "id,name"})
        names_by_id = {int(term["id"]): BeautifulSoup(term["name"], "html.parser").get_text() for term in terms}
        return [names_by_id[term_id] for term_id in term_ids if term_id in names_by_id]

    def get_post(self, post_id: int) -> SourcePost | None:
        for post_type, rest_base in _REST_BASES.items():
            data = self._get_or_none(f"{rest_base}/{post_id}")
            if data is None:
                continue
            return SourcePost(
                id=int(data["id"]),
                post_type=data.get("type", post_type),
                title=_rendered(data.get("title")),
                content=_rendered(data.get("content")),
                date=data.get("date") or "",
                modified=data.get("modified") or "",
                status=data.get("status") or "publish",
                excerpt=_rendered(data.get("excerpt")),
                categories=self._term_names("categories", list(data.get("categories") or [])),
                tags=self._term_names("tags", list(data.get("tags") or [])),
                meta=_meta_values(data.get("meta")),
                featured_media_id=data.get("featured_media") or None,
            )
        logger.debug(f"Content {post_id} not found at {self._base_url}")
        return None

    @staticmethod
    def _media_from_json(data: dict[str, Any]) -> SourceMedia:
        return SourceMedia(
            id=int(data["id"]),
            url=data.get("source_url") or "",
            title=_rendered(data.get("title")),
            description=_rendered(data.get("description")),
            caption=_rendered(data.get("caption")),
            alt=data.get("alt_text") or "",
        )

    def get_media(self, media_id: int) -> SourceMedia | None:
        data = self._get_or_none(f"media/{media_id}")
        return None if data is None else self._media_from_json(data)

    def get_attached_media(self, post_id: int) -> list[SourceMedia]:
        items = self._paged("media", {"parent": post_id, "media_type": "image", "context": self._context})
        return [self._media_from_json(item) for item in items]
