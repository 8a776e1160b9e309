"""Tests for the REST API content source."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest
import requests

from content_sync.exceptions import SyncError
from content_sync.wordpress import WordPressRestSource

BASE = "https://src.example/wp-json/wp/v2"


def _json_response(data: Any, status_code: int = 200, total_pages: int = 1) -> Mock:  # noqa: ANN401
    response = Mock()
    response.status_code = status_code
    response.json.return_value = data
    response.headers = {"X-WP-TotalPages": str(total_pages)}
    if status_code >= 400:
        error_response = Mock(status_code=status_code)
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=error_response
        )
    return response


class RoutedSession:
    """Session double answering GET requests by URL and page."""

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.auth: tuple[str, str] | None = None
        self.get = Mock(side_effect=self._get)

    def _get(self, url: str, params: dict[str, Any] | None = None, **_kwargs: object) -> Mock:
        route = self.routes.get(url)
        if route is None:
            return _json_response({"code": "rest_post_invalid_id"}, status_code=404)
        if callable(route) and not isinstance(route, Mock):
            return route(params or {})
        return route


POST_JSON = {
    "id": 1,
    "type": "post",
    "title": {"rendered": "Hello &amp; welcome", "raw": "Hello & welcome"},
    "content": {"rendered": "<p>rendered</p>", "raw": "<!-- wp:paragraph --><p>raw</p>"},
    "excerpt": {"rendered": "<p>Short</p>", "raw": "Short"},
    "date": "2024-01-15T10:30:45",
    "modified": "2024-01-16T10:30:45",
    "status": "publish",
    "categories": [7, 3],
    "tags": [11],
    "meta": {"color": ["red", "blue"], "rating": 5, "empty": None},
    "featured_media": 20,
}


@pytest.mark.unit
class TestWordPressRestSource:
    def _source(self, routes: dict[str, Any], **kwargs: Any) -> tuple[WordPressRestSource, RoutedSession]:  # noqa: ANN401
        session = RoutedSession(routes)
        return WordPressRestSource("https://src.example/", session=session, **kwargs), session  # pyright: ignore[reportArgumentType]

    def test_get_post_with_terms_and_meta(self) -> None:
        source, _ = self._source(
            {
                f"{BASE}/posts/1": _json_response(POST_JSON),
                f"{BASE}/categories": _json_response([{"id": 3, "name": "News"}, {"id": 7, "name": "Sport &amp; Fun"}]),
                f"{BASE}/tags": _json_response([{"id": 11, "name": "intro"}]),
            }
        )

        post = source.get_post(1)

        assert post is not None
        assert post.title == "Hello & welcome"
        assert post.content == "<!-- wp:paragraph --><p>raw</p>"
        assert post.excerpt == "Short"
        assert post.categories == ["Sport & Fun", "News"]
        assert post.tags == ["intro"]
        assert post.meta == {"color": ["red", "blue"], "rating": ["5"], "empty": [""]}
        assert post.featured_media_id == 20

    def test_get_post_falls_back_to_pages(self) -> None:
        page = {"id": 2, "type": "page", "title": {"rendered": "About"}, "content": {"rendered": "<p>A</p>"}}
        source, _ = self._source({f"{BASE}/pages/2": _json_response(page)})

        post = source.get_post(2)

        assert post is not None
        assert post.post_type == "page"
        assert post.content == "<p>A</p>"
        assert post.categories == []
        assert post.featured_media_id is None

    def test_unknown_post_returns_none(self) -> None:
        source, _ = self._source({})

        assert source.get_post(99) is None

    def test_server_error_raises(self) -> None:
        source, _ = self._source({f"{BASE}/posts/1": _json_response({}, status_code=500)})

        with pytest.raises(SyncError, match="Failed to read posts/1"):
            source.get_post(1)

    def test_credentials_switch_to_edit_context(self) -> None:
        source, session = self._source(
            {f"{BASE}/media/20": _json_response({"id": 20, "source_url": "https://src.example/a.png"})},
            username="admin",
            app_password="secret",
        )

        source.get_media(20)

        assert session.auth == ("admin", "secret")
        assert session.get.call_args.kwargs["params"]["context"] == "edit"

    def test_get_media(self) -> None:
        media = {
            "id": 20,
            "source_url": "https://src.example/wp-content/uploads/hero.jpg",
            "title": {"rendered": "Hero"},
            "description": {"rendered": "<p>Big</p>"},
            "caption": {"rendered": "<p>Cap</p>"},
            "alt_text": "Alt",
        }
        source, _ = self._source({f"{BASE}/media/20": _json_response(media)})

        result = source.get_media(20)

        assert result is not None
        assert result.url == "https://src.example/wp-content/uploads/hero.jpg"
        assert result.title == "Hero"
        assert result.alt == "Alt"

    def test_get_attached_media_filters_images_by_parent(self) -> None:
        source, session = self._source(
            {f"{BASE}/media": _json_response([{"id": 21, "source_url": "https://src.example/a.png"}])}
        )

        media = source.get_attached_media(1)

        assert [m.id for m in media] == [21]
        params = session.get.call_args.kwargs["params"]
        assert params["parent"] == 1
        assert params["media_type"] == "image"

    def test_get_content_ids_follows_pagination(self) -> None:
        def posts(params: dict[str, Any]) -> Mock:
            pages = {1: [{"id": 1}, {"id": 2}], 2: [{"id": 3}]}
            return _json_response(pages[params["page"]], total_pages=2)

        source, _ = self._source({f"{BASE}/posts": posts, f"{BASE}/pages": _json_response([{"id": 10}])})

        assert source.get_content_ids(["post", "page"]) == [1, 2, 3, 10]

    def test_get_content_ids_stops_on_out_of_range_page(self) -> None:
        def posts(params: dict[str, Any]) -> Mock:
            if params["page"] == 1:
                return _json_response([{"id": 1}], total_pages=5)
            return _json_response({"code": "rest_post_invalid_page_number"}, status_code=400)

        source, _ = self._source({f"{BASE}/posts": posts})

        assert source.get_content_ids(["post"]) == [1]
