"""
Pytest configuration and fixtures.

Provides in-memory stand-ins for the host collaborators (content repository,
media store and content source) and a requests session double whose
responses are chosen per URL.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING
from unittest.mock import Mock

import pytest
import requests

from content_sync.exceptions import TagCreationError
from content_sync.models import AttachmentFields, PostFields, SourceMedia, SourcePost, StoredFile

if TYPE_CHECKING:
    from collections.abc import Sequence

UPLOADS_URL = "https://dest.example/wp-content/uploads"


class InMemoryContentRepository:
    """Content repository keeping everything in dictionaries."""

    def __init__(self) -> None:
        self._next_id: int = 1
        self.posts: dict[int, PostFields] = {}
        self.categories: dict[int, tuple[str, str]] = {}
        self.tags: dict[int, str] = {}
        self.terms: dict[tuple[int, str], list[int]] = {}
        self.meta: list[tuple[int, str, str]] = []
        self.thumbnails: dict[int, int] = {}
        self.failing_tags: set[str] = set()
        self.writes: int = 0

    def _new_id(self) -> int:
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def insert_post(self, fields: PostFields) -> int:
        self.writes += 1
        post_id = self._new_id()
        self.posts[post_id] = fields
        return post_id

    def update_post_content(self, post_id: int, content: str) -> None:
        self.writes += 1
        self.posts[post_id].content = content

    def find_category_by_slug(self, slug: str) -> int | None:
        return next((cid for cid, (_, s) in self.categories.items() if s == slug), None)

    def create_category(self, name: str, slug: str) -> int:
        self.writes += 1
        category_id = self._new_id()
        self.categories[category_id] = (name, slug)
        return category_id

    def find_tag_by_name(self, name: str) -> int | None:
        return next((tid for tid, n in self.tags.items() if n == name), None)

    def create_tag(self, name: str) -> int:
        if name in self.failing_tags:
            msg = f"Could not insert term {name!r}"
            raise TagCreationError(msg)
        self.writes += 1
        tag_id = self._new_id()
        self.tags[tag_id] = name
        return tag_id

    def set_post_terms(self, post_id: int, term_ids: Sequence[int], taxonomy: str) -> None:
        self.writes += 1
        self.terms[(post_id, taxonomy)] = list(term_ids)

    def add_post_meta(self, post_id: int, key: str, value: str) -> None:
        self.writes += 1
        self.meta.append((post_id, key, value))

    def get_post_thumbnail_id(self, post_id: int) -> int | None:
        return self.thumbnails.get(post_id)

    def set_post_thumbnail(self, post_id: int, attachment_id: int) -> None:
        self.writes += 1
        self.thumbnails[post_id] = attachment_id

    def meta_for(self, post_id: int, key: str) -> list[str]:
        return [value for pid, k, value in self.meta if pid == post_id and k == key]


class InMemoryMediaStore:
    """Media store copying files into a temporary uploads directory."""

    def __init__(self, uploads_dir: Path) -> None:
        self.uploads_dir = uploads_dir
        self._next_id: int = 1000
        self.attachments: dict[int, dict[str, object]] = {}
        self.alt_texts: dict[int, str] = {}
        self.stored: list[StoredFile] = []

    def find_by_filename(self, file_name: str) -> int | None:
        return next((aid for aid, a in self.attachments.items() if file_name in str(a["path"])), None)

    def store_file(self, temp_path: Path, file_name: str) -> StoredFile:
        target = self.uploads_dir / file_name
        counter = 1
        while target.exists():
            target = self.uploads_dir / f"{target.stem}-{counter}{target.suffix}"
            counter += 1
        shutil.copyfile(temp_path, target)
        stored = StoredFile(path=str(target), url=f"{UPLOADS_URL}/{target.name}")
        self.stored.append(stored)
        return stored

    def insert_attachment(self, stored: StoredFile, post_id: int, fields: AttachmentFields) -> int:
        attachment_id = self._next_id
        self._next_id += 1
        self.attachments[attachment_id] = {
            "path": stored.path,
            "url": stored.url,
            "parent": post_id,
            "fields": fields,
        }
        return attachment_id

    def discard_file(self, stored: StoredFile) -> None:
        Path(stored.path).unlink(missing_ok=True)
        self.stored.remove(stored)

    def set_alt_text(self, attachment_id: int, alt: str) -> None:
        self.alt_texts[attachment_id] = alt

    def get_attachment_url(self, attachment_id: int) -> str:
        return str(self.attachments[attachment_id]["url"])


class InMemoryContentSource:
    """Content source serving prepared posts and media."""

    def __init__(self) -> None:
        self.posts: dict[int, SourcePost] = {}
        self.media: dict[int, SourceMedia] = {}
        self.attached: dict[int, list[int]] = {}

    def get_content_ids(self, post_types: Sequence[str]) -> list[int]:
        return [pid for pid, post in self.posts.items() if post.post_type in post_types]

    def get_post(self, post_id: int) -> SourcePost | None:
        return self.posts.get(post_id)

    def get_media(self, media_id: int) -> SourceMedia | None:
        return self.media.get(media_id)

    def get_attached_media(self, post_id: int) -> list[SourceMedia]:
        return [self.media[mid] for mid in self.attached.get(post_id, [])]


def make_response(status_code: int = 200, content: bytes = b"file content") -> Mock:
    """Build a streaming response double."""
    response = Mock()
    response.status_code = status_code
    response.iter_content.return_value = [content]
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Client Error")
    return response


class FakeDownloadSession:
    """Session double answering GET requests from a URL -> response table."""

    def __init__(self, responses: dict[str, Mock] | None = None) -> None:
        self.responses: dict[str, Mock] = responses or {}
        self.get = Mock(side_effect=self._get)

    def _get(self, url: str, **_kwargs: object) -> Mock:
        return self.responses.get(url) or make_response()


@pytest.fixture
def repository() -> InMemoryContentRepository:
    return InMemoryContentRepository()


@pytest.fixture
def media_store(tmp_path: Path) -> InMemoryMediaStore:
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    return InMemoryMediaStore(uploads)


@pytest.fixture
def download_session() -> FakeDownloadSession:
    return FakeDownloadSession()


@pytest.fixture
def content_source() -> InMemoryContentSource:
    return InMemoryContentSource()
