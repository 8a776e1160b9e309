"""Attachment sync on the destination: filename dedup, download and URL rewriting."""

from __future__ import annotations

import logging
import posixpath
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Final
from urllib.parse import unquote, urlparse

import requests

from .config import is_safe_download_url
from .exceptions import AttachmentError
from .models import AttachmentFields

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .models import AttachmentRef, StoredFile
    from .protocols import ContentRepository, MediaStore

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final[float] = 30.0
_CHUNK_SIZE: Final[int] = 64 * 1024


def attachment_file_name(url: str) -> str:
    """Return the file name an attachment is identified by on the destination.

    This is the basename of the URL path, so two source files with the same
    name in different directories map to the same destination asset.
    """
    return posixpath.basename(unquote(urlparse(url).path))


def rewrite_content(content: str, url_map: Mapping[str, str]) -> str:
    """Replace every occurrence of each old URL with its new URL.

    This is a plain substring replace over the whole content, not an HTML
    aware rewrite.
    """
    for old_url, new_url in url_map.items():
        content = content.replace(old_url, new_url)
    return content


class AttachmentSyncer:
    """Ensures a source attachment exists in the destination media store."""

    _repository: ContentRepository
    _media_store: MediaStore
    _session: requests.Session
    _timeout: float
    _allow_local_sync: bool

    def __init__(
        self,
        repository: ContentRepository,
        media_store: MediaStore,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        allow_local_sync: bool = False,
    ) -> None:
        self._repository = repository
        self._media_store = media_store
        self._session = session or requests.Session()
        self._timeout = timeout
        self._allow_local_sync = allow_local_sync

    def sync(self, ref: AttachmentRef, post_id: int, *, featured: bool = False) -> int:
        """Return the destination attachment id for ref, creating it if needed.

        An attachment whose file name is already in the media store is reused
        without downloading anything. In featured mode the attachment also
        becomes the post thumbnail.

        Args:
            ref: Attachment reference from the received record
            post_id: Destination post the attachment belongs to
            featured: Whether this is the post's featured image

        Returns:
            The destination attachment id

        Raises:
            AttachmentError: If the file cannot be downloaded or persisted
        """
        file_name = attachment_file_name(ref.url)
        if not file_name:
            msg = f"Attachment URL has no file name: {ref.url}"
            raise AttachmentError(msg)

        existing_id = self._media_store.find_by_filename(file_name)
        if existing_id is not None:
            logger.debug(f"Reusing existing attachment {file_name}: {existing_id}")
            if featured:
                self._set_thumbnail(post_id, existing_id)
            return existing_id

        stored = self._download_and_store(ref.url, file_name)

        if featured:
            fields = AttachmentFields(title=ref.title)
        else:
            fields = AttachmentFields(title=ref.title, description=ref.description, caption=ref.caption)

        try:
            attachment_id = self._media_store.insert_attachment(stored, post_id, fields)
        except OSError as e:
            self._media_store.discard_file(stored)
            msg = f"Failed to record attachment {file_name}: {e}"
            raise AttachmentError(msg) from e

        if ref.alt:
            try:
                self._media_store.set_alt_text(attachment_id, ref.alt)
            except OSError as e:
                msg = f"Failed to set alt text of attachment {attachment_id}: {e}"
                raise AttachmentError(msg) from e

        logger.debug(f"Stored {file_name} as attachment {attachment_id}: {stored.url}")

        if featured:
            self._set_thumbnail(post_id, attachment_id)
        return attachment_id

    def attachment_url(self, attachment_id: int) -> str:
        return self._media_store.get_attachment_url(attachment_id)

    def _set_thumbnail(self, post_id: int, attachment_id: int) -> None:
        if self._repository.get_post_thumbnail_id(post_id) != attachment_id:
            self._repository.set_post_thumbnail(post_id, attachment_id)
            logger.debug(f"Set attachment {attachment_id} as thumbnail of post {post_id}")

    def _download_and_store(self, url: str, file_name: str) -> StoredFile:
        """Download url to a temporary file and copy it into the upload store.

        The temporary file is removed whether or not the copy succeeds.
        """
        if not is_safe_download_url(url, allow_local_sync=self._allow_local_sync):
            msg = f"Refusing to download attachment from non-external URL: {url}"
            raise AttachmentError(msg)

        temp_path = None
        try:
            # Use only the file extension for the suffix to avoid filesystem issues
            suffix = Path(file_name).suffix
            with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as temp_file:
                temp_path = temp_file.name
                response = self._session.get(url, stream=True, timeout=self._timeout)
                try:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                        if chunk:
                            temp_file.write(chunk)
                finally:
                    response.close()

            logger.debug(f"Downloaded {url} to {temp_path}")
            return self._media_store.store_file(Path(temp_path), file_name)

        except requests.RequestException as e:
            msg = f"Failed to download attachment {url}: {e}"
            raise AttachmentError(msg) from e
        except OSError as e:
            msg = f"Failed to store attachment {file_name}: {e}"
            raise AttachmentError(msg) from e
        finally:
            if temp_path:
                temp_file_path = Path(temp_path)
                if temp_file_path.exists():
                    temp_file_path.unlink()
