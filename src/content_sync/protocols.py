"""Protocols defining the contracts for the host CMS collaborators.

The sync engine never talks to a CMS directly. The host hands it three
collaborators:

1. ContentSource: read access to the source site's posts, taxonomy, meta
   and media (used by the Exporter)
2. ContentRepository: write access to the destination's posts, taxonomy
   and meta (used by the Importer)
3. MediaStore: the destination's upload store and attachment records
   (used by the attachment sync)

This separation allows:
- Running the exporter against a live site over its REST API, or against
  an in-process repository
- Testing the ingestion engine with in-memory implementations
- Keeping CMS-specific storage details out of the sync protocol
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .models import AttachmentFields, PostFields, SourceMedia, SourcePost, StoredFile

Taxonomy = Literal["category", "post_tag"]


class ContentSource(Protocol):
    """Protocol for reading content on the source site.

    Every call reads live data; implementations must not cache between
    export runs.
    """

    def get_content_ids(self, post_types: Sequence[str]) -> list[int]:
        """Return the ids of all items of the given post types."""
        ...

    def get_post(self, post_id: int) -> SourcePost | None:
        """Return a post with its meta and category/tag names, or None if unknown."""
        ...

    def get_media(self, media_id: int) -> SourceMedia | None:
        """Return a single media item, or None if it does not exist."""
        ...

    def get_attached_media(self, post_id: int) -> list[SourceMedia]:
        """Return the image media attached to a post."""
        ...


class ContentRepository(Protocol):
    """Protocol for writing content on the destination site.

    The Importer calls methods in this order for each record:
    1. insert_post() - Create the post with sanitized fields
    2. find_category_by_slug() / create_category() - Resolve categories
    3. find_tag_by_name() / create_tag() - Resolve tags
    4. set_post_terms() - Assign resolved terms
    5. add_post_meta() - Append meta entries
    6. get_post_thumbnail_id() / set_post_thumbnail() - Featured image
    7. update_post_content() - Persist the rewritten content
    """

    def insert_post(self, fields: PostFields) -> int:
        """Insert a new post and return its id."""
        ...

    def update_post_content(self, post_id: int, content: str) -> None:
        """Replace the content of an existing post."""
        ...

    def find_category_by_slug(self, slug: str) -> int | None:
        """Return the id of the category with this slug, if any."""
        ...

    def create_category(self, name: str, slug: str) -> int:
        """Create a category and return its id."""
        ...

    def find_tag_by_name(self, name: str) -> int | None:
        """Return the id of the tag with exactly this name, if any."""
        ...

    def create_tag(self, name: str) -> int:
        """Create a tag and return its id.

        Raises:
            TagCreationError: If the tag cannot be created
        """
        ...

    def set_post_terms(self, post_id: int, term_ids: Sequence[int], taxonomy: Taxonomy) -> None:
        """Assign terms of one taxonomy to a post, replacing earlier ones."""
        ...

    def add_post_meta(self, post_id: int, key: str, value: str) -> None:
        """Append a meta entry. Existing entries with the same key are kept."""
        ...

    def get_post_thumbnail_id(self, post_id: int) -> int | None:
        """Return the attachment id of the post thumbnail, if any."""
        ...

    def set_post_thumbnail(self, post_id: int, attachment_id: int) -> None:
        """Make an attachment the post thumbnail."""
        ...


class MediaStore(Protocol):
    """Protocol for the destination upload store and attachment records."""

    def find_by_filename(self, file_name: str) -> int | None:
        """Return the id of an attachment whose stored file path contains file_name."""
        ...

    def store_file(self, temp_path: Path, file_name: str) -> StoredFile:
        """Copy a downloaded temporary file permanently into the upload store.

        The caller owns temp_path and removes it afterwards.

        Raises:
            OSError: If the file cannot be persisted
        """
        ...

    def insert_attachment(self, stored: StoredFile, post_id: int, fields: AttachmentFields) -> int:
        """Record a persisted file as an attachment of post_id and return its id.

        Raises:
            OSError: If the attachment record cannot be written
        """
        ...

    def discard_file(self, stored: StoredFile) -> None:
        """Remove a persisted file that never became an attachment."""
        ...

    def set_alt_text(self, attachment_id: int, alt: str) -> None:
        """Store the alternative text of an image attachment.

        Raises:
            OSError: If the alt text cannot be written
        """
        ...

    def get_attachment_url(self, attachment_id: int) -> str:
        """Return the public URL of an attachment."""
        ...
