"""
Destination role: ingestion of received batches.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from . import wire
from .attachments import DEFAULT_TIMEOUT, AttachmentSyncer, rewrite_content
from .exceptions import AttachmentError
from .models import ImportReport, PostFields, SyncResult
from .sanitize import sanitize_post_content, sanitize_text_field
from .taxonomy import resolve_categories, resolve_tags

if TYPE_CHECKING:
    import requests

    from .models import TransferRecord
    from .protocols import ContentRepository, MediaStore

logger: logging.Logger = logging.getLogger(__name__)


class Importer:
    """Creates destination posts, taxonomy, meta and media from a batch.

    Usage:
        importer = Importer(repository, media_store)
        result = importer.import_batch(request_body)

    Items are processed strictly one after another. Validation covers the
    whole batch before the first write; after that, failures of single tags
    or attachments are logged and skipped, and the batch still succeeds.
    """

    _repository: ContentRepository
    _attachments: AttachmentSyncer

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
        self._attachments = AttachmentSyncer(
            repository,
            media_store,
            session=session,
            timeout=timeout,
            allow_local_sync=allow_local_sync,
        )

    def import_batch(self, raw: str | bytes | Any) -> SyncResult:  # noqa: ANN401 - decoded JSON
        """Validate a batch and import every record in order.

        Args:
            raw: Request body as JSON text/bytes, or already-decoded JSON

        Returns:
            SyncResult with the confirmation message and one report per record

        Raises:
            InvalidDataError: If any record is malformed; nothing is written
        """
        records = wire.parse_batch(raw)
        logger.info(f"Importing batch of {len(records)} item(s)")

        reports = [self.import_record(record) for record in records]

        logger.info(wire.SUCCESS_MESSAGE)
        return SyncResult(message=wire.SUCCESS_MESSAGE, reports=reports)

    def import_record(self, record: TransferRecord) -> ImportReport:
        """Import a single validated record."""
        content = sanitize_post_content(record.post_content)
        post_id = self._repository.insert_post(
            PostFields(
                post_type=record.post_type,
                title=sanitize_text_field(record.post_title),
                content=content,
                date=record.post_date,
                modified=record.post_modified,
                status=record.post_status,
                excerpt=record.post_excerpt,
            )
        )
        report = ImportReport(post_id=post_id, title=record.post_title)
        context = f"post {post_id} ({record.post_title!r})"
        logger.debug(f"Created {context}")

        report.category_ids = resolve_categories(self._repository, post_id, record.post_categories)
        tags = resolve_tags(self._repository, post_id, record.post_tags)
        report.tag_ids = tags.tag_ids
        report.skipped_tags = tags.skipped

        self._write_meta(post_id, record.post_meta)

        if record.featured_image is not None:
            try:
                report.featured_image_id = self._attachments.sync(record.featured_image, post_id, featured=True)
            except AttachmentError as e:
                logger.warning(f"Skipping featured image {record.featured_image.url} in {context}: {e}")
                report.failed_attachments.append(record.featured_image.url)

        for ref in record.attachments:
            try:
                attachment_id = self._attachments.sync(ref, post_id)
                report.rewritten_urls[ref.url] = self._attachments.attachment_url(attachment_id)
            except AttachmentError as e:
                logger.warning(f"Skipping attachment {ref.url} in {context}: {e}")
                report.failed_attachments.append(ref.url)

        self._repository.update_post_content(post_id, rewrite_content(content, report.rewritten_urls))

        logger.info(
            f"Synced {context}: {len(report.rewritten_urls)} attachment(s) synced, "
            f"{len(report.failed_attachments)} skipped"
        )
        return report

    def _write_meta(self, post_id: int, meta: dict[str, list[str]]) -> None:
        """Append every value of every key; repeated keys become separate entries."""
        for key, values in meta.items():
            clean_key = sanitize_text_field(key)
            for value in values:
                self._repository.add_post_meta(post_id, clean_key, sanitize_text_field(value))
