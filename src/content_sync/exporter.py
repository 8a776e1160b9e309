"""
Source role: collection of selected content and delivery to the destination.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

import requests
from requests.auth import HTTPBasicAuth

from . import wire
from .models import SyncOutcome, TransferRecord

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .config import SyncSettings
    from .models import SourcePost
    from .protocols import ContentSource

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final[float] = 30.0
# Post types exported when no explicit selection is given
DEFAULT_POST_TYPES: Final[tuple[str, ...]] = ("post", "page")


class Exporter:
    """Serializes selected content and delivers it to the destination.

    Usage:
        exporter = Exporter(source, settings)
        outcome = exporter.sync([12, 15])
        print(outcome.notice)
    """

    _source: ContentSource
    _settings: SyncSettings
    _session: requests.Session
    _timeout: float

    def __init__(
        self,
        source: ContentSource,
        settings: SyncSettings,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._source = source
        self._settings = settings
        self._session = session or requests.Session()
        self._timeout = timeout

    def collect(self, selection: Sequence[int] | None = None) -> list[TransferRecord]:
        """Build transfer records for the selected content.

        Args:
            selection: Content ids to export, or None for all posts and pages

        Returns:
            One TransferRecord per item found, in selection order
        """
        if selection is None:
            selection = self._source.get_content_ids(DEFAULT_POST_TYPES)

        records: list[TransferRecord] = []
        for post_id in selection:
            post = self._source.get_post(post_id)
            if post is None:
                logger.warning(f"Skipping content {post_id}: not found on source")
                continue
            records.append(self._build_record(post))

        logger.info(f"Collected {len(records)} item(s) for sync")
        return records

    def _build_record(self, post: SourcePost) -> TransferRecord:
        featured_image = None
        if post.featured_media_id:
            media = self._source.get_media(post.featured_media_id)
            if media is None:
                logger.warning(f"Featured media {post.featured_media_id} of post {post.id} not found")
            else:
                featured_image = media.to_ref()

        return TransferRecord(
            post_type=post.post_type,
            post_title=post.title,
            post_content=post.content,
            post_date=post.date,
            post_modified=post.modified,
            post_status=post.status,
            post_excerpt=post.excerpt,
            post_categories=list(post.categories),
            post_tags=list(post.tags),
            post_meta={key: list(values) for key, values in post.meta.items()},
            featured_image=featured_image,
            attachments=[media.to_ref() for media in self._source.get_attached_media(post.id)],
        )

    def deliver(self, records: Sequence[TransferRecord]) -> SyncOutcome:
        """POST the batch to the destination sync endpoint, once.

        Returns:
            SyncOutcome: success on HTTP 200, remote_rejected on any other
            status, transport_failure when no response was received
        """
        self._settings.require_destination()
        endpoint = self._settings.sync_endpoint
        payload = wire.serialize_batch(records)

        logger.debug(f"Syncing selected content: {payload}")

        try:
            response = self._session.post(
                endpoint,
                data=payload.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                auth=HTTPBasicAuth(self._settings.username, self._settings.app_secret),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Sync request failed: {e}")  # noqa: TRY400
            return SyncOutcome(status="transport_failure", error=str(e))

        logger.info(f"Sync request response code: {response.status_code}")
        logger.debug(f"Sync request response body: {response.text}")

        if response.status_code == 200:
            return SyncOutcome(status="success", status_code=200, body=response.text)

        logger.error(f"Sync request failed with response code: {response.status_code}")
        return SyncOutcome(status="remote_rejected", status_code=response.status_code, body=response.text)

    def sync(self, selection: Sequence[int] | None = None) -> SyncOutcome:
        """Collect the selected content and deliver it."""
        return self.deliver(self.collect(selection))
