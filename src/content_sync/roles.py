"""Selection of the role a process runs in."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import ConfigurationError
from .exporter import Exporter
from .importer import Importer

if TYPE_CHECKING:
    import requests

    from .config import SyncSettings
    from .protocols import ContentRepository, ContentSource, MediaStore

logger: logging.Logger = logging.getLogger(__name__)


def create_role(
    settings: SyncSettings,
    *,
    source: ContentSource | None = None,
    repository: ContentRepository | None = None,
    media_store: MediaStore | None = None,
    session: requests.Session | None = None,
) -> Exporter | Importer:
    """Build the single role object for the configured mode.

    Source mode needs a content source; destination mode needs a content
    repository and a media store.

    Raises:
        ConfigurationError: If a collaborator for the configured mode is missing
    """
    if settings.mode == "source":
        if source is None:
            msg = "Source mode requires a content source"
            raise ConfigurationError(msg)
        logger.info(f"Running as source, syncing to {settings.destination_url or '(unset)'}")
        return Exporter(source, settings, session=session)

    if repository is None or media_store is None:
        msg = "Destination mode requires a content repository and a media store"
        raise ConfigurationError(msg)
    logger.info("Running as destination")
    return Importer(repository, media_store, session=session, allow_local_sync=settings.allow_local_sync)
