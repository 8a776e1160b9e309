"""Data models exchanged between the exporter, the wire and the importer.

``TransferRecord`` and ``AttachmentRef`` are the wire schema: they validate
what a destination receives and serialize what a source sends, using the
camelCase field names of the sync protocol. Everything else is a plain value
passed between the sync engine and the host's content repository and media
store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .exceptions import RemoteRejectedError, TransportError

SUCCESS_NOTICE = "Content successfully synced!"
ERROR_NOTICE = "There was an error syncing the content. Please try again."


class AttachmentRef(BaseModel):
    """Reference to a binary asset on the source site."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    url: str
    title: str = ""
    description: str = ""
    caption: str = ""
    alt: str = ""
    # Source-side attachment id; sent for diagnostics, ignored on import
    source_id: int | None = Field(default=None, alias="id")


class TransferRecord(BaseModel):
    """One content item in transit, with its taxonomy, meta and media."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    post_type: str
    post_title: str
    post_content: str
    post_date: str
    post_modified: str
    post_status: str
    post_excerpt: str
    post_categories: list[str]
    post_tags: list[str]
    post_meta: dict[str, list[str]]
    # Required key, nullable value
    featured_image: AttachmentRef | None
    attachments: list[AttachmentRef]

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready representation using protocol field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)


@dataclass
class SourceMedia:
    """A media item as read from the source content repository."""

    id: int
    url: str
    title: str = ""
    description: str = ""
    caption: str = ""
    alt: str = ""

    def to_ref(self) -> AttachmentRef:
        return AttachmentRef(
            url=self.url,
            title=self.title,
            description=self.description,
            caption=self.caption,
            alt=self.alt,
            source_id=self.id,
        )


@dataclass
class SourcePost:
    """A post or page as read from the source content repository.

    ``meta`` keeps every value of every key in order; keys are not unique-valued.
    """

    id: int
    post_type: str
    title: str
    content: str
    date: str = ""
    modified: str = ""
    status: str = "publish"
    excerpt: str = ""
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    meta: dict[str, list[str]] = field(default_factory=dict)
    featured_media_id: int | None = None


@dataclass
class PostFields:
    """Sanitized fields for a post to be inserted on the destination."""

    post_type: str
    title: str
    content: str
    date: str
    modified: str
    status: str
    excerpt: str


@dataclass
class AttachmentFields:
    """Descriptive fields recorded with a newly persisted attachment."""

    title: str
    description: str = ""
    caption: str = ""


@dataclass(frozen=True)
class StoredFile:
    """A file persisted permanently in the destination upload store."""

    path: str
    url: str


@dataclass
class SyncOutcome:
    """Result of one delivery attempt, as shown to the source operator."""

    status: Literal["success", "remote_rejected", "transport_failure"]
    status_code: int | None = None
    body: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def notice(self) -> str:
        """Operator-facing notice text for this outcome."""
        return SUCCESS_NOTICE if self.ok else ERROR_NOTICE

    def raise_for_status(self) -> None:
        """Raise the matching exception unless the delivery succeeded."""
        if self.status == "remote_rejected":
            raise RemoteRejectedError(self.status_code or 0, self.body)
        if self.status == "transport_failure":
            msg = f"Sync request failed: {self.error}"
            raise TransportError(msg)


@dataclass
class ImportReport:
    """What happened to one record during an import."""

    post_id: int
    title: str
    category_ids: list[int] = field(default_factory=list)
    tag_ids: list[int] = field(default_factory=list)
    skipped_tags: list[str] = field(default_factory=list)
    featured_image_id: int | None = None
    # Old source URL -> new destination URL
    rewritten_urls: dict[str, str] = field(default_factory=dict)
    failed_attachments: list[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """Result of importing a whole batch."""

    message: str
    reports: list[ImportReport] = field(default_factory=list)

    def to_response(self) -> dict[str, str]:
        """Response body sent back to the source."""
        return {"message": self.message}
