"""
Custom exception classes for the content sync tool.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base exception for content sync errors."""


class ConfigurationError(SyncError):
    """Raised when the settings do not allow the selected role to run."""


class InvalidDataError(SyncError):
    """Raised when a received batch fails structural validation.

    Nothing is written when this is raised.
    """

    code: str = "invalid_data"
    status: int = 400


class TransportError(SyncError):
    """Raised when the destination cannot be reached at all."""


class RemoteRejectedError(SyncError):
    """Raised when the destination answers with a non-success status."""

    status_code: int
    body: str

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Destination rejected sync request with status {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class AttachmentError(SyncError):
    """Raised when a single attachment cannot be downloaded or persisted."""


class TagCreationError(SyncError):
    """Raised by a content repository when a tag cannot be created."""
