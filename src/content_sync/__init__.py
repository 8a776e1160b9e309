"""
Content Sync

Moves posts and pages with their categories, tags, meta and media from a
source site to a destination site over an authenticated HTTP API.
"""

from __future__ import annotations

from .cli import main
from .config import SyncSettings, load_settings
from .exceptions import (
    AttachmentError,
    ConfigurationError,
    InvalidDataError,
    RemoteRejectedError,
    SyncError,
    TagCreationError,
    TransportError,
)
from .exporter import Exporter
from .importer import Importer
from .models import AttachmentRef, SyncOutcome, SyncResult, TransferRecord
from .roles import create_role
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "AttachmentError",
    "AttachmentRef",
    "ConfigurationError",
    "Exporter",
    "Importer",
    "InvalidDataError",
    "RemoteRejectedError",
    "SyncError",
    "SyncOutcome",
    "SyncResult",
    "SyncSettings",
    "TagCreationError",
    "TransferRecord",
    "TransportError",
    "create_role",
    "load_settings",
    "main",
    "setup_logging",
]
