"""Wire contract of the sync endpoint: route, batch parsing and serialization."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Final

from pydantic import TypeAdapter, ValidationError

from .exceptions import InvalidDataError
from .models import TransferRecord

if TYPE_CHECKING:
    from collections.abc import Iterable

logger: logging.Logger = logging.getLogger(__name__)

REST_PREFIX: Final[str] = "/wp-json"
SYNC_NAMESPACE: Final[str] = "content-sync/v1"
SYNC_ROUTE: Final[str] = "/sync"
SYNC_PATH: Final[str] = f"{REST_PREFIX}/{SYNC_NAMESPACE}{SYNC_ROUTE}"

SUCCESS_MESSAGE: Final[str] = "Content synced successfully"
INVALID_DATA_MESSAGE: Final[str] = "Invalid data structure."

_batch_adapter: TypeAdapter[list[TransferRecord]] = TypeAdapter(list[TransferRecord])


def sync_endpoint(destination_url: str) -> str:
    """Return the full sync URL for a destination site base URL."""
    return destination_url.rstrip("/") + SYNC_PATH


def parse_batch(raw: str | bytes | bytearray | Any) -> list[TransferRecord]:  # noqa: ANN401 - decoded JSON
    """Parse and validate a whole batch before anything is written.

    Args:
        raw: Request body as JSON text/bytes, or already-decoded JSON

    Returns:
        The validated records, in batch order

    Raises:
        InvalidDataError: If the body is not a JSON array or any item is malformed
    """
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Rejected batch: body is not valid JSON ({e})")
            raise InvalidDataError(INVALID_DATA_MESSAGE) from e
    else:
        data = raw

    if not isinstance(data, list):
        logger.warning(f"Rejected batch: expected a JSON array, got {type(data).__name__}")
        raise InvalidDataError(INVALID_DATA_MESSAGE)

    try:
        return _batch_adapter.validate_python(data)
    except ValidationError as e:
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            logger.warning(f"Rejected batch: {location}: {error['msg']}")
        raise InvalidDataError(INVALID_DATA_MESSAGE) from e


def serialize_batch(records: Iterable[TransferRecord]) -> str:
    """Serialize records as the JSON array sent to the destination."""
    return json.dumps([record.to_wire() for record in records])


def error_body(code: str, message: str, status: int) -> dict[str, Any]:
    """Build an error response body in the REST error format."""
    return {"code": code, "message": message, "data": {"status": status}}
