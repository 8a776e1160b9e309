"""HTTP surface of the destination role."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flask import Flask, Request, jsonify, request

from . import wire
from .exceptions import InvalidDataError

if TYPE_CHECKING:
    from collections.abc import Callable

    from flask.typing import ResponseReturnValue

    from .importer import Importer

logger: logging.Logger = logging.getLogger(__name__)

FORBIDDEN_MESSAGE = "Sorry, you are not allowed to do that."


def create_app(importer: Importer, authorize: Callable[[Request], bool]) -> Flask:
    """Create the Flask application serving the sync route.

    Args:
        importer: Importer that processes received batches
        authorize: Returns True if the request comes from a caller with
            administrative capability

    Returns:
        Flask application with ``POST /wp-json/content-sync/v1/sync``
    """
    app = Flask(__name__)

    @app.post(wire.SYNC_PATH)
    def sync_content() -> ResponseReturnValue:
        if not authorize(request):
            logger.warning(f"Rejected unauthorized sync request from {request.remote_addr}")
            return jsonify(wire.error_body("rest_forbidden", FORBIDDEN_MESSAGE, 403)), 403

        body = request.get_data()
        logger.debug(f"Received data: {body.decode('utf-8', errors='replace')}")

        try:
            result = importer.import_batch(body)
        except InvalidDataError as e:
            logger.warning(wire.INVALID_DATA_MESSAGE)
            return jsonify(wire.error_body(e.code, str(e), e.status)), e.status

        return jsonify(result.to_response()), 200

    return app
