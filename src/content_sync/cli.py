"""
Command-line interface for the content sync tool (source role).
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import TYPE_CHECKING, Final

from . import utils
from .config import load_settings
from .exceptions import ConfigurationError
from .exporter import Exporter
from .roles import create_role
from .utils import setup_logging
from .wordpress import WordPressRestSource

if TYPE_CHECKING:
    from collections.abc import Sequence

logger: logging.Logger = logging.getLogger(__name__)

SOURCE_APP_PASSWORD_ENV_VAR: Final[str] = "CONTENT_SYNC_SOURCE_APP_PASSWORD"  # noqa: S105


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Sync posts and pages with their taxonomy, meta and media to a destination site"
    )

    # Positional arguments
    _ = parser.add_argument("source_url", help="Base URL of the source site")
    _ = parser.add_argument("ids", nargs="*", type=int, help="Ids of the posts/pages to sync")

    # Optional arguments
    _ = parser.add_argument("--all", action="store_true", help="Sync all posts and pages")
    _ = parser.add_argument("--source-username", help="Username for reading unpublished content from the source")
    _ = parser.add_argument(
        "--source-pass-path",
        help=f"Path for the source application password in pass utility (default: ${SOURCE_APP_PASSWORD_ENV_VAR})",
    )
    _ = parser.add_argument(
        "--app-password-pass-path",
        help="Path for the destination application password in pass utility "
        "(default: $CONTENT_SYNC_APP_PASSWORD or content-sync/app_password)",
    )
    _ = parser.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase console verbosity (-v info, -vv debug)"
    )

    args = parser.parse_args(argv)
    if args.all and args.ids:
        parser.error("Give either content ids or --all, not both")
    if not args.all and not args.ids:
        parser.error("Give content ids to sync, or --all")
    return args


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbosity: int = getattr(args, "verbose", 0)
    setup_logging(verbosity=verbosity)

    try:
        settings = load_settings(app_password_pass_path=args.app_password_pass_path)
        if settings.mode != "source":
            msg = f"The command line tool runs the source role, but mode is '{settings.mode}'"
            raise ConfigurationError(msg)

        source_password: str | None = None
        if args.source_username:
            if args.source_pass_path:
                source_password = utils.get_pass_value(args.source_pass_path)
            else:
                source_password = os.environ.get(SOURCE_APP_PASSWORD_ENV_VAR)

        source = WordPressRestSource(
            args.source_url, username=args.source_username, app_password=source_password
        )
        exporter = create_role(settings, source=source)
        if not isinstance(exporter, Exporter):
            msg = "Settings did not produce a source role"
            raise ConfigurationError(msg)

        selection: list[int] | None = None if args.all else args.ids
        outcome = exporter.sync(selection)

    except Exception:
        logger.exception("Sync failed")
        sys.exit(1)

    print(outcome.notice)
    sys.exit(0 if outcome.ok else 1)
