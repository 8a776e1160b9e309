"""
Settings for the content sync roles.

The host owns option storage; this module only reads the values it hands
over (environment variables, or the pass password store for the
application secret) and validates them.
"""

from __future__ import annotations

import ipaddress
import logging
import os
from typing import TYPE_CHECKING, Final, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import utils
from .exceptions import ConfigurationError
from .wire import sync_endpoint

if TYPE_CHECKING:
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

MODE_ENV_VAR: Final[str] = "CONTENT_SYNC_MODE"
DESTINATION_URL_ENV_VAR: Final[str] = "CONTENT_SYNC_DESTINATION_URL"
USERNAME_ENV_VAR: Final[str] = "CONTENT_SYNC_USERNAME"
APP_PASSWORD_ENV_VAR: Final[str] = "CONTENT_SYNC_APP_PASSWORD"  # noqa: S105
ALLOW_LOCAL_SYNC_ENV_VAR: Final[str] = "CONTENT_SYNC_ALLOW_LOCAL_SYNC"
DEFAULT_APP_PASSWORD_PASS_PATH: Final[str] = "content-sync/app_password"  # noqa: S105

# Hostname suffixes the allow-local-sync flag treats as non-external
LOCAL_HOST_SUFFIXES: Final[tuple[str, ...]] = (".local", ".test")

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


class SyncSettings(BaseModel):
    """Configuration consumed by the exporter and importer."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: Literal["source", "destination"] = "source"
    destination_url: str = ""
    username: str = ""
    app_secret: str = Field(default="", repr=False)
    allow_local_sync: bool = False

    @field_validator("destination_url")
    @classmethod
    def _destination_must_be_http(cls, v: str) -> str:
        url = v.strip().rstrip("/")
        if url and urlparse(url).scheme not in ("http", "https"):
            raise ValueError("must be an http(s) URL")
        return url

    @property
    def sync_endpoint(self) -> str:
        return sync_endpoint(self.destination_url)

    def require_destination(self) -> None:
        """Ensure everything needed to deliver a batch is configured.

        Raises:
            ConfigurationError: If the destination URL or credentials are missing
        """
        missing = [
            name
            for name, value in (
                ("destination URL", self.destination_url),
                ("username", self.username),
                ("application password", self.app_secret),
            )
            if not value
        ]
        if missing:
            msg = f"Missing sync settings: {', '.join(missing)}"
            raise ConfigurationError(msg)


def get_app_secret(pass_path: str | None = None, environ: Mapping[str, str] | None = None) -> str | None:
    """Get the application password from pass path, env var, or default pass location."""
    # Try pass path first
    if pass_path:
        return utils.get_pass_value(pass_path)

    env = os.environ if environ is None else environ
    secret = env.get(APP_PASSWORD_ENV_VAR)
    if secret:
        return secret

    try:
        return utils.get_pass_value(DEFAULT_APP_PASSWORD_PASS_PATH)
    except (ValueError, utils.PassError):
        logger.warning("No application password specified nor found")
        return None


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    app_password_pass_path: str | None = None,
) -> SyncSettings:
    """Build settings from environment variables.

    Raises:
        ConfigurationError: If a value is invalid
    """
    env = os.environ if environ is None else environ
    mode = env.get(MODE_ENV_VAR, "source").strip().lower()

    app_secret = ""
    if mode == "source":
        app_secret = get_app_secret(app_password_pass_path, env) or ""

    try:
        return SyncSettings(
            mode=mode,  # pyright: ignore[reportArgumentType]
            destination_url=env.get(DESTINATION_URL_ENV_VAR, ""),
            username=env.get(USERNAME_ENV_VAR, ""),
            app_secret=app_secret,
            allow_local_sync=env.get(ALLOW_LOCAL_SYNC_ENV_VAR, "").strip().lower() in _TRUTHY,
        )
    except ValidationError as e:
        msg = f"Invalid sync settings: {e}"
        raise ConfigurationError(msg) from e


def is_external_host(host: str, *, allow_local_sync: bool = False) -> bool:
    """Decide whether a host may be the target of an outbound request.

    Loopback, private and link-local addresses, ``localhost`` and the
    ``.local``/``.test`` suffixes are internal. With allow_local_sync the
    ``.local``/``.test`` hosts count as external.
    """
    host = host.strip().lower().rstrip(".")
    if not host:
        return False
    if host.endswith(LOCAL_HOST_SUFFIXES):
        return allow_local_sync
    if host == "localhost" or host.endswith(".localhost"):
        return False
    try:
        address = ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return True
    return not (address.is_loopback or address.is_private or address.is_link_local or address.is_unspecified)


def is_safe_download_url(url: str, *, allow_local_sync: bool = False) -> bool:
    """Return True if url is an http(s) URL on an external host."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return is_external_host(parsed.hostname, allow_local_sync=allow_local_sync)
