"""
Utility functions for the content sync tool.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from subprocess import CompletedProcess
from typing import Final

PACKAGE_LOGGER: Final[str] = "content_sync"
LOG_FILE: Final[str] = "content-sync.log"

_CONSOLE_HANDLER_NAME: Final[str] = "content-sync-console"
_FILE_HANDLER_NAME: Final[str] = "content-sync-file"


class PassError(Exception):
    """Base class for pass-related errors."""


class InvalidPassPathError(PassError):
    """Raised when the pass path format is invalid."""


class PassphraseRequiredError(PassError):
    """Raised when a GPG passphrase is required for the pass utility."""


def setup_logging(*, verbosity: int = 0) -> None:
    """Configure logging for a sync run.

    The console shows warnings by default, info with one ``-v`` and debug with
    two. The log file always receives everything this package logs, including
    request payloads; other libraries keep the root logger's level. Calling
    this again replaces the handlers installed by the previous call.
    """
    if verbosity >= 2:
        console_level = logging.DEBUG
    elif verbosity == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.set_name(_CONSOLE_HANDLER_NAME)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(LOG_FILE, mode="a")
    file_handler.set_name(_FILE_HANDLER_NAME)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        if handler.get_name() in (_CONSOLE_HANDLER_NAME, _FILE_HANDLER_NAME):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG)


def _validate_pass_path(pass_path: str) -> None:
    """Accept slash-separated entry names made of letters, digits, '_' and '-'."""
    if not re.fullmatch(r"(?:[A-Za-z0-9_-]+)(?:/[A-Za-z0-9_-]+)*", pass_path):
        msg = f"Invalid pass path: {pass_path}"
        raise ValueError(msg)


def _read_with_passphrase(pass_path: str) -> str:
    """Ask for the GPG passphrase on the terminal and read the entry again."""
    try:
        passphrase = input(f"GPG passphrase to unlock '{pass_path}': ")
    except EOFError as e:
        msg = f"Reading '{pass_path}' needs a GPG passphrase, but no terminal is available to ask for it"
        raise PassphraseRequiredError(msg) from e

    env = os.environ.copy() | {"PASSWORD_STORE_GPG_OPTS": "--pinentry-mode=loopback --passphrase-fd 0"}
    try:
        result: CompletedProcess[str] = subprocess.run(  # noqa: S603
            ["pass", pass_path], input=passphrase, capture_output=True, text=True, check=True, env=env
        )
    except subprocess.CalledProcessError as e:
        msg = f"Could not unlock '{pass_path}' with the given passphrase (exit {e.returncode}): {e.stderr.strip()}"
        raise PassphraseRequiredError(msg) from e
    return result.stdout.strip()


def get_pass_value(pass_path: str) -> str:
    """Return the secret stored in the password store at pass_path.

    Raises:
        ValueError: If pass_path is not a valid entry name
        InvalidPassPathError: If there is no such entry
        PassphraseRequiredError: If the entry is locked and cannot be unlocked
        PassError: If pass is missing or fails otherwise
    """
    _validate_pass_path(pass_path)

    try:
        result: CompletedProcess[str] = subprocess.run(  # noqa: S603
            ["pass", pass_path], capture_output=True, text=True, check=True
        )
    except FileNotFoundError as e:
        msg = "Cannot read secrets: the 'pass' command is not installed"
        raise PassError(msg) from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.lower()
        if e.returncode == 1 and "not in the password store" in stderr:
            msg = f"Password store entry '{pass_path}' not found"
            raise InvalidPassPathError(msg) from e
        if e.returncode == 2 and "gpg" in stderr and "public key decryption failed" in stderr:
            # gpg-agent had no cached passphrase
            return _read_with_passphrase(pass_path)
        msg = f"pass failed to read '{pass_path}' (exit {e.returncode}): {e.stderr.strip()}"
        raise PassError(msg) from e

    return result.stdout.strip()
