"""Scratch token file and refresher log for one htshell session."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from htshell.config import (
    DEFAULT_LOG_PREFIX,
    close_logger,
    create_refresher_logger,
)
from htshell.errors import SessionError


class TokenStore:
    """Token file path and its companion log file.

    The token file itself is written only by the fetch tool; htshell just
    owns its lifetime.
    """

    def __init__(self, path: Path, log_path: Path,
                 logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self.log_path = Path(log_path)
        self.logger = logger

    def remove(self) -> None:
        """Close the log and delete both files."""
        if self.logger is not None:
            close_logger(self.logger)
            self.logger = None
        for path in (self.log_path, self.path):
            try:
                path.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logging.warning(f"Unable to remove {path}: {e}")


def create_token_store(uid: int, prefix: str = DEFAULT_LOG_PREFIX,
                       directory: str = None) -> TokenStore:
    """Create a unique token file for uid and its log file."""
    try:
        fd, name = tempfile.mkstemp(prefix=f"bt_u{uid}_", dir=directory)
    except OSError as e:
        raise SessionError(f"unable to create token file: {e}") from e
    os.close(fd)

    store = TokenStore(Path(name), Path(f"{name}.log"))
    try:
        store.logger = create_refresher_logger(store.log_path, prefix)
    except OSError as e:
        store.remove()
        raise SessionError(
            f"unable to create refresher log file: {e}") from e
    return store


@contextmanager
def open_token_store(uid: int, prefix: str = DEFAULT_LOG_PREFIX,
                     directory: str = None) -> Iterator[TokenStore]:
    """Create a token store and delete it on exit, whatever the outcome."""
    store = create_token_store(uid, prefix, directory)
    logging.debug(f"Token file created: {store.path}")
    try:
        yield store
    finally:
        store.remove()
        logging.debug(f"Token file removed: {store.path}")
