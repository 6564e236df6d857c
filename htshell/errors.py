"""Exceptions raised by htshell."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

from typing import Optional


class HtshellError(Exception):
    """Base class for all htshell errors."""


class ConfigError(HtshellError, ValueError):
    """Invalid configuration value."""


class SessionError(HtshellError):
    """Fatal error while setting up or running the shell session."""


class RefreshError(HtshellError):
    """The token fetch tool could not be run or exited with an error."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class RefresherError(HtshellError):
    """Refresher lifecycle misuse (e.g. started twice)."""


class ShellLookupError(HtshellError):
    """Login shell could not be determined."""
