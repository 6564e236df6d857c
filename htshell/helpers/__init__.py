"""Helpers for htshell."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

from htshell.helpers.identity import (
    UserIdentity,
    get_current_user,
    get_shell,
    lookup_login_shell,
)

__all__ = [
    "UserIdentity",
    "get_current_user",
    "get_shell",
    "lookup_login_shell",
]
