"""Initialization of htshell package."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

__version__ = "1.0.0"
__title__ = "htshell"
__author__ = "sh0rch"
__author_email__ = "sh0rch@iwl.dev"
__license__ = "MIT"
__license_url__ = "https://opensource.org/licenses/MIT"
__description__ = "Interactive shell that keeps a bearer token fresh " \
    "in the background with htgettoken."
