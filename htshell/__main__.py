"""Main module of htshell package."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import asyncio
import logging

from htshell.cli import main


def run():
    """Run the main function of the htshell package."""
    try:
        return asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("KeyboardInterrupt received, shutting down...")
        return 1
    except Exception:
        logging.exception("Unhandled exception in main loop")
        return 1


if __name__ == "__main__":
    raise SystemExit(run())
