"""Interactive shell with automatic bearer token refresh."""
# -----------------------------------------------------------------------------
# htshell - Interactive shell with automatic bearer token refresh
# https://pypi.org/project/htshell
#
# Copyright (c) 2025 sh0rch
# Licensed under the MIT License: https://opensource.org/licenses/MIT
# -----------------------------------------------------------------------------

import asyncio
import logging
import sys

from htshell.config import load_config, setup_logging
from htshell.errors import ConfigError, SessionError
from htshell.session import run_session


async def main() -> int:
    """Run an htshell session.

    All command line arguments are passed through to the token fetch tool;
    htshell itself is configured from the environment only.
    """
    try:
        config = load_config()
    except ConfigError as e:
        setup_logging()
        logging.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.log_level, config.log_prefix)

    try:
        return await run_session(config, sys.argv[1:])
    except SessionError as e:
        logging.error(str(e))
        return 1


if __name__ == "__main__":
    try:
        exit_code = asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("KeyboardInterrupt received, shutting down...")
        exit_code = 1
    except Exception:
        logging.exception("Unhandled exception in main loop")
        exit_code = 1

    raise SystemExit(exit_code)
