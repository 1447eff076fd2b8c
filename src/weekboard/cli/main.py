# src/weekboard/cli/main.py

"""
CLI entrypoints.

weekboard         -> console week board talking to the task API
weekboard-server  -> the task API itself (uvicorn + FastAPI)
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from ..cli.bootstrap import close_state, create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _console_level(settings) -> int:
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


async def _run_board(settings) -> None:
    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    try:
        if settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled (WEEKBOARD_CONSOLE_ENABLED=0); nothing to do.")
    finally:
        await close_state(state)


def main() -> None:
    settings = get_settings()
    setup_logging(log_dir=settings.data_dir, console_level=_console_level(settings))

    logger.info("Starting %s...", settings.app_name)
    try:
        asyncio.run(_run_board(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")


def serve() -> None:
    """Run the task API with uvicorn."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Start the weekboard task API server")
    parser.add_argument("--host", default=settings.server_host, help=f"Host to bind to (default: {settings.server_host})")
    parser.add_argument("--port", type=int, default=settings.server_port, help=f"Port to bind to (default: {settings.server_port})")
    parser.add_argument("--reload", action="store_true", help="Enable hot-reload (development)")
    args = parser.parse_args()

    setup_logging(
        log_dir=settings.data_dir,
        console_level=_console_level(settings),
        log_name="weekboard-server.log",
    )

    import uvicorn

    logger.info("Serving task API on http://%s:%s/api (db=%s)", args.host, args.port, settings.tasks_db_path)
    uvicorn.run(
        "weekboard.server.app:create_app_from_settings",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )


if __name__ == "__main__":
    main()
