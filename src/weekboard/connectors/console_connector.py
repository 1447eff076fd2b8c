# src/weekboard/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.render import render_week
from ..core.state import AppState
from ..tasks.errors import TaskError, ValidationError, friendly_error_message
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def store_error_logger() -> Callable[[TaskStore], None]:
    """Store observer that logs each new store error once (the grid shows it too)."""
    last_error: list[str | None] = [None]

    def _observer(store: TaskStore) -> None:
        if store.error and store.error != last_error[0]:
            logger.warning("Task store error: %s", store.error)
        last_error[0] = store.error

    return _observer


async def handle_line(state: AppState, line: str) -> str | None:
    """Run one console line; returns what to print (None for nothing)."""
    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        return "Commands start with '/'. Use /help to list them."

    try:
        return await command_registry.handle(state, line, emit=_print_ts)
    except ValidationError as e:
        return f"Invalid input: {e.message}"
    except TaskError as e:
        logger.info("Command failed (%s): %s", type(e).__name__, e.message)
        return friendly_error_message(e)
    except Exception as e:
        logger.exception("Command handler crashed.")
        return friendly_error_message(e)


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (api=%s).", getattr(state.settings, "api_base_url", "?"))
    app_name = str(getattr(state.settings, "app_name", "weekboard"))
    _print_ts(f"[{app_name}] Use /help for commands. Use /exit to quit.\n")

    unsubscribe = state.store.subscribe(store_error_logger())
    try:
        await state.engine.load(state.navigator.window)
        print(render_week(state))

        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            reply = await handle_line(state, user_input)
            if reply is not None:
                print(reply)
                print()
    finally:
        unsubscribe()

    logger.info("Console connector finished.")
