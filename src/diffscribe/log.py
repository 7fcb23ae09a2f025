"""Logging setup for the CLI.

Library modules only emit through ``loguru.logger``. The package starts
with its records disabled; sinks are configured and records enabled
here, once, by the command that runs.
"""

from __future__ import annotations

import os
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape

LOG_LEVEL_ENV = "DIFFSCRIBE_LOG_LEVEL"

_LEVEL_STYLE = {
    "DEBUG": "dim",
    "INFO": "cyan",
    "WARNING": "yellow",
    "ERROR": "bold red",
    "CRITICAL": "bold white on red",
}


def resolve_level(verbose: bool = False, debug: bool = False) -> str:
    if debug:
        return "DEBUG"
    env_level = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    if env_level in _LEVEL_STYLE:
        return env_level
    return "INFO" if verbose else "WARNING"


def setup_logging(
    verbose: bool = False, debug: bool = False, console: Optional[Console] = None
) -> str:
    """Route loguru records to a Rich console on stderr. Returns the level used."""
    console = console or Console(stderr=True)
    level = resolve_level(verbose, debug)

    def console_sink(message) -> None:
        record = message.record
        name = record["level"].name
        text = escape(record["message"].rstrip("\n"))
        style = _LEVEL_STYLE.get(name, "")
        if name in ("DEBUG", "INFO"):
            console.print(f"[{style}]{text}[/{style}]" if style else text)
        else:
            console.print(f"[{style}]{name.lower()}:[/{style}] {text}")

    logger.remove()
    logger.enable("diffscribe")
    logger.add(console_sink, level=level, format="{message}", catch=True)
    return level
