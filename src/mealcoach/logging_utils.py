"""Logging setup for the command line.

Library modules only create loggers with logging.getLogger(__name__);
handlers are installed here, once, by the CLI.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "mealcoach-rich"


def init_logging(level: str = "WARNING") -> None:
    """
    Route mealcoach logs to stderr through rich.

    Safe to call repeatedly: the handler is added once and later calls
    only change the level.
    """
    logger = logging.getLogger("mealcoach")
    logger.setLevel(level.upper())

    if any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
