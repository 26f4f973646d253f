"""Logging setup for the medallion command line."""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LOG_LEVEL = "WARNING"


def resolve_level(level: Optional[Union[str, int]]) -> int:
    """Turn a level name (any case) or number into a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if level is None:
        level = DEFAULT_LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{level}'")
    return resolved


def configure_logging(
    level: Optional[Union[str, int]] = None, console: Optional[Console] = None
) -> logging.Handler:
    """Route ``medallion`` loggers to a Rich handler on stderr.

    Calling this again replaces the handler installed by the previous call.

    Args:
        level: Level name or number (default WARNING)
        console: Console to render to; defaults to a stderr console

    Returns:
        The installed handler
    """
    logger = logging.getLogger("medallion")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_path=False,
    )
    logger.addHandler(handler)
    logger.setLevel(resolve_level(level))
    logger.propagate = False
    return handler
