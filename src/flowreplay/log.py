"""
Logging setup for flowreplay.

Modules log through ``logging.getLogger(__name__)``. The CLI (or an embedding
server) calls configure_logging() once; records go to stderr through Rich so
that stdout stays clean for ``--json`` output, and optionally to a file.
"""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "flowreplay"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    level: str | int = "INFO",
    log_file: Path | str | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        level: Log level name or number
        log_file: Optional path that receives plain-text log records

    Returns:
        The configured ``flowreplay`` logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
