"""
Loguru sink setup.

Library modules only write through ``loguru.logger`` and never add sinks;
whoever owns the process (the CLI, a web app, a notebook) calls
``setup_logging`` once with the ``logging`` section of the config.
"""

from __future__ import annotations

import sys

from loguru import logger

from ..config_schema import LoggingConfig

CONSOLE_FORMAT = "<level>{level: <8}</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(
    settings: LoggingConfig | None = None,
    *,
    console: bool = True,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """
    Replace loguru's sinks with a stderr sink and an optional file sink.

    Args:
        settings: Level and log file; defaults to WARNING on stderr only.
        console: Install the stderr sink.
        rotation: File size at which the log file is rotated.
        retention: How long rotated files are kept.
    """
    settings = settings or LoggingConfig()
    logger.remove()

    if console:
        logger.add(sys.stderr, level=settings.level, format=CONSOLE_FORMAT)

    if settings.file:
        logger.add(
            settings.file,
            level=settings.level,
            format=FILE_FORMAT,
            rotation=rotation,
            retention=retention,
        )
