"""Logging setup for applications using the client.

The client core only emits records through module loggers; applications
that want them on a stream or file call setup_logging(), usually with the
loaded Settings.
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from ..utils.errors import ConfigurationError

if TYPE_CHECKING:
    from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def resolve_log_level(level: str | int) -> int:
    """Convert a level name or number to a logging level.

    Raises:
        ConfigurationError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {level}", field="log_level")
    return resolved


def setup_logging(
    settings: "Settings | None" = None,
    name: str = "oauth2_client",
    level: str | int | None = None,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure root logging for the client.

    The level is taken from the first of: ``level``, ``settings.log_level``,
    the OAUTH2_LOG_LEVEL or LOG_LEVEL environment variables, INFO. The log
    file works the same way with ``settings.log_file``.

    Returns:
        The ``name`` logger

    Raises:
        ConfigurationError: If the level is not a known logging level
    """
    if level is None and settings is not None:
        level = settings.log_level
    if level is None:
        level = os.getenv("OAUTH2_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
    if log_file is None and settings is not None:
        log_file = settings.log_file

    numeric_level = resolve_log_level(level)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, handlers=handlers, force=True)

    logger = logging.getLogger(name)
    logger.debug(f"Logging configured at {logging.getLevelName(numeric_level)}")
    return logger
