"""Application-wide logger writing to platformdirs user_log_dir.

Everything under the ``taskit_cli`` namespace ends up in one rotating file.
The focus engine logs through ``taskit_cli.models.focus.*``; its verbosity
follows ``TASKIT_FOCUS_LOG_LEVEL`` (default ``INFO``).
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

from platformdirs import user_log_dir

_APP_NAME = "taskit_cli"
_LOG_FILE = "taskit.log"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_BACKUP_COUNT = 3

FOCUS_LOGGER = f"{_APP_NAME}.models.focus"
FOCUS_LEVEL_ENV = "TASKIT_FOCUS_LOG_LEVEL"
_DEFAULT_FOCUS_LEVEL = logging.INFO

_logger: logging.Logger | None = None


def focus_log_level() -> int:
    """Level for the focus engine loggers, read from the environment.

    Unknown level names fall back to INFO.
    """
    name = os.environ.get(FOCUS_LEVEL_ENV, "").strip().upper()
    if not name:
        return _DEFAULT_FOCUS_LEVEL
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else _DEFAULT_FOCUS_LEVEL


def _setup() -> logging.Logger:
    log_dir = Path(user_log_dir(_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        log_dir / _LOG_FILE,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
    )

    logger = logging.getLogger(_APP_NAME)
    logger.setLevel(logging.DEBUG)
    if not logger.handlers:
        logger.addHandler(handler)
    logger.propagate = False

    logging.getLogger(FOCUS_LOGGER).setLevel(focus_log_level())
    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the application logger, or one of its children.

    The file handler is attached on first call. ``name`` is relative to the
    application namespace: ``get_logger("commands")`` is
    ``taskit_cli.commands``.
    """
    global _logger
    if _logger is None:
        _logger = _setup()
    if not name:
        return _logger
    if name == _APP_NAME or name.startswith(f"{_APP_NAME}."):
        return logging.getLogger(name)
    return _logger.getChild(name)
