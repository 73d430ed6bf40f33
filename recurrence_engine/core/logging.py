# recurrence_engine/core/logging.py
from __future__ import annotations

import logging
from typing import Optional

from recurrence_engine.core.config import get_settings

LOGGER_NAME = "recurrence_engine"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    The root logger is left alone so the owning service keeps control of
    its own handlers. Calling this more than once only updates the level.

    Parameters
    ----------
    level:
        Level name (DEBUG, INFO, ...). Falls back to settings.LOG_LEVEL.
    """
    level_name = (level or get_settings().LOG_LEVEL).upper()
    resolved = logging.getLevelName(level_name)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolved)

    if not any(getattr(h, "_recurrence_engine", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._recurrence_engine = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
