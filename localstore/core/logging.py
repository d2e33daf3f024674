"""Stdlib logging wiring for the localstore package logger."""

from __future__ import annotations

import logging
from typing import Optional

from .config import Settings, get_settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"
_HANDLER_NAME = "localstore-console"


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Attach a console handler to the ``localstore`` logger.

    Calling it again only updates the level; handlers are never duplicated.
    """
    settings = settings or get_settings()
    logger = logging.getLogger("localstore")
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    logger.setLevel(level)

    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger
