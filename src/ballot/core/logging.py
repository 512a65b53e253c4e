"""Logging setup for applications embedding Ballot."""

from __future__ import annotations

import logging

from ballot.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the ``ballot`` logger hierarchy.

    Args:
        level: Optional level name; defaults to ``settings.log_level``.
    """
    logger = logging.getLogger("ballot")
    logger.setLevel((level or settings.log_level).upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
