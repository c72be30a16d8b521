"""Logging setup for the plantkeep command line."""

from __future__ import annotations

import logging

from .env import optional_log_level

LOG_LEVEL_ENV = "PLANTKEEP_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# SQL echo is only useful when debugging the persistence layer itself.
_NOISY_LOGGERS = ("sqlalchemy.engine",)


def configure_logging(*, level: int | None = None, force: bool = False) -> int:
    """Configure the root logger and return the level in effect.

    Without an explicit ``level`` the ``PLANTKEEP_LOG_LEVEL`` variable decides,
    falling back to INFO. Import summaries go to stdout, so records go to
    stderr to keep them apart.
    """

    effective = level if level is not None else optional_log_level(LOG_LEVEL_ENV, logging.INFO)
    logging.basicConfig(
        level=effective,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(effective, logging.WARNING))
    return effective
