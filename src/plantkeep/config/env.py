"""Environment variable loaders for configuration."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError


def optional_positive_float(name: str, default: float) -> float:
    """Return a positive float from the environment, falling back to ``default``."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {raw!r}")
    return value


def optional_log_level(name: str, default: int) -> int:
    """Return a logging level named in the environment, such as ``DEBUG``."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    levels = logging.getLevelNamesMapping()
    value = raw.strip().upper()
    if value not in levels:
        raise ConfigurationError(
            f"{name} must be one of {', '.join(sorted(levels))}, got {raw!r}"
        )
    return levels[value]
