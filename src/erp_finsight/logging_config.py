# ERP FinSight - Cost & Profitability engine for small-business ERPs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Logging helpers for ERP FinSight.

All modules log under the ``erp_finsight`` namespace through `get_logger()`.
Nothing is configured at import time: library users keep full control of
their logging setup, while the CLI calls `configure_logging()` once with
the level taken from the configuration file.
"""

import logging
import sys
import threading
from typing import Any, Optional, Union

_LOGGER_PREFIX = "erp_finsight"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the erp_finsight namespace."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


def resolve_level(level: Union[int, str]) -> int:
    """
    Convert a level name ("INFO", "debug") or number into a logging level.

    Raises:
        ValueError: if the name is not a standard logging level.
    """
    if isinstance(level, int):
        return level

    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return value


def configure_logging(
    *,
    level: Union[int, str] = logging.WARNING,
    stream: Any = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Configure the erp_finsight logger hierarchy (idempotent)."""
    global _configured
    with _lock:
        if _configured:
            return
        resolved = resolve_level(level)

        root_logger = logging.getLogger(_LOGGER_PREFIX)
        root_logger.setLevel(resolved)
        root_logger.propagate = False

        h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
        h.setFormatter(logging.Formatter(_FORMAT))
        root_logger.addHandler(h)
        _configured = True


def reset_logging() -> None:
    """Reset logging configuration. Intended for tests."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
