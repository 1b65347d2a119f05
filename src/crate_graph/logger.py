"""Functions for logging."""

from __future__ import annotations

import logging

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(level: str | None = None) -> None:
    """Configure the root logger so that all crate-graph modules log to stderr.

    Without an explicit ``level`` the ``CRATE_GRAPH_LOG_LEVEL`` setting is used.
    Unknown level names fall back to INFO.
    """
    if level is None:
        level = Settings().log_level
    level_value = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    # Remove all handlers associated with the root logger (avoid duplicate logs)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
