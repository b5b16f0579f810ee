"""
Logging setup for the package: rich console output, debug gated by environment.
"""

import json
import logging
from typing import Any

from rich.logging import RichHandler

from .config import debug_enabled

PACKAGE_LOGGER = "promo_scraper"


def configure_logging(level: int = None) -> logging.Logger:
    """Attach a RichHandler to the package logger once and set its level."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    if level is None:
        level = logging.DEBUG if debug_enabled() else logging.INFO
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(show_time=True, show_level=True, show_path=False, log_time_format="[%Y-%m-%dT%H:%M:%S]")
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit one structured log line as compact JSON."""
    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
