"""Logging helpers for the vidctx pipeline."""

from __future__ import annotations

import logging
import sys
from typing import Optional

_LOGGER_CONFIGURED = False

# Libraries that log every HTTP request at INFO.
_NOISY_LOGGERS = ("httpx", "openai", "uvicorn.access")


def configure_logging(level: int = logging.INFO) -> None:
    """Configure logging once; records go to stderr so stdout stays clean for the document."""

    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    _LOGGER_CONFIGURED = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Convenience helper that ensures logging is configured."""

    configure_logging()
    return logging.getLogger(name or "vidctx")


__all__ = ["configure_logging", "get_logger"]
