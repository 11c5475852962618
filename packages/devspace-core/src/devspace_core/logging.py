from __future__ import annotations

import json
import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devspace_core.config import LoggingConfig

_ROOT = "devspace"
_LEVEL_ENV = "DEVSPACE_LOG_LEVEL"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": record.created,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """Configure and return the root devspace logger.

    ``DEVSPACE_LOG_LEVEL`` in the environment overrides *level*. Calling
    this more than once leaves the first configuration in place.
    """
    logger = logging.getLogger(_ROOT)

    if logger.handlers:
        return logger

    level = os.environ.get(_LEVEL_ENV, level)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stderr)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        ))

    logger.addHandler(handler)
    return logger


def setup_from_config(config: LoggingConfig) -> logging.Logger:
    """Configure logging from the ``[logging]`` config section."""
    return setup_logging(config.level, json_output=config.json_output)


def get_logger(name: str) -> logging.Logger:
    """Get a child logger under the devspace namespace."""
    return logging.getLogger(f"{_ROOT}.{name}")
