"""
Logging configuration.

We use a YAML logging config (`src/shelterroute/config/logging.yaml`) and then apply
runtime overrides: `app.log_level` from settings (`SHELTERROUTE_LOG_LEVEL`), or an
explicit level passed by the CLI (`--log-level`).
"""

from __future__ import annotations

import copy
import logging.config
from typing import Any

from shelterroute.config.settings import get_logging_config, get_settings


def build_logging_config(level: str) -> dict[str, Any]:
    """Return the packaged dictConfig with `level` applied to root and every handler."""
    # get_logging_config() is cached and dictConfig mutates its input.
    config = copy.deepcopy(get_logging_config())
    level = level.upper()
    config.setdefault("root", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = level
    return config


def configure_logging(level: str | None = None) -> None:
    """Configure the Python logging system based on packaged YAML config + settings."""
    logging.config.dictConfig(build_logging_config(level or get_settings().app.log_level))
