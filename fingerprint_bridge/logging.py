"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Mapping, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Loggers that get chatty at DEBUG while a reader streams notifications.
NETWORK_LOGGERS = ("aiohttp.client", "aiohttp.websocket")


def parse_logger_levels(value: str) -> dict[str, str]:
    """Parse ``"name=LEVEL, other=LEVEL"`` into a mapping.

    Entries without ``=`` or with an empty name are ignored.
    """

    levels: dict[str, str] = {}
    for item in value.split(","):
        name, sep, level = item.partition("=")
        if sep and name.strip() and level.strip():
            levels[name.strip()] = level.strip().upper()
    return levels


def _level(name: str, default: int = logging.INFO) -> int:
    resolved = logging.getLevelName(name.upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(
    level: str = "INFO",
    *,
    log_path: Optional[Path] = None,
    log_network: bool = False,
    max_bytes: int = 1_048_576,
    backup_count: int = 3,
    logger_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """Configure root logging handlers.

    Parameters
    ----------
    level:
        Log level name, e.g. "INFO".
    log_path:
        Optional filesystem path for a rotating file handler. When absent, only console logging is configured.
    log_network:
        When true, keep aiohttp's client and websocket loggers at the root level to aid diagnostics.
    max_bytes, backup_count:
        Rotation settings for the file handler; ``max_bytes=0`` disables rotation.
    logger_levels:
        Per-logger overrides such as ``{"fingerprint_bridge.channel": "DEBUG"}``,
        applied last so they win over the network quieting.
    """

    logging.captureWarnings(True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    logging.basicConfig(level=_level(level), format=LOG_FORMAT)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max(0, max_bytes),
            backupCount=max(0, backup_count),
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    for name in NETWORK_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if log_network else logging.WARNING)

    for name, override in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_level(override))
