"""Configuration loader for fingerprint-bridge."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import constants
from .logging import parse_logger_levels


@dataclass(slots=True)
class ChannelConfig:
    url: str = constants.DEFAULT_SERVICE_URL
    request_timeout_seconds: float = 10.0
    connect_timeout_seconds: float = 5.0
    reconnect_initial_seconds: float = 1.0
    reconnect_max_seconds: float = 30.0


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False
    max_bytes: int = 1_048_576
    backup_count: int = 3
    levels: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class BridgeConfig:
    channel: ChannelConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path


def load_config(path: Optional[Path] = None) -> BridgeConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "channel": {
                "url": constants.DEFAULT_SERVICE_URL,
                "request_timeout_seconds": "10.0",
                "connect_timeout_seconds": "5.0",
                "reconnect_initial_seconds": "1.0",
                "reconnect_max_seconds": "30.0",
            },
            "logging": {
                "level": "INFO",
                "log_network": "false",
                "max_bytes": "1048576",
                "backup_count": "3",
                "levels": "",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    defaults = ChannelConfig()

    reconnect_initial = max(
        0.0,
        parser.getfloat(
            "channel",
            "reconnect_initial_seconds",
            fallback=defaults.reconnect_initial_seconds,
        ),
    )

    channel = ChannelConfig(
        url=parser.get("channel", "url"),
        request_timeout_seconds=max(
            0.1,
            parser.getfloat(
                "channel",
                "request_timeout_seconds",
                fallback=defaults.request_timeout_seconds,
            ),
        ),
        connect_timeout_seconds=max(
            0.1,
            parser.getfloat(
                "channel",
                "connect_timeout_seconds",
                fallback=defaults.connect_timeout_seconds,
            ),
        ),
        reconnect_initial_seconds=reconnect_initial,
        reconnect_max_seconds=max(
            reconnect_initial,
            parser.getfloat(
                "channel",
                "reconnect_max_seconds",
                fallback=defaults.reconnect_max_seconds,
            ),
        ),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
        max_bytes=max(0, parser.getint("logging", "max_bytes", fallback=1_048_576)),
        backup_count=max(0, parser.getint("logging", "backup_count", fallback=3)),
        levels=parse_logger_levels(parser.get("logging", "levels", fallback="")),
    )

    return BridgeConfig(
        channel=channel,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )


def save_config(config: BridgeConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
