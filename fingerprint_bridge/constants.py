"""Constants used across the fingerprint-bridge package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "fingerprint-bridge"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_LOG_PATH = Path.home() / ".local" / "state" / APP_NAME / f"{APP_NAME}.log"

CHANNEL_NAME = "fingerprints"

DEFAULT_SERVICE_HOST = "127.0.0.1"
DEFAULT_SERVICE_PORT = 52181
DEFAULT_SERVICE_URL = f"ws://{DEFAULT_SERVICE_HOST}:{DEFAULT_SERVICE_PORT}/websdk"

# The service treats the all-zero id as "the default (first) device".
DEFAULT_DEVICE_ID = "00000000-0000-0000-0000-000000000000"
