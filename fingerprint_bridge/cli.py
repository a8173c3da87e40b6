"""Command-line interface for fingerprint-bridge."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .api import FingerprintsApi
from .config import BridgeConfig, load_config
from .errors import FingerprintsError
from .events import EventName, SamplesAcquired
from .logging import configure_logging
from .models import SampleFormat

LOGGER = logging.getLogger(__name__)

_FORMATS = {
    "raw": SampleFormat.RAW,
    "intermediate": SampleFormat.INTERMEDIATE,
    "compressed": SampleFormat.COMPRESSED,
    "png": SampleFormat.PNG_IMAGE,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fingerprint-bridge",
        description="Talk to fingerprint readers through the local biometric service",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("devices", help="List connected fingerprint readers")

    info_parser = subparsers.add_parser("info", help="Describe a fingerprint reader")
    info_parser.add_argument("device", help="Device id as reported by 'devices'")

    capture_parser = subparsers.add_parser(
        "capture", help="Acquire one set of samples and print them as JSON"
    )
    capture_parser.add_argument(
        "--format", choices=sorted(_FORMATS), default="intermediate"
    )
    capture_parser.add_argument("--device", default=None, help="Device id (default: first reader)")
    capture_parser.add_argument(
        "--timeout", type=float, default=30.0, help="Seconds to wait for a finger"
    )

    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


async def _list_devices(api: FingerprintsApi) -> int:
    for device_id in await api.enumerate_devices():
        print(device_id)
    return 0


async def _show_device(api: FingerprintsApi, device_uid: str) -> int:
    info = await api.get_device_info(device_uid)
    if info is None:
        LOGGER.error("Device %s not found", device_uid)
        return 1
    print(f"id         = {info.device_id}")
    print(f"uid type   = {getattr(info.uid_type, 'name', info.uid_type)}")
    print(f"modality   = {getattr(info.modality, 'name', info.modality)}")
    print(f"technology = {getattr(info.technology, 'name', info.technology)}")
    return 0


async def _capture(
    api: FingerprintsApi,
    sample_format: SampleFormat,
    device_uid: Optional[str],
    timeout: float,
) -> int:
    loop = asyncio.get_running_loop()
    acquired: asyncio.Future[SamplesAcquired] = loop.create_future()

    def on_samples(event: SamplesAcquired) -> None:
        if not acquired.done():
            acquired.set_result(event)

    api.on(EventName.SAMPLES_ACQUIRED, on_samples)
    await api.start_acquisition(sample_format, device_uid)
    try:
        event = await asyncio.wait_for(acquired, timeout=timeout)
    except asyncio.TimeoutError:
        LOGGER.error("No samples acquired within %.1fs", timeout)
        return 1
    finally:
        api.off(EventName.SAMPLES_ACQUIRED, on_samples)
        await api.stop_acquisition(device_uid)

    print(json.dumps({"device": event.device_uid, "samples": list(event.samples)}))
    return 0


async def _run(config: BridgeConfig, args: argparse.Namespace) -> int:
    api = FingerprintsApi(config=config.channel)
    try:
        if args.command == "devices":
            return await _list_devices(api)
        if args.command == "info":
            return await _show_device(api, args.device)
        if args.command == "capture":
            return await _capture(
                api, _FORMATS[args.format], args.device, args.timeout
            )
    finally:
        await api.aclose()

    LOGGER.error("Unknown command: %s", args.command)
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(
        config.logging.level,
        log_path=config.logging.path,
        log_network=config.logging.log_network,
        max_bytes=config.logging.max_bytes,
        backup_count=config.logging.backup_count,
        logger_levels=config.logging.levels,
    )

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    try:
        return asyncio.run(_run(config, args))
    except FingerprintsError as exc:
        LOGGER.error("Command failed: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
