"""Translation of service notifications into client events."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Union

from . import codec
from .errors import DecodeError, UnrecognizedNotification
from .events import (
    AcquisitionStarted,
    AcquisitionStopped,
    DeviceConnected,
    DeviceDisconnected,
    ErrorOccurred,
    Event,
    QualityReported,
    SamplesAcquired,
)
from .messages import Notification, NotificationType
from .models import QualityCode, SampleFormat, _coerce


@dataclass(slots=True, frozen=True)
class Completed:
    sample_format: SampleFormat | int
    samples: tuple[Any, ...]


@dataclass(slots=True, frozen=True)
class ErrorReport:
    error: int


@dataclass(slots=True, frozen=True)
class QualityReport:
    quality: QualityCode | int


@dataclass(slots=True, frozen=True)
class Bare:
    """Notification kinds that carry no payload."""

    kind: NotificationType


NotificationPayload = Union[Completed, ErrorReport, QualityReport, Bare]

_BARE_KINDS = frozenset(
    {
        NotificationType.CONNECTED,
        NotificationType.DISCONNECTED,
        NotificationType.STARTED,
        NotificationType.STOPPED,
    }
)


def _payload_object(notification: Notification) -> Mapping[str, Any]:
    # Kinds with a payload require one; an absent blob is a decode failure.
    payload = codec.decode_json(notification.data, default="")
    if not isinstance(payload, Mapping):
        raise DecodeError(
            f"Notification {notification.event} payload must be an object"
        )
    return payload


def _int_field(payload: Mapping[str, Any], name: str) -> int:
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"Notification field {name!r} must be an integer, got {value!r}")
    return value


def _samples(value: Any) -> tuple[Any, ...]:
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Samples are not valid JSON: {exc.msg}") from exc
    if not isinstance(value, list):
        raise DecodeError(f"Samples must be a list, got {type(value).__name__}")
    return tuple(value)


def decode_notification(notification: Notification) -> NotificationPayload:
    """Decode the payload of a notification according to its kind.

    Raises:
        UnrecognizedNotification: the kind is not one the client knows.
        DecodeError: the payload does not have the shape the kind requires.
    """

    try:
        kind = NotificationType(notification.event)
    except ValueError:
        raise UnrecognizedNotification(notification.event) from None

    if kind in _BARE_KINDS:
        return Bare(kind)

    payload = _payload_object(notification)
    if kind is NotificationType.COMPLETED:
        sample_format = _coerce(SampleFormat, _int_field(payload, "SampleFormat"))
        return Completed(sample_format, _samples(payload.get("Samples")))
    if kind is NotificationType.ERROR:
        return ErrorReport(_int_field(payload, "uError"))
    return QualityReport(_coerce(QualityCode, _int_field(payload, "Quality")))


def to_event(notification: Notification) -> Event:
    """Build the event a notification stands for."""

    device = notification.device
    decoded = decode_notification(notification)

    if isinstance(decoded, Completed):
        return SamplesAcquired(device, decoded.sample_format, decoded.samples)
    if isinstance(decoded, ErrorReport):
        return ErrorOccurred(device, decoded.error)
    if isinstance(decoded, QualityReport):
        return QualityReported(device, decoded.quality)

    return {
        NotificationType.CONNECTED: DeviceConnected,
        NotificationType.DISCONNECTED: DeviceDisconnected,
        NotificationType.STARTED: AcquisitionStarted,
        NotificationType.STOPPED: AcquisitionStopped,
    }[decoded.kind](device)
