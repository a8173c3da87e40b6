"""Event definitions delivered to subscribers of the fingerprint client.

Events are immutable value objects created by the client when it
translates a service notification or a transport failure. Each concrete
event class carries its ``event_name``, which is the key handlers are
registered under.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, TypeVar

from .models import QualityCode, SampleFormat


class EventName(str, Enum):
    """Event names handlers can subscribe to (case-sensitive)."""

    DEVICE_CONNECTED = "DeviceConnected"
    DEVICE_DISCONNECTED = "DeviceDisconnected"
    SAMPLES_ACQUIRED = "SamplesAcquired"
    QUALITY_REPORTED = "QualityReported"
    ERROR_OCCURRED = "ErrorOccurred"
    ACQUISITION_STARTED = "AcquisitionStarted"
    ACQUISITION_STOPPED = "AcquisitionStopped"
    COMMUNICATION_FAILED = "CommunicationFailed"


@dataclass(frozen=True, slots=True)
class Event:
    event_name: ClassVar[EventName]


@dataclass(frozen=True, slots=True)
class DeviceEvent(Event):
    device_uid: str


@dataclass(frozen=True, slots=True)
class DeviceConnected(DeviceEvent):
    event_name: ClassVar[EventName] = EventName.DEVICE_CONNECTED


@dataclass(frozen=True, slots=True)
class DeviceDisconnected(DeviceEvent):
    event_name: ClassVar[EventName] = EventName.DEVICE_DISCONNECTED


@dataclass(frozen=True, slots=True)
class SamplesAcquired(DeviceEvent):
    """Samples captured by the reader, in the format acquisition was started with."""

    event_name: ClassVar[EventName] = EventName.SAMPLES_ACQUIRED

    sample_format: SampleFormat | int
    samples: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class QualityReported(DeviceEvent):
    event_name: ClassVar[EventName] = EventName.QUALITY_REPORTED

    quality: QualityCode | int


@dataclass(frozen=True, slots=True)
class ErrorOccurred(DeviceEvent):
    event_name: ClassVar[EventName] = EventName.ERROR_OCCURRED

    error: int


@dataclass(frozen=True, slots=True)
class AcquisitionStarted(DeviceEvent):
    event_name: ClassVar[EventName] = EventName.ACQUISITION_STARTED


@dataclass(frozen=True, slots=True)
class AcquisitionStopped(DeviceEvent):
    event_name: ClassVar[EventName] = EventName.ACQUISITION_STOPPED


@dataclass(frozen=True, slots=True)
class CommunicationFailed(Event):
    """The connection to the local service was lost."""

    event_name: ClassVar[EventName] = EventName.COMMUNICATION_FAILED


E = TypeVar("E", bound=Event)

Handler = Callable[[E], Any]
