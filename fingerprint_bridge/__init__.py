"""Client for fingerprint readers served by a local biometric service."""

from .api import FingerprintsApi
from .channel import Channel, CommandChannel
from .credentials import AuthService, Credential, EnrollService, Ticket, User
from .errors import (
    CommandFailed,
    ConfigurationError,
    DecodeError,
    FingerprintsError,
    ServiceUnavailable,
    TransportError,
    UnrecognizedNotification,
)
from .event_bus import EventBus
from .events import (
    AcquisitionStarted,
    AcquisitionStopped,
    CommunicationFailed,
    DeviceConnected,
    DeviceDisconnected,
    ErrorOccurred,
    Event,
    EventName,
    QualityReported,
    SamplesAcquired,
)
from .models import BioSample, DeviceInfo, Finger, FingerPosition, QualityCode, SampleFormat

__all__ = [
    "AcquisitionStarted",
    "AcquisitionStopped",
    "AuthService",
    "BioSample",
    "Channel",
    "CommandChannel",
    "CommandFailed",
    "CommunicationFailed",
    "ConfigurationError",
    "Credential",
    "DecodeError",
    "DeviceConnected",
    "DeviceDisconnected",
    "DeviceInfo",
    "EnrollService",
    "ErrorOccurred",
    "Event",
    "EventBus",
    "EventName",
    "Finger",
    "FingerPosition",
    "FingerprintsApi",
    "FingerprintsError",
    "QualityCode",
    "QualityReported",
    "SampleFormat",
    "SamplesAcquired",
    "ServiceUnavailable",
    "Ticket",
    "TransportError",
    "UnrecognizedNotification",
    "User",
]
