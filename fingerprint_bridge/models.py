"""Domain models for fingerprint devices, samples and enrolled fingers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional

from .errors import DecodeError


class SampleFormat(IntEnum):
    """Fingerprint sample formats the service can acquire."""

    RAW = 1
    INTERMEDIATE = 2
    COMPRESSED = 3
    PNG_IMAGE = 5


class FingerPosition(IntEnum):
    UNKNOWN = 0
    RIGHT_THUMB = 1
    RIGHT_INDEX = 2
    RIGHT_MIDDLE = 3
    RIGHT_RING = 4
    RIGHT_LITTLE = 5
    LEFT_THUMB = 6
    LEFT_INDEX = 7
    LEFT_MIDDLE = 8
    LEFT_RING = 9
    LEFT_LITTLE = 10


class QualityCode(IntEnum):
    """Scan quality scores reported while a finger is on the reader."""

    GOOD = 0
    NO_IMAGE = 1
    TOO_LIGHT = 2
    TOO_DARK = 3
    TOO_NOISY = 4
    LOW_CONTRAST = 5
    NOT_ENOUGH_FEATURES = 6
    NOT_CENTERED = 7
    NOT_A_FINGER = 8
    TOO_HIGH = 9
    TOO_LOW = 10
    TOO_LEFT = 11
    TOO_RIGHT = 12
    TOO_STRANGE = 13
    TOO_FAST = 14
    TOO_SKEWED = 15
    TOO_SHORT = 16
    TOO_SLOW = 17
    REVERSE_MOTION = 18
    PRESSURE_TOO_HARD = 19
    PRESSURE_TOO_LIGHT = 20
    WET_FINGER = 21
    FAKE_FINGER = 22
    TOO_SMALL = 23
    ROTATED_TOO_MUCH = 24


class DeviceUidType(IntEnum):
    PERSISTENT = 0
    VOLATILE = 1


class DeviceModality(IntEnum):
    UNKNOWN = 0
    SWIPE = 1
    AREA = 2
    AREA_MULTIFINGER = 3


class DeviceTechnology(IntEnum):
    UNKNOWN = 0
    OPTICAL = 1
    CAPACITIVE = 2
    THERMAL = 3
    PRESSURE = 4


def _coerce(enum_type: type[IntEnum], value: Any) -> Any:
    try:
        return enum_type(value)
    except ValueError:
        return value


@dataclass(slots=True, frozen=True)
class DeviceInfo:
    """Descriptor of a connected fingerprint reader."""

    device_id: str
    uid_type: DeviceUidType | int
    modality: DeviceModality | int
    technology: DeviceTechnology | int

    @classmethod
    def from_json(cls, payload: Any) -> DeviceInfo:
        if not isinstance(payload, Mapping):
            raise DecodeError(f"Device info must be an object, got {type(payload).__name__}")
        try:
            return cls(
                device_id=str(payload["DeviceID"]),
                uid_type=_coerce(DeviceUidType, payload.get("eUidType", 0)),
                modality=_coerce(DeviceModality, payload.get("eDeviceModality", 0)),
                technology=_coerce(DeviceTechnology, payload.get("eDeviceTech", 0)),
            )
        except KeyError as exc:
            raise DecodeError(f"Device info is missing {exc.args[0]!r}") from exc


@dataclass(slots=True, frozen=True)
class Finger:
    position: FingerPosition | int

    @classmethod
    def from_json(cls, payload: Any) -> Finger:
        if not isinstance(payload, Mapping) or "position" not in payload:
            raise DecodeError(f"Invalid enrolled finger entry: {payload!r}")
        return cls(position=_coerce(FingerPosition, payload["position"]))


Fingers = list[Finger]


@dataclass(slots=True, frozen=True)
class BioSample:
    """A captured biometric sample as produced by the service.

    ``data`` is the base64url encoded sample body; ``header`` carries the
    service-specific sample header untouched.
    """

    data: str
    version: int = 1
    header: Optional[Mapping[str, Any]] = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"Version": self.version, "Data": self.data}
        if self.header is not None:
            payload["Header"] = dict(self.header)
        return payload

