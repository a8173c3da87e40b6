"""Messages exchanged with the fingerprint service over the command channel."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional

from .errors import DecodeError


def _blob(payload: Mapping[str, Any]) -> Optional[str]:
    data = payload.get("Data")
    if data is None or data == "":
        return None
    if not isinstance(data, str):
        raise DecodeError(f"Data must be base64url text, got {type(data).__name__}")
    return data


class Method(IntEnum):
    ENUMERATE_DEVICES = 1
    GET_DEVICE_INFO = 2
    START_ACQUISITION = 3
    STOP_ACQUISITION = 4


class NotificationType(IntEnum):
    COMPLETED = 0
    ERROR = 1
    DISCONNECTED = 2
    CONNECTED = 3
    QUALITY = 4
    STOPPED = 10
    STARTED = 11


@dataclass(slots=True, frozen=True)
class Command:
    method: Method
    parameters: Optional[str] = None

    def as_dict(self) -> dict[str, Any]:
        return {"Method": int(self.method), "Parameters": self.parameters}


@dataclass(slots=True, frozen=True)
class Request:
    """A command plus the delivery settings the channel applies to it.

    The channel assigns the correlation id when the request is sent.
    """

    command: Command
    timeout: Optional[float] = None


@dataclass(slots=True, frozen=True)
class Response:
    method: int
    result: int = 0
    data: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any) -> Response:
        if not isinstance(payload, Mapping):
            raise DecodeError(f"Response must be an object, got {type(payload).__name__}")
        data = _blob(payload)
        try:
            return cls(
                method=int(payload.get("Method", 0)),
                result=int(payload.get("Result", 0)),
                data=data,
            )
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"Malformed response: {payload!r}") from exc


@dataclass(slots=True, frozen=True)
class Notification:
    """Unsolicited message pushed by the service for one device."""

    event: int
    device: str
    data: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Any) -> Notification:
        if not isinstance(payload, Mapping):
            raise DecodeError(
                f"Notification must be an object, got {type(payload).__name__}"
            )
        data = _blob(payload)
        try:
            return cls(
                event=int(payload["Event"]),
                device=str(payload.get("Device") or ""),
                data=data,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DecodeError(f"Malformed notification: {payload!r}") from exc
