"""Exception hierarchy for fingerprint-bridge."""

from __future__ import annotations


class FingerprintsError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(FingerprintsError):
    """An operation needs a collaborator the client was built without."""


class ServiceUnavailable(ConfigurationError):
    """No authentication or enrollment service was configured."""

    def __init__(self, service: str) -> None:
        super().__init__(f"{service} is not configured")
        self.service = service


class TransportError(FingerprintsError, ConnectionError):
    """The command channel could not deliver or resolve a request."""


class CommandFailed(TransportError):
    """The service answered a command with a failure result code."""

    def __init__(self, method: int, result: int) -> None:
        super().__init__(f"Command {method} failed with result {result:#x}")
        self.method = method
        self.result = result


class DecodeError(FingerprintsError, ValueError):
    """A response or notification payload did not have the expected shape."""


class UnrecognizedNotification(FingerprintsError):
    """The service pushed a notification kind this client does not know."""

    def __init__(self, kind: int) -> None:
        super().__init__(f"Unknown notification: {kind}")
        self.kind = kind
