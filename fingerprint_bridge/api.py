"""Fingerprint client: device commands, enrollment and event subscriptions."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

from . import codec
from .channel import Channel, CommandChannel
from .config import ChannelConfig
from .constants import CHANNEL_NAME, DEFAULT_DEVICE_ID
from .credentials import (
    FINGERPRINTS_CREDENTIAL_ID,
    AuthService,
    Credential,
    EnrollService,
    JSONWebToken,
    MissingAuthService,
    MissingEnrollService,
    Ticket,
    User,
)
from .errors import DecodeError, UnrecognizedNotification
from .event_bus import EventBus, EventKey
from .events import CommunicationFailed, Event, EventName, Handler
from .messages import Command, Method, Notification, Request, Response
from .models import BioSample, DeviceInfo, Finger, FingerPosition, Fingers, SampleFormat
from .notifications import to_event

LOGGER = logging.getLogger(__name__)

Samples = Sequence[BioSample | dict[str, Any] | str]

_SLOT_ATTRIBUTES = {
    EventName.DEVICE_CONNECTED: "on_device_connected",
    EventName.DEVICE_DISCONNECTED: "on_device_disconnected",
    EventName.SAMPLES_ACQUIRED: "on_samples_acquired",
    EventName.QUALITY_REPORTED: "on_quality_reported",
    EventName.ERROR_OCCURRED: "on_error_occurred",
    EventName.ACQUISITION_STARTED: "on_acquisition_started",
    EventName.ACQUISITION_STOPPED: "on_acquisition_stopped",
    EventName.COMMUNICATION_FAILED: "on_communication_failed",
}


class FingerprintsApi:
    """Client for fingerprint readers attached to the local biometric service.

    Device commands go over a command channel owned by this instance.
    Authentication and enrollment are delegated to the remote services given
    at construction; calling them without the matching service raises
    :class:`~fingerprint_bridge.errors.ServiceUnavailable` before any I/O.

    Device and acquisition state is reported only through events. Subscribe
    with :meth:`on`, or assign one of the ``on_*`` handler attributes.
    """

    def __init__(
        self,
        auth_service: Optional[AuthService] = None,
        enroll_service: Optional[EnrollService] = None,
        security_officer: Optional[JSONWebToken] = None,
        *,
        channel: Optional[CommandChannel] = None,
        config: Optional[ChannelConfig] = None,
    ) -> None:
        self.auth_service: AuthService = auth_service or MissingAuthService()
        self.enroll_service: EnrollService = enroll_service or MissingEnrollService()
        self.security_officer = security_officer

        self.on_device_connected: Optional[Handler] = None
        self.on_device_disconnected: Optional[Handler] = None
        self.on_samples_acquired: Optional[Handler] = None
        self.on_quality_reported: Optional[Handler] = None
        self.on_error_occurred: Optional[Handler] = None
        self.on_acquisition_started: Optional[Handler] = None
        self.on_acquisition_stopped: Optional[Handler] = None
        self.on_communication_failed: Optional[Handler] = None

        self._events = EventBus(slot_lookup=self._slot_for)

        self.channel: CommandChannel = channel or Channel(CHANNEL_NAME, config)
        self.channel.on_communication_error = self._on_connection_failed
        self.channel.on_notification = self._process_notification

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def on(self, event: EventKey, handler: Handler) -> Handler:
        """Subscribe ``handler`` to ``event`` and return it for later removal."""

        return self._events.on(event, handler)

    def off(
        self, event: Optional[EventKey] = None, handler: Optional[Handler] = None
    ) -> Optional[Handler]:
        """Unsubscribe a handler; with no arguments, drop every subscription."""

        return self._events.off(event, handler)

    def emit(self, event: Event) -> None:
        self._events.emit(event)

    async def aclose(self) -> None:
        self._events.off()
        await self.channel.aclose()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------
    async def authenticate(self, user: User, samples: Samples) -> JSONWebToken:
        """Authenticate ``user`` with captured samples and return a JWT."""

        ticket = await self.auth_service.authenticate_user(
            user, Credential.fingerprints(samples)
        )
        return ticket.jwt

    async def identify(self, samples: Samples) -> JSONWebToken:
        ticket = await self.auth_service.identify_user(Credential.fingerprints(samples))
        return ticket.jwt

    async def get_enrolled(self, user: User) -> Fingers:
        """Return the fingers enrolled for ``user``."""

        data = await self.auth_service.get_enrollment_data(
            user, FINGERPRINTS_CREDENTIAL_ID
        )
        items = codec.decode_json(data, default="[]")
        if not isinstance(items, list):
            raise DecodeError(f"Enrollment data must be a list, got {type(items).__name__}")
        return [Finger.from_json(item) for item in items]

    # ------------------------------------------------------------------
    # Enrollment
    # ------------------------------------------------------------------
    async def can_enroll(
        self, user: User, security_officer: Optional[JSONWebToken] = None
    ) -> None:
        await self.enroll_service.is_enrollment_allowed(
            Ticket(security_officer or self.security_officer or ""),
            user,
            FINGERPRINTS_CREDENTIAL_ID,
        )

    async def enroll(
        self,
        user: JSONWebToken,
        position: FingerPosition,
        samples: Samples,
        security_officer: Optional[JSONWebToken] = None,
    ) -> None:
        await self.enroll_service.enroll_user_credentials(
            Ticket(security_officer or self.security_officer or user),
            Ticket(user),
            Credential.fingerprints(samples, position),
        )

    async def unenroll(
        self,
        user: JSONWebToken,
        position: FingerPosition,
        security_officer: Optional[JSONWebToken] = None,
    ) -> None:
        await self.enroll_service.delete_user_credentials(
            Ticket(security_officer or self.security_officer or user),
            Ticket(user),
            Credential.fingerprints([], position),
        )

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------
    async def enumerate_devices(self) -> list[str]:
        """Return the ids of the connected readers; none yields an empty list."""

        response = await self._send(Method.ENUMERATE_DEVICES)
        if response is None:
            return []

        device_list = codec.decode_json(response.data, default="{}")
        if not isinstance(device_list, dict):
            raise DecodeError("Device list response must be an object")

        # DeviceIDs is itself a JSON encoded list.
        ids = device_list.get("DeviceIDs") or "[]"
        if isinstance(ids, str):
            try:
                ids = json.loads(ids)
            except ValueError as exc:
                raise DecodeError(f"Invalid device id list: {ids!r}") from exc
        if not isinstance(ids, list):
            raise DecodeError(f"Invalid device id list: {ids!r}")
        return [str(item) for item in ids]

    async def get_device_info(self, device_uid: str) -> Optional[DeviceInfo]:
        """Describe a reader; ``None`` when the service does not know it."""

        response = await self._send(Method.GET_DEVICE_INFO, {"DeviceID": device_uid})
        payload = codec.decode_json(response.data if response else None)
        if payload is None:
            return None
        return DeviceInfo.from_json(payload)

    async def start_acquisition(
        self, sample_format: SampleFormat, device_uid: Optional[str] = None
    ) -> None:
        await self._send(
            Method.START_ACQUISITION,
            {
                "DeviceID": device_uid or DEFAULT_DEVICE_ID,
                "SampleType": int(sample_format),
            },
        )

    async def stop_acquisition(self, device_uid: Optional[str] = None) -> None:
        await self._send(
            Method.STOP_ACQUISITION, {"DeviceID": device_uid or DEFAULT_DEVICE_ID}
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _send(
        self, method: Method, arguments: Optional[dict[str, Any]] = None
    ) -> Optional[Response]:
        parameters = codec.encode_json(arguments) if arguments is not None else None
        return await self.channel.send(Request(Command(method, parameters)))

    def _slot_for(self, event: Event) -> Optional[Handler]:
        return getattr(self, _SLOT_ATTRIBUTES[event.event_name], None)

    def _on_connection_failed(self) -> None:
        LOGGER.warning("Lost connection to the fingerprint service")
        self.emit(CommunicationFailed())

    def _process_notification(self, notification: Notification) -> None:
        try:
            event = to_event(notification)
        except UnrecognizedNotification as exc:
            LOGGER.info("%s (device=%s)", exc, notification.device)
            return
        except DecodeError as exc:
            LOGGER.warning(
                "Failed to decode notification %d from device %s: %s",
                notification.event,
                notification.device,
                exc,
            )
            return
        self.emit(event)
