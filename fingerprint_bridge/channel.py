"""Command channel to the local fingerprint service.

The channel multiplexes two flows over one websocket: commands sent by the
client, each answered by exactly one response correlated by request id,
and notifications pushed by the service at any time. Frames are JSON text:

* ``{"type": "request", "channel": ..., "id": 1, "command": {...}}``
* ``{"type": "response", "id": 1, "response": {"Method": ..., "Result": ..., "Data": ...}}``
* ``{"type": "notification", "notification": {"Event": ..., "Device": ..., "Data": ...}}``
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import random
from typing import Any, Callable, Optional, Protocol

import aiohttp

from .config import ChannelConfig
from .errors import CommandFailed, DecodeError, TransportError
from .messages import Notification, Request, Response

LOGGER = logging.getLogger(__name__)

NotificationCallback = Callable[[Notification], None]
CommunicationErrorCallback = Callable[[], None]


class CommandChannel(Protocol):
    """Contract the fingerprint client expects from its channel."""

    on_notification: Optional[NotificationCallback]
    on_communication_error: Optional[CommunicationErrorCallback]

    async def send(self, request: Request) -> Optional[Response]:
        """Deliver a request and return its response.

        Raises:
            TransportError: the request could not be delivered or answered.
        """
        ...

    async def aclose(self) -> None:
        ...


def _is_failure(result: int) -> bool:
    # HRESULT style codes: the sign bit marks a failure.
    return result < 0 or result >= 0x80000000


class Channel:
    """Websocket implementation of :class:`CommandChannel`."""

    def __init__(
        self,
        name: str,
        config: Optional[ChannelConfig] = None,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.name = name
        self.config = config or ChannelConfig()

        self.on_notification: Optional[NotificationCallback] = None
        self.on_communication_error: Optional[CommunicationErrorCallback] = None

        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._listener_task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()
        self._connected = asyncio.Event()
        self._active_ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._pending: dict[int, asyncio.Future[Optional[Response]]] = {}
        self._request_id = 0
        self._degraded = False

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def send(self, request: Request) -> Optional[Response]:
        """Send a command and wait for the response correlated with it.

        Raises:
            TransportError: the service is unreachable, the connection drops
                before the response arrives, or the request times out.
            CommandFailed: the service answered with a failure result.
            DecodeError: the response frame is malformed.
        """

        self._ensure_listener()

        try:
            async with asyncio.timeout(self.config.connect_timeout_seconds):
                await self._connected.wait()
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"Fingerprint service at {self.config.url} is not reachable"
            ) from exc

        ws = self._active_ws
        if ws is None or ws.closed:
            raise TransportError("Fingerprint channel is not connected")

        self._request_id += 1
        request_id = self._request_id
        future: asyncio.Future[Optional[Response]] = (
            asyncio.get_running_loop().create_future()
        )
        self._pending[request_id] = future

        timeout = request.timeout or self.config.request_timeout_seconds
        method = int(request.command.method)
        try:
            await ws.send_json(
                {
                    "type": "request",
                    "channel": self.name,
                    "id": request_id,
                    "command": request.command.as_dict(),
                }
            )
            async with asyncio.timeout(timeout):
                response = await future
        except asyncio.TimeoutError as exc:
            LOGGER.warning(
                "Command %d timed out after %.1fs (id=%d)", method, timeout, request_id
            )
            raise TransportError(f"Command {method} timed out after {timeout:.1f}s") from exc
        except (aiohttp.ClientError, ConnectionResetError) as exc:
            raise TransportError(f"Failed to send command {method}: {exc}") from exc
        finally:
            self._pending.pop(request_id, None)

        if response is not None and _is_failure(response.result):
            raise CommandFailed(method, response.result)
        return response

    async def close(self) -> None:
        """Stop listening and close the underlying resources."""

        self._stop_event.set()

        if self._listener_task is not None:
            self._listener_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listener_task
            self._listener_task = None

        self._fail_pending("Fingerprint channel closed")

        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def aclose(self) -> None:  # alias for explicit closing
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ensure_listener(self) -> None:
        if self._stop_event.is_set():
            raise TransportError("Fingerprint channel is closed")
        if self._listener_task is None or self._listener_task.done():
            self._listener_task = asyncio.create_task(self._listen_loop())

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=None)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def _listen_loop(self) -> None:
        backoff = self.config.reconnect_initial_seconds

        while not self._stop_event.is_set():
            try:
                session = await self._ensure_session()
                async with session.ws_connect(self.config.url) as ws:
                    LOGGER.info(
                        "Connected to fingerprint service at %s (channel=%s)",
                        self.config.url,
                        self.name,
                    )
                    backoff = self.config.reconnect_initial_seconds
                    self._degraded = False
                    self._active_ws = ws
                    self._connected.set()
                    try:
                        async for message in ws:
                            if message.type == aiohttp.WSMsgType.TEXT:
                                self._dispatch(message.data)
                            elif message.type == aiohttp.WSMsgType.ERROR:
                                raise ws.exception() or TransportError("Websocket error")
                    finally:
                        self._connected.clear()
                        self._active_ws = None

                if self._stop_event.is_set():
                    break
                self._connection_lost("Fingerprint service closed the channel")
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if self._stop_event.is_set():
                    break
                LOGGER.warning("Fingerprint channel error: %s", exc)
                self._connection_lost(f"Fingerprint channel error: {exc}")

            # Full jitter keeps reconnecting clients from synchronising.
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=random.uniform(0, backoff)
                )
            backoff = min(max(backoff, 0.1) * 2, self.config.reconnect_max_seconds)

    def _connection_lost(self, reason: str) -> None:
        self._fail_pending(reason)

        if self._degraded:
            return
        self._degraded = True

        callback = self.on_communication_error
        if callback is None:
            return
        try:
            callback()
        except Exception:
            LOGGER.exception("Communication error callback failed")

    def _fail_pending(self, reason: str) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(TransportError(reason))

    def _dispatch(self, raw_data: str) -> None:
        try:
            frame = json.loads(raw_data)
        except json.JSONDecodeError:
            LOGGER.debug("Discarding non-JSON frame from fingerprint service")
            return

        if not isinstance(frame, dict):
            LOGGER.debug("Discarding frame that is not an object: %r", frame)
            return

        kind = frame.get("type")
        if kind == "response":
            self._resolve(frame)
        elif kind == "notification":
            self._notify(frame.get("notification"))
        else:
            LOGGER.debug("Ignoring frame of type %r", kind)

    def _resolve(self, frame: dict[str, Any]) -> None:
        request_id = frame.get("id")
        future = self._pending.get(request_id) if isinstance(request_id, int) else None
        if future is None or future.done():
            LOGGER.warning("Dropping response for unknown request id %r", request_id)
            return

        payload = frame.get("response")
        try:
            response = None if payload is None else Response.from_json(payload)
        except DecodeError as exc:
            future.set_exception(exc)
            return
        future.set_result(response)

    def _notify(self, payload: Any) -> None:
        try:
            notification = Notification.from_json(payload)
        except DecodeError as exc:
            LOGGER.warning("Discarding malformed notification: %s", exc)
            return

        callback = self.on_notification
        if callback is None:
            return
        try:
            callback(notification)
        except Exception:
            LOGGER.exception("Notification callback failed")
