from typing import Any, Optional

import pytest

from fingerprint_bridge import codec
from fingerprint_bridge.errors import TransportError
from fingerprint_bridge.messages import Method, Request, Response


class FakeChannel:
    """In-memory stand-in for the websocket channel."""

    def __init__(self) -> None:
        self.on_notification = None
        self.on_communication_error = None
        self.requests: list[Request] = []
        self.responses: dict[Method, Optional[Response]] = {}
        self.failure: Optional[Exception] = None
        self.closed = False

    def respond(self, method: Method, payload: Any = None, *, raw: Optional[str] = None) -> None:
        data = raw if raw is not None else (
            codec.encode_json(payload) if payload is not None else None
        )
        self.responses[method] = Response(method=int(method), data=data)

    def respond_nothing(self, method: Method) -> None:
        self.responses[method] = None

    async def send(self, request: Request) -> Optional[Response]:
        self.requests.append(request)
        if self.failure is not None:
            raise self.failure
        method = request.command.method
        if method not in self.responses:
            return Response(method=int(method))
        return self.responses[method]

    async def aclose(self) -> None:
        self.closed = True

    def decoded_parameters(self, index: int = -1) -> Any:
        return codec.decode_json(self.requests[index].command.parameters)

    def fail_with(self, message: str) -> None:
        self.failure = TransportError(message)


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()
