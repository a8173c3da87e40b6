"""Payload encoding helpers.

Command parameters travel as base64url encoded JSON text; response and
notification data come back the same way.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Optional

from .errors import DecodeError


def to_base64url(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""

    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def from_base64url(text: str) -> bytes:
    """Decode base64url text, tolerating missing padding."""

    padded = text + "=" * (-len(text) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise DecodeError(f"Invalid base64url payload: {exc}") from exc


def base64url_from_utf16(text: str) -> str:
    """Encode a native (UTF-16 in the browser SDK) string for the wire.

    The service expects the UTF-8 bytes of the text, so this is the
    counterpart of :func:`utf8_from_base64url`.
    """

    return to_base64url(text.encode("utf-8"))


def utf8_from_base64url(text: str) -> str:
    try:
        return from_base64url(text).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Payload is not valid UTF-8: {exc}") from exc


def encode_json(value: Any) -> str:
    return base64url_from_utf16(json.dumps(value, separators=(",", ":")))


def decode_json(data: Optional[str], default: str = "null") -> Any:
    """Decode a base64url JSON blob; an empty or absent blob decodes ``default``."""

    if data is not None and not isinstance(data, str):
        raise DecodeError(f"Payload must be base64url text, got {type(data).__name__}")
    text = utf8_from_base64url(data) if data else default
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Payload is not valid JSON: {exc.msg}") from exc
