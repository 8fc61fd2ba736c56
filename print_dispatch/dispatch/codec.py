"""
Payload codec: keeps printer command streams intact through text transports.

Receipt payloads travel inside JSON bodies and are stored as text. Streams
that carry device control codes (ESC/POS and StarPRNT sequences start with
ESC or GS) are base64-encoded on the way in and decoded right before the
bytes are handed to the printer. Plain prose is stored and delivered as-is.

All functions are pure.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Tuple, Union

from escpos.constants import ESC, GS

from .errors import DecodeError

logger = logging.getLogger(__name__)

Payload = Union[str, bytes]

UNENCODED = "unencoded"
BASE64 = "base64"

NUL = b"\x00"
DLE = b"\x10"
FS = b"\x1c"

# Bytes that introduce or belong to printer command sequences.
CONTROL_CODES = frozenset(c[0] for c in (NUL, DLE, ESC, FS, GS))


def payload_bytes(payload: Payload) -> bytes:
    """
    Convert a payload to the bytes a printer should receive.

    Text whose code points all fit in a byte is mapped one byte per code
    point, which is how command streams are carried inside JSON strings.
    Wider text falls back to UTF-8.
    """
    if isinstance(payload, bytes):
        return payload
    try:
        return payload.encode("latin-1")
    except UnicodeEncodeError:
        return payload.encode("utf-8")


def payload_text(data: bytes) -> str:
    """Byte-for-byte text form of a command stream (inverse of payload_bytes)."""
    return data.decode("latin-1")


def needs_encoding(payload: Payload) -> bool:
    """True if the payload contains any device control code."""
    if isinstance(payload, bytes):
        return any(b in CONTROL_CODES for b in payload)
    return any(ord(c) in CONTROL_CODES for c in payload)


def encode(payload: Payload) -> Tuple[Payload, str]:
    """
    Return (stored_payload, marker).

    Payloads without control codes come back unchanged with the
    "unencoded" marker; everything else becomes base64 text.
    """
    if not needs_encoding(payload):
        return payload, UNENCODED
    return base64.b64encode(payload_bytes(payload)).decode("ascii"), BASE64


def decode_strict(stored: Payload, marker: str) -> bytes:
    """
    Reverse encode(). Raises DecodeError on corrupt data or unknown markers.
    """
    if marker in (None, "", UNENCODED):
        if isinstance(stored, bytes):
            return stored
        return stored.encode("utf-8")
    if marker == BASE64:
        try:
            return base64.b64decode(stored, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"invalid base64 payload: {e}") from e
    raise DecodeError(f"unknown payload encoding: {marker!r}")


def decode(stored: Payload, marker: str) -> bytes:
    """
    Reverse encode(), degrading to the stored bytes when decoding fails so a
    damaged job still prints something instead of being dropped.
    """
    try:
        return decode_strict(stored, marker)
    except DecodeError as e:
        logger.warning("payload decode failed marker=%s: %s; delivering stored bytes", marker, e)
        return payload_bytes(stored)


__all__ = [
    "BASE64",
    "CONTROL_CODES",
    "UNENCODED",
    "decode",
    "decode_strict",
    "encode",
    "needs_encoding",
    "payload_bytes",
    "payload_text",
]
