"""Chrome native messaging protocol framing.

Implements the 4-byte little-endian length-prefix protocol
used by Chrome native messaging hosts for stdin/stdout
communication. A frame is the length prefix followed by
exactly that many payload bytes; the payload may not
exceed MAX_MESSAGE_SIZE.
"""
from __future__ import annotations

import struct

from nmhost.native_host.errors import (
    InvalidFramingError,
    MessageTooLargeError,
)

HEADER_SIZE = 4
MAX_MESSAGE_SIZE = 1024 * 1024

_UNSIGNED_HEADER = struct.Struct("<I")
_SIGNED_HEADER = struct.Struct("<i")


def check_message_size(size: int) -> None:
    """Raise MessageTooLargeError if size exceeds the ceiling."""
    if size > MAX_MESSAGE_SIZE:
        raise MessageTooLargeError(size, MAX_MESSAGE_SIZE)


def pack_header(length: int) -> bytes:
    """Return the 4-byte LE length prefix for a payload."""
    check_message_size(length)
    return _UNSIGNED_HEADER.pack(length)


def unpack_header(header: bytes) -> int:
    """Validate a 4-byte length prefix and return the declared length.

    Raises InvalidFramingError if the prefix is not 4 bytes or
    its bits are negative when read as a signed int32, and
    MessageTooLargeError if it exceeds MAX_MESSAGE_SIZE.
    """
    if len(header) != HEADER_SIZE:
        msg = (
            f"Length prefix must be {HEADER_SIZE} bytes,"
            f" got {len(header)}"
        )
        raise InvalidFramingError(msg)
    if _SIGNED_HEADER.unpack(header)[0] < 0:
        msg = "Message length cannot be negative"
        raise InvalidFramingError(msg)
    length: int = _UNSIGNED_HEADER.unpack(header)[0]
    check_message_size(length)
    return length


def encode_frame(payload: bytes) -> bytes:
    """Encode payload bytes as a complete frame.

    Returns 4-byte LE length prefix + payload.
    """
    return pack_header(len(payload)) + payload

