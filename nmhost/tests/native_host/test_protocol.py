"""Tests for Chrome native messaging protocol framing."""
from __future__ import annotations

import struct

import pytest

from nmhost.native_host.errors import (
    InvalidFramingError,
    MessageTooLargeError,
)
from nmhost.native_host.protocol import (
    HEADER_SIZE,
    MAX_MESSAGE_SIZE,
    check_message_size,
    encode_frame,
    pack_header,
    unpack_header,
)


class TestConstants:
    """Tests for wire constants."""

    def test_max_message_size_is_one_mebibyte(self) -> None:
        """Ceiling matches Chrome's 1 MiB host message limit."""
        assert MAX_MESSAGE_SIZE == 1024 * 1024

    def test_header_size(self) -> None:
        """Length prefix is a 32-bit integer."""
        assert HEADER_SIZE == 4


class TestPackHeader:
    """Tests for pack_header -- 4-byte LE length prefix."""

    def test_little_endian(self) -> None:
        """Least significant byte comes first."""
        assert pack_header(0x01020304) == b"\x04\x03\x02\x01"

    def test_zero_length(self) -> None:
        """Zero-length payloads get an all-zero prefix."""
        assert pack_header(0) == b"\x00\x00\x00\x00"

    def test_limit_is_allowed(self) -> None:
        """A payload of exactly MAX_MESSAGE_SIZE is framed."""
        assert pack_header(MAX_MESSAGE_SIZE) == struct.pack(
            "<I", MAX_MESSAGE_SIZE,
        )

    def test_over_limit_raises(self) -> None:
        """One byte over the limit is rejected."""
        with pytest.raises(MessageTooLargeError) as exc_info:
            pack_header(MAX_MESSAGE_SIZE + 1)
        assert exc_info.value.size == MAX_MESSAGE_SIZE + 1
        assert exc_info.value.limit == MAX_MESSAGE_SIZE


class TestUnpackHeader:
    """Tests for unpack_header -- prefix validation."""

    def test_reads_little_endian(self) -> None:
        """Decodes the prefix as unsigned LE."""
        assert unpack_header(b"\x2a\x00\x00\x00") == 42

    def test_all_bits_set_is_negative(self) -> None:
        """0xFFFFFFFF is -1 as int32 and is rejected as negative."""
        with pytest.raises(InvalidFramingError, match="negative"):
            unpack_header(b"\xff\xff\xff\xff")

    def test_high_bit_set_is_negative(self) -> None:
        """Any prefix with the sign bit set is rejected."""
        with pytest.raises(InvalidFramingError):
            unpack_header(struct.pack("<I", 0x80000000))

    def test_over_limit_raises(self) -> None:
        """Declared length above the ceiling is rejected."""
        header = struct.pack("<I", MAX_MESSAGE_SIZE + 1)
        with pytest.raises(
            MessageTooLargeError,
            match="exceeds Chrome Native Messaging maximum",
        ):
            unpack_header(header)

    def test_limit_is_allowed(self) -> None:
        """Declared length of exactly the ceiling is accepted."""
        header = struct.pack("<I", MAX_MESSAGE_SIZE)
        assert unpack_header(header) == MAX_MESSAGE_SIZE

    def test_wrong_size_raises(self) -> None:
        """Prefix must be exactly 4 bytes."""
        with pytest.raises(InvalidFramingError, match="4 bytes"):
            unpack_header(b"\x01\x02")


class TestCheckMessageSize:
    """Tests for check_message_size."""

    def test_at_limit_passes(self) -> None:
        """Exactly the limit does not raise."""
        check_message_size(MAX_MESSAGE_SIZE)

    def test_over_limit_raises(self) -> None:
        """Over the limit raises with the limit in the message."""
        with pytest.raises(MessageTooLargeError, match=str(MAX_MESSAGE_SIZE)):
            check_message_size(MAX_MESSAGE_SIZE + 1)


class TestEncodeFrame:
    """Tests for encode_frame."""

    def test_prefix_plus_payload(self) -> None:
        """Frame is the LE length prefix followed by the payload."""
        body = b'{"action":"test"}'
        assert encode_frame(body) == struct.pack("<I", len(body)) + body

    def test_empty_payload(self) -> None:
        """Empty payload encodes to a bare zero prefix."""
        assert encode_frame(b"") == b"\x00\x00\x00\x00"

    def test_oversize_payload_raises(self) -> None:
        """The size ceiling applies before the frame is built."""
        with pytest.raises(MessageTooLargeError):
            encode_frame(b"x" * (MAX_MESSAGE_SIZE + 1))
