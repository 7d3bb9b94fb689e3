"""Framed message transceiver for Chrome native messaging.

NativeMessagingHost owns one inbound and one outbound byte
stream and moves whole frames across them: a 4-byte LE
length prefix followed by exactly that many payload bytes.

Reads and writes are coroutines but the host does no
locking. Callers must not run two reads (or two writes)
concurrently; one read loop and one write loop on separate
tasks is fine since the streams share no state.
"""
from __future__ import annotations

import asyncio
import codecs
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from nmhost.native_host import io_ops
from nmhost.native_host.errors import (
    DisconnectedError,
    HostClosedError,
    InvalidArgumentError,
    MalformedPayloadError,
    MessageCancelledError,
)
from nmhost.native_host.protocol import (
    HEADER_SIZE,
    encode_frame,
    unpack_header,
)
from nmhost.native_host.serializer import JsonSerializer

if TYPE_CHECKING:
    from collections.abc import Iterator
    from types import TracebackType

    from nmhost.native_host.serializer import Serializer
    from nmhost.native_host.streams import ByteReader, ByteWriter

T = TypeVar("T")

DEFAULT_ENCODING = "utf-8"
DEFAULT_SERIALIZER = JsonSerializer()


@contextmanager
def _cancellable(operation: str) -> Iterator[None]:
    """Re-raise task cancellation as MessageCancelledError."""
    try:
        yield
    except MessageCancelledError:
        raise
    except asyncio.CancelledError as exc:
        msg = f"{operation} cancelled before the frame completed"
        raise MessageCancelledError(msg) from exc


class NativeMessagingHost:
    """Reads and writes native messaging frames over a stream pair."""

    def __init__(
        self,
        reader: ByteReader,
        writer: ByteWriter,
        encoding: str = DEFAULT_ENCODING,
        serializer: Serializer = DEFAULT_SERIALIZER,
        *,
        owns_streams: bool = False,
    ) -> None:
        if reader is None:
            msg = "reader must not be None"
            raise InvalidArgumentError(msg)
        if writer is None:
            msg = "writer must not be None"
            raise InvalidArgumentError(msg)
        if not encoding:
            msg = "encoding must be a codec name"
            raise InvalidArgumentError(msg)
        try:
            codecs.lookup(encoding)
        except LookupError as exc:
            msg = f"Unknown encoding: {encoding}"
            raise InvalidArgumentError(msg) from exc
        if serializer is None:
            msg = "serializer must not be None"
            raise InvalidArgumentError(msg)

        self._reader = reader
        self._writer = writer
        self._encoding = encoding
        self._serializer = serializer
        self._owns_streams = owns_streams
        self._closed = False

    @classmethod
    def stdio(
        cls,
        encoding: str = DEFAULT_ENCODING,
        serializer: Serializer = DEFAULT_SERIALIZER,
        *,
        owns_streams: bool = False,
    ) -> NativeMessagingHost:
        """Build a host over this process's stdin and stdout.

        Call before redirecting console output: the stdout
        buffer is captured here, so later sys.stdout swaps do
        not affect framing.
        """
        reader, writer = io_ops.open_stdio_streams()
        return cls(
            reader,
            writer,
            encoding,
            serializer,
            owns_streams=owns_streams,
        )

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def owns_streams(self) -> bool:
        return self._owns_streams

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            msg = "Native messaging host is closed"
            raise HostClosedError(msg)

    # -- Reading --

    async def _read_exact(self, count: int) -> bytes:
        buffer = bytearray()
        while len(buffer) < count:
            chunk = await self._reader.read(count - len(buffer))
            if not chunk:
                raise DisconnectedError(count, len(buffer))
            buffer += chunk
        return bytes(buffer)

    async def read_message_bytes(self) -> bytes:
        """Read one frame and return its raw payload.

        Raises DisconnectedError if the stream ends mid-frame,
        InvalidFramingError for a negative length prefix and
        MessageTooLargeError for one above MAX_MESSAGE_SIZE.
        The payload is never read in the error cases.
        """
        self._check_open()
        with _cancellable("Read"):
            header = await self._read_exact(HEADER_SIZE)
            length = unpack_header(header)
            if length == 0:
                return b""
            return await self._read_exact(length)

    async def read_message_string(self) -> str:
        """Read one frame and return its payload as text."""
        payload = await self.read_message_bytes()
        try:
            return payload.decode(self._encoding)
        except UnicodeDecodeError as exc:
            msg = f"Payload is not valid {self._encoding}: {exc}"
            raise MalformedPayloadError(msg) from exc

    async def read_message(self, type_: type[T] = Any) -> T:  # type: ignore[assignment]
        """Read one frame and deserialize it into type_.

        With the default type_ the JSON is returned as plain
        dicts, lists and scalars. An empty payload is not valid
        JSON and raises MalformedPayloadError.
        """
        text = await self.read_message_string()
        return self._serializer.deserialize(text, type_)

    # -- Writing --

    async def _write_all(self, data: bytes) -> None:
        view = memoryview(data)
        sent = 0
        while sent < len(data):
            try:
                written = await self._writer.write(view[sent:])
            except OSError as exc:
                # Broken pipe: Chrome closed its end of stdout
                raise DisconnectedError(len(data), sent) from exc
            if written <= 0:
                raise DisconnectedError(len(data), sent)
            sent += written
        try:
            await self._writer.flush()
        except OSError as exc:
            raise DisconnectedError(len(data), sent) from exc

    async def write_message_bytes(self, payload: bytes) -> None:
        """Write an already-encoded payload as one frame.

        Raises MessageTooLargeError before touching the stream
        if the payload exceeds MAX_MESSAGE_SIZE. A peer that
        stops accepting bytes raises DisconnectedError.
        """
        self._check_open()
        frame = encode_frame(payload)
        with _cancellable("Write"):
            await self._write_all(frame)

    async def write_message_string(self, text: str) -> None:
        """Encode text with the host encoding and write it as one frame."""
        self._check_open()
        try:
            # The byte count, not the character count, is framed
            payload = text.encode(self._encoding)
        except UnicodeEncodeError as exc:
            msg = f"Payload cannot be encoded as {self._encoding}: {exc}"
            raise MalformedPayloadError(msg) from exc
        await self.write_message_bytes(payload)

    async def write_message(self, value: object) -> None:
        """Serialize value and write it as one frame."""
        self._check_open()
        await self.write_message_string(self._serializer.serialize(value))

    # -- Teardown --

    def close(self) -> None:
        """Close the host. Safe to call more than once.

        Streams are closed only when the host owns them.
        """
        if self._closed:
            return
        self._closed = True
        if self._owns_streams:
            self._reader.close()
            if self._writer is not self._reader:
                self._writer.close()

    async def __aenter__(self) -> NativeMessagingHost:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
