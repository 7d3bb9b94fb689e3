"""Async byte-stream abstraction used by the transceiver.

A ByteReader may return fewer bytes than requested and
returns b"" at end of stream. A ByteWriter may accept fewer
bytes than offered and reports how many it took. Adapters
cover blocking binary files (stdin/stdout buffers, BytesIO)
and asyncio stream pairs.
"""
from __future__ import annotations

import asyncio
from typing import IO, TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Buffer


class ByteReader(Protocol):
    """Inbound half of a native messaging transport."""

    async def read(self, n: int) -> bytes:
        """Read up to n bytes; b"" means end of stream."""
        ...

    def close(self) -> None:
        """Release the underlying handle."""
        ...


class ByteWriter(Protocol):
    """Outbound half of a native messaging transport."""

    async def write(self, data: Buffer) -> int:
        """Write some of data and return the number of bytes taken."""
        ...

    async def flush(self) -> None:
        """Push buffered bytes to the peer."""
        ...

    def close(self) -> None:
        """Release the underlying handle."""
        ...


class FileByteReader:
    """ByteReader over a blocking binary file object.

    Blocking reads run in a worker thread so the event loop
    stays responsive. read1() is preferred when available so
    a pipe delivers whatever is ready instead of waiting for
    the full request.
    """

    def __init__(self, file: IO[bytes]) -> None:
        self._file = file

    async def read(self, n: int) -> bytes:
        read = getattr(self._file, "read1", self._file.read)
        data: bytes = await asyncio.to_thread(read, n)
        return data

    def close(self) -> None:
        self._file.close()


class FileByteWriter:
    """ByteWriter over a blocking binary file object."""

    def __init__(self, file: IO[bytes]) -> None:
        self._file = file

    async def write(self, data: Buffer) -> int:
        written: int | None = await asyncio.to_thread(self._file.write, data)
        # Non-blocking raw files return None when nothing was taken
        return 0 if written is None else written

    async def flush(self) -> None:
        await asyncio.to_thread(self._file.flush)

    def close(self) -> None:
        self._file.close()


class AsyncioByteReader:
    """ByteReader over an asyncio.StreamReader."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        transport: asyncio.BaseTransport | None = None,
    ) -> None:
        self._reader = reader
        self._transport = transport

    async def read(self, n: int) -> bytes:
        return await self._reader.read(n)

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()


class AsyncioByteWriter:
    """ByteWriter over an asyncio.StreamWriter.

    StreamWriter buffers everything it is given, so each
    write reports the full length once the buffer drains.
    """

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer

    async def write(self, data: Buffer) -> int:
        chunk = bytes(data)
        self._writer.write(chunk)
        await self._writer.drain()
        return len(chunk)

    async def flush(self) -> None:
        await self._writer.drain()

    def close(self) -> None:
        self._writer.close()
