"""I/O boundary for native messaging host.

All process-level I/O (stdin, stdout, stderr) goes through
here. Tests mock these functions at this boundary.
"""
from __future__ import annotations

import sys
from typing import IO

from returns.io import IOFailure, IOResult, IOSuccess

from nmhost.native_host.errors import HostError
from nmhost.native_host.streams import FileByteReader, FileByteWriter


def _get_stdin_buffer() -> IO[bytes]:
    """Return stdin binary buffer. Mockable seam."""
    return sys.stdin.buffer


def _get_stdout_buffer() -> IO[bytes]:
    """Return stdout binary buffer. Mockable seam."""
    return sys.stdout.buffer


def open_stdio_streams() -> tuple[FileByteReader, FileByteWriter]:
    """Wrap stdin and stdout binary buffers as async byte streams.

    The stdout buffer is captured at call time; redirecting
    sys.stdout afterwards leaves the returned writer intact.
    """
    return (
        FileByteReader(_get_stdin_buffer()),
        FileByteWriter(_get_stdout_buffer()),
    )


def write_stderr(
    message: str,
) -> IOResult[None, HostError]:
    """Write message to stderr (fail-open diagnostics).

    Returns IOSuccess(None) or IOFailure on error.
    """
    try:
        sys.stderr.write(message)
        sys.stderr.flush()
    except OSError as exc:
        return IOFailure(
            HostError(
                step_name="io_ops.write_stderr",
                error_type="StderrWriteError",
                message=f"Failed to write to stderr: {exc}",
                context={"original_message": message},
            ),
        )
    return IOSuccess(None)
