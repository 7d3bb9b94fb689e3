"""Main entry point for the native messaging echo host.

Chrome starts the host once per connection and talks to it
over stdin/stdout until the extension disconnects. The host
answers every message it reads, then exits when the peer
closes stdin.

Usage:
    python -m nmhost.native_host.main
    nmhost-echo --diagnostics log --log-file /tmp/nmhost.log
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from returns.io import IOFailure, IOResult, IOSuccess
from returns.unsafe import unsafe_perform_io

from nmhost.native_host import io_ops
from nmhost.native_host.config import HostConfig
from nmhost.native_host.diagnostics import (
    DEFAULT_LOG_FILE,
    DEFAULT_MAX_LOG_LINES,
    DIAGNOSTIC_MODES,
    DIAGNOSTICS_STDERR,
    redirect_console_output,
    select_diagnostic_sink,
    setup_debug_logging,
)
from nmhost.native_host.errors import (
    DisconnectedError,
    HostError,
    NativeMessagingError,
)
from nmhost.native_host.handler import (
    EchoMessage,
    error_message,
    handle_message,
)
from nmhost.native_host.transceiver import (
    DEFAULT_ENCODING,
    NativeMessagingHost,
)

if TYPE_CHECKING:
    from nmhost.native_host.streams import ByteReader, ByteWriter

_logger = logging.getLogger("nmhost.main")


async def _report_error(
    host: NativeMessagingHost,
    exc: BaseException,
) -> None:
    """Tell the peer why the conversation is ending (fail-open)."""
    try:
        await host.write_message(error_message(exc))
    except NativeMessagingError:
        _logger.warning("Could not report error to peer", exc_info=True)


async def run_echo_loop(
    host: NativeMessagingHost,
) -> IOResult[int, HostError]:
    """Answer messages until the peer disconnects.

    Returns IOSuccess with the number of messages answered
    when the peer closes the stream. Any other protocol
    error ends the conversation: the error is reported to
    the peer when possible and returned as IOFailure.
    """
    handled = 0
    while True:
        try:
            request = await host.read_message(EchoMessage)
            _logger.debug("Request received: %s", request.value[:500])
            await host.write_message(handle_message(request))
        except DisconnectedError:
            _logger.debug("Peer disconnected after %d messages", handled)
            return IOSuccess(handled)
        except NativeMessagingError as exc:
            _logger.exception("Conversation failed")
            await _report_error(host, exc)
            return IOFailure(
                HostError.from_exception(
                    "run_echo_loop",
                    exc,
                    messages_handled=handled,
                ),
            )
        handled += 1


def serve(
    config: HostConfig,
    reader: ByteReader,
    writer: ByteWriter,
) -> IOResult[int, HostError]:
    """Run one echo conversation over the given streams.

    Console text is routed to the configured diagnostic sink
    for the duration of the conversation.
    """
    setup_debug_logging(config.log_file, config.max_log_lines)
    _logger.debug("--- host started ---")
    previous = redirect_console_output(
        select_diagnostic_sink(config.diagnostics),
    )
    host = NativeMessagingHost(reader, writer, config.encoding)
    try:
        result = asyncio.run(run_echo_loop(host))
    finally:
        host.close()
        redirect_console_output(previous)
    _logger.debug("--- host finished ---")
    return result


# --- CLI Entry Point ---


@click.command()
@click.option(
    "--encoding",
    default=DEFAULT_ENCODING,
    show_default=True,
    help="Text encoding of message payloads",
)
@click.option(
    "--diagnostics",
    type=click.Choice(DIAGNOSTIC_MODES),
    default=DIAGNOSTICS_STDERR,
    show_default=True,
    help="Where console text printed by the host goes",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_LOG_FILE,
    help="Debug log file",
)
@click.option(
    "--max-log-lines",
    default=DEFAULT_MAX_LOG_LINES,
    type=int,
    help="Lines kept when the debug log is truncated on startup",
)
def main(
    *,
    encoding: str,
    diagnostics: str,
    log_file: Path,
    max_log_lines: int,
) -> None:
    """Run the native messaging echo host over stdin/stdout."""
    config_result = HostConfig(
        encoding=encoding,
        diagnostics=diagnostics,
        log_file=log_file,
        max_log_lines=max_log_lines,
    ).validate()
    if isinstance(config_result, IOFailure):
        err = unsafe_perform_io(config_result.failure())
        io_ops.write_stderr(f"Invalid configuration: {err.message}\n")
        sys.exit(2)
    config = unsafe_perform_io(config_result.unwrap())

    # Capture the stdout buffer before console output is redirected
    reader, writer = io_ops.open_stdio_streams()
    result = serve(config, reader, writer)
    if isinstance(result, IOFailure):
        err = unsafe_perform_io(result.failure())
        _logger.error("Host failed: %s", json.dumps(err.to_dict()))
        io_ops.write_stderr(f"Host failed: {err}\n")
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
