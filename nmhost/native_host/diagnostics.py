"""Diagnostic sinks and debug logging for stdio hosts.

When a host talks over stdout, any stray print() corrupts
the framing. These helpers route ordinary console text to a
chosen sink at process start. They only swap sys.stdout;
the transceiver's stdout buffer is captured beforehand and
keeps writing frames to the real stream.
"""
from __future__ import annotations

import io
import logging
import sys
from pathlib import Path
from typing import TextIO

LOGGER_NAME = "nmhost"
DEFAULT_LOG_FILE = Path.home() / ".local" / "state" / "nmhost" / "debug.log"
DEFAULT_MAX_LOG_LINES = 1000

DIAGNOSTICS_NULL = "null"
DIAGNOSTICS_STDERR = "stderr"
DIAGNOSTICS_LOG = "log"
DIAGNOSTIC_MODES = (DIAGNOSTICS_STDERR, DIAGNOSTICS_NULL, DIAGNOSTICS_LOG)


class NullWriter(io.TextIOBase):
    """Text sink that discards everything."""

    def writable(self) -> bool:
        return True

    def write(self, s: str) -> int:
        return len(s)


class LogWriter(io.TextIOBase):
    """Text sink that forwards complete lines to a logger at DEBUG."""

    def __init__(self, logger: logging.Logger) -> None:
        super().__init__()
        self._logger = logger
        self._pending = ""

    def writable(self) -> bool:
        return True

    def write(self, s: str) -> int:
        *lines, self._pending = (self._pending + s).split("\n")
        for line in lines:
            self._logger.debug("[stdout] %s", line)
        return len(s)

    def flush(self) -> None:
        if self._pending:
            self._logger.debug("[stdout] %s", self._pending)
            self._pending = ""


def redirect_console_output(stream: TextIO) -> TextIO:
    """Replace sys.stdout with stream and return the previous one."""
    previous = sys.stdout
    sys.stdout = stream
    return previous


def suppress_console_output() -> TextIO:
    """Discard console text. Returns the previous sys.stdout."""
    return redirect_console_output(NullWriter())


def redirect_console_output_to_stderr() -> TextIO:
    """Send console text to stderr. Returns the previous sys.stdout."""
    return redirect_console_output(sys.stderr)


def redirect_console_output_to_log(
    logger: logging.Logger | None = None,
) -> TextIO:
    """Send console text to the debug log. Returns the previous sys.stdout."""
    return redirect_console_output(
        LogWriter(logger or logging.getLogger(LOGGER_NAME)),
    )


def select_diagnostic_sink(mode: str) -> TextIO:
    """Return the text sink for a diagnostics mode name."""
    if mode == DIAGNOSTICS_NULL:
        return NullWriter()
    if mode == DIAGNOSTICS_STDERR:
        return sys.stderr
    if mode == DIAGNOSTICS_LOG:
        return LogWriter(logging.getLogger(LOGGER_NAME))
    msg = f"Unknown diagnostics mode: {mode}"
    raise ValueError(msg)


def _truncate_log(log_file: Path, max_lines: int) -> None:
    """Keep only the last max_lines lines of log_file."""
    try:
        lines = log_file.read_text().splitlines()
        if len(lines) > max_lines:
            log_file.write_text(
                "\n".join(lines[-max_lines:]) + "\n",
            )
    except OSError:
        pass


def setup_debug_logging(
    log_file: Path = DEFAULT_LOG_FILE,
    max_lines: int = DEFAULT_MAX_LOG_LINES,
) -> logging.Logger:
    """Set up file-based debug logging with line truncation.

    Never logs to stdout. If the log file cannot be opened
    the logger is returned without a handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Don't add handlers if already configured
    if logger.handlers:
        return logger

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        if log_file.exists():
            _truncate_log(log_file, max_lines)

        handler = logging.FileHandler(str(log_file))
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    except OSError:
        # If we can't write logs, continue without them
        pass

    return logger
