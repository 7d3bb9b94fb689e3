"""Runtime configuration for the stdio echo host."""
from __future__ import annotations

import codecs
from dataclasses import dataclass, field
from pathlib import Path

from returns.io import IOFailure, IOResult, IOSuccess

from nmhost.native_host.diagnostics import (
    DEFAULT_LOG_FILE,
    DEFAULT_MAX_LOG_LINES,
    DIAGNOSTIC_MODES,
    DIAGNOSTICS_STDERR,
)
from nmhost.native_host.errors import HostError
from nmhost.native_host.transceiver import DEFAULT_ENCODING


@dataclass(frozen=True)
class HostConfig:
    """Settings chosen at process start.

    encoding: Codec for payload text.
    diagnostics: Where stray console text goes (stderr, null, log).
    log_file: Debug log path.
    max_log_lines: Lines kept when the debug log is truncated.
    """

    encoding: str = DEFAULT_ENCODING
    diagnostics: str = DIAGNOSTICS_STDERR
    log_file: Path = field(default=DEFAULT_LOG_FILE)
    max_log_lines: int = DEFAULT_MAX_LOG_LINES

    def validate(self) -> IOResult[HostConfig, HostError]:
        """Check every field. Returns IOResult, never raises."""
        try:
            codecs.lookup(self.encoding)
        except LookupError:
            return IOFailure(
                HostError(
                    step_name="config.validate",
                    error_type="InvalidEncodingError",
                    message=f"Unknown encoding: {self.encoding}",
                    context={"encoding": self.encoding},
                ),
            )
        if self.diagnostics not in DIAGNOSTIC_MODES:
            return IOFailure(
                HostError(
                    step_name="config.validate",
                    error_type="InvalidDiagnosticsError",
                    message=(
                        f"Unknown diagnostics mode: {self.diagnostics}"
                    ),
                    context={"allowed": list(DIAGNOSTIC_MODES)},
                ),
            )
        if self.max_log_lines < 1:
            return IOFailure(
                HostError(
                    step_name="config.validate",
                    error_type="InvalidMaxLogLinesError",
                    message="max_log_lines must be at least 1",
                    context={"max_log_lines": self.max_log_lines},
                ),
            )
        return IOSuccess(self)
