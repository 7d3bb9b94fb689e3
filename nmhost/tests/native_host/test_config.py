"""Tests for HostConfig."""
from __future__ import annotations

from pathlib import Path

from returns.io import IOFailure, IOSuccess
from returns.unsafe import unsafe_perform_io

from nmhost.native_host.config import HostConfig
from nmhost.native_host.diagnostics import DEFAULT_LOG_FILE


class TestHostConfig:
    """Tests for HostConfig defaults and validation."""

    def test_defaults(self) -> None:
        """UTF-8 payloads, console text to stderr, default log file."""
        config = HostConfig()
        assert config.encoding == "utf-8"
        assert config.diagnostics == "stderr"
        assert config.log_file == DEFAULT_LOG_FILE
        assert config.max_log_lines == 1000

    def test_valid_config_passes(self) -> None:
        """A valid config validates to itself."""
        config = HostConfig(diagnostics="log", log_file=Path("/tmp/x.log"))  # noqa: S108
        result = config.validate()
        assert isinstance(result, IOSuccess)
        assert unsafe_perform_io(result.unwrap()) is config

    def test_unknown_encoding_fails(self) -> None:
        """Unknown codecs are rejected."""
        result = HostConfig(encoding="klingon").validate()
        assert isinstance(result, IOFailure)
        err = unsafe_perform_io(result.failure())
        assert err.error_type == "InvalidEncodingError"
        assert "klingon" in err.message

    def test_unknown_diagnostics_fails(self) -> None:
        """Diagnostics mode must be one of the known sinks."""
        result = HostConfig(diagnostics="stdout").validate()
        assert isinstance(result, IOFailure)
        err = unsafe_perform_io(result.failure())
        assert err.error_type == "InvalidDiagnosticsError"
        assert err.context["allowed"] == ["stderr", "null", "log"]

    def test_non_positive_max_log_lines_fails(self) -> None:
        """At least one log line must be kept."""
        result = HostConfig(max_log_lines=0).validate()
        assert isinstance(result, IOFailure)
        err = unsafe_perform_io(result.failure())
        assert err.error_type == "InvalidMaxLogLinesError"
