"""Shared test fixtures for the nmhost test suite."""
from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from nmhost.native_host.transceiver import NativeMessagingHost
from nmhost.tests.fakes import FakeReader, FakeWriter

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def fake_writer() -> FakeWriter:
    """Return an empty FakeWriter."""
    return FakeWriter()


@pytest.fixture
def make_host(
    fake_writer: FakeWriter,
) -> Callable[..., NativeMessagingHost]:
    """Return a factory building a host that reads the given bytes."""

    def _make(
        data: bytes = b"",
        chunk_size: int | None = None,
    ) -> NativeMessagingHost:
        return NativeMessagingHost(FakeReader(data, chunk_size), fake_writer)

    return _make
