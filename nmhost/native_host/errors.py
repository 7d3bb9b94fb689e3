"""Error types for the native messaging host.

Exceptions raised by the transceiver, plus HostError, the
structured error carried in IOFailure by the echo host loop.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from pydantic_core import to_jsonable_python


class NativeMessagingError(Exception):
    """Base class for native messaging protocol errors."""


class InvalidArgumentError(NativeMessagingError, ValueError):
    """A transceiver was constructed with a missing or bad argument."""


class DisconnectedError(NativeMessagingError, EOFError):
    """The peer closed the stream before a full frame arrived."""

    def __init__(self, expected: int, received: int) -> None:
        self.expected = expected
        self.received = received
        super().__init__(
            f"Stream closed after {received} of {expected} bytes",
        )


class InvalidFramingError(NativeMessagingError):
    """The length prefix is not a valid frame header."""


class MessageTooLargeError(NativeMessagingError):
    """A payload exceeds the native messaging size ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"Message size {size} exceeds Chrome Native Messaging"
            f" maximum of {limit} bytes",
        )


class MalformedPayloadError(NativeMessagingError):
    """Payload bytes could not be decoded into the requested shape."""


class HostClosedError(NativeMessagingError):
    """An operation was attempted on a closed host."""


class MessageCancelledError(asyncio.CancelledError):
    """A read or write was cancelled before the frame completed.

    Subclasses asyncio.CancelledError so task cancellation
    keeps working for callers that do not care about the
    native messaging layer.
    """


@dataclass(frozen=True)
class HostError:
    """Structured error for host loop failures."""

    step_name: str
    error_type: str
    message: str
    context: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_exception(
        cls,
        step_name: str,
        exc: BaseException,
        **context: object,
    ) -> HostError:
        """Build a HostError describing exc."""
        return cls(
            step_name=step_name,
            error_type=type(exc).__name__,
            message=str(exc),
            context=dict(context),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the error as JSON-ready data for the debug log.

        Context values pydantic cannot encode fall back to str().
        """
        data: dict[str, Any] = to_jsonable_python(
            {
                "step_name": self.step_name,
                "error_type": self.error_type,
                "message": self.message,
                "context": self.context,
            },
            fallback=str,
        )
        return data

    def __str__(self) -> str:
        """Human-readable error representation for logging."""
        max_len = 500
        base = f"HostError[{self.step_name}] {self.error_type}: {self.message}"
        if self.context:
            ctx_str = str(self.context)
            if len(ctx_str) > max_len:
                ctx_str = ctx_str[: max_len - 3] + "..."
            base += f" | context={ctx_str}"
        return base
