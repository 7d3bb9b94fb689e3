"""Echo request handler.

Replies to each incoming message with the text it carried
and the time the peer stamped on it.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EchoMessage(BaseModel):
    """Message exchanged with the extension.

    On the wire: {"value": ..., "dateTime": ...}.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        validate_by_name=True,
        validate_by_alias=True,
    )

    value: str
    date_time: datetime = Field(default_factory=datetime.now)


def handle_message(request: EchoMessage) -> EchoMessage:
    """Return the echo reply for request."""
    return EchoMessage(
        value=f"You said {request.value} at {request.date_time}",
    )


def error_message(exc: BaseException) -> EchoMessage:
    """Build the message reported to the peer when a conversation fails."""
    return EchoMessage(value=f"Error: {exc}")
