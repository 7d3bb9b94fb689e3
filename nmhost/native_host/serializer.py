"""Payload serializers for the native messaging host.

The transceiver only needs "value to string" and "string to
requested type"; any object satisfying Serializer can be
injected. JsonSerializer is the default: one-line JSON with
camelCase field names, validated through pydantic.
"""
from __future__ import annotations

import json
from typing import Any, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from nmhost.native_host.errors import MalformedPayloadError

T = TypeVar("T")


class Serializer(Protocol):
    """Converts application values to and from payload text."""

    def serialize(self, value: Any) -> str:
        """Encode a Python value as a string payload."""
        ...

    def deserialize(self, text: str, type_: type[T]) -> T:
        """Decode a string payload into an instance of type_."""
        ...


def camel_case_key(key: str) -> str:
    """Normalize a field name to initial-lowercase camelCase.

    snake_case names are joined ("date_time" -> "dateTime").
    A leading run of capitals is lowercased up to the start of
    the next word ("URLValue" -> "urlValue", "ID" -> "id").
    """
    if "_" in key.strip("_"):
        key = to_camel(key)
    end = 0
    while end < len(key) and key[end].isupper():
        if end > 0 and end + 1 < len(key) and not key[end + 1].isupper():
            break
        end += 1
    return key[:end].lower() + key[end:]


def _camel_case_keys(obj: object) -> object:
    if isinstance(obj, dict):
        return {
            camel_case_key(k) if isinstance(k, str) else k:
                _camel_case_keys(v)
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_camel_case_keys(x) for x in obj]
    return obj


class JsonSerializer:
    """JSON serializer backed by pydantic.

    Pydantic models, dataclasses, datetimes and plain
    containers are all accepted on the way out. On the way
    in, the JSON text is validated into the requested type
    (Any yields plain dicts and lists).
    """

    def __init__(self, *, camel_case: bool = True) -> None:
        self.camel_case = camel_case
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def _adapter(self, type_: Any) -> TypeAdapter[Any]:
        adapter = self._adapters.get(type_)
        if adapter is None:
            adapter = TypeAdapter(type_)
            self._adapters[type_] = adapter
        return adapter

    def serialize(self, value: Any) -> str:
        """Return value as single-line JSON text.

        Raises MalformedPayloadError for values JSON cannot
        carry, including NaN and infinite floats.
        """
        try:
            data = to_jsonable_python(value, by_alias=True)
        except PydanticSerializationError as exc:
            msg = f"Cannot serialize {type(value).__name__}: {exc}"
            raise MalformedPayloadError(msg) from exc
        if self.camel_case:
            data = _camel_case_keys(data)
        try:
            return json.dumps(
                data,
                separators=(",", ":"),
                ensure_ascii=False,
                allow_nan=False,
            )
        except ValueError as exc:
            msg = f"Cannot serialize {type(value).__name__}: {exc}"
            raise MalformedPayloadError(msg) from exc

    def deserialize(self, text: str, type_: type[T]) -> T:
        """Validate JSON text into type_.

        Raises MalformedPayloadError if text is not valid JSON
        or does not fit type_.
        """
        try:
            result: T = self._adapter(type_).validate_json(text)
        except ValidationError as exc:
            msg = f"Invalid JSON payload for {type_!r}: {exc}"
            raise MalformedPayloadError(msg) from exc
        return result
