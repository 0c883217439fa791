"""JSON encoding of request payloads and decoding of response bodies."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

import pydantic_core
from pydantic import TypeAdapter, ValidationError

from libstorage_client.errors import DecodeError, EncodeError

T = TypeVar("T")


def encode_payload(payload: Any) -> bytes | None:
    """Serialize ``payload`` to JSON bytes. ``None`` means no request body."""
    if payload is None:
        return None
    try:
        return pydantic_core.to_json(payload, by_alias=True)
    except pydantic_core.PydanticSerializationError as e:
        raise EncodeError(f"cannot encode payload of type {type(payload).__name__}: {e}") from e


def decode_body(body: bytes, reply_type: type[T]) -> T:
    """Parse JSON ``body`` and validate it into ``reply_type``."""
    try:
        return _adapter(reply_type).validate_json(body)
    except ValidationError as e:
        raise DecodeError(f"cannot decode response into {_type_name(reply_type)}: {e}") from e


@lru_cache(maxsize=64)
def _adapter(reply_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(reply_type)


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or repr(tp)
