"""
Value codec for cached API responses.

Values are stored as JSON produced by pydantic, so a cached model (or list
of models) decodes back to an equal value of the same type.
"""

from functools import lru_cache
from typing import Any, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..errors import CacheMissError, ValueDecodeError

T = TypeVar("T")


@lru_cache(maxsize=None)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


def encode_value(value: Any, type_: Type[T]) -> bytes:
    """
    Encode a value to bytes.

    Raises:
        pydantic_core.PydanticSerializationError: If the value cannot be serialized
    """
    return _adapter(type_).dump_json(value)


def decode_value(raw: Optional[bytes], type_: Type[T]) -> T:
    """
    Decode bytes previously produced by encode_value.

    Raises:
        CacheMissError: If raw is None (no value stored)
        ValueDecodeError: If raw is not a valid encoding of type_
    """
    if raw is None:
        raise CacheMissError("no cached value")

    try:
        return _adapter(type_).validate_json(raw)
    except ValidationError as e:
        raise ValueDecodeError(f"cannot decode cached {type_!r}: {e}") from e
