"""JSON codec used by every cache backend.

Backends never see live objects: they store the opaque string produced by
:func:`encode_value` and hand it back to :func:`decode_value` on read.  Adding
a new cached type therefore needs no backend change, only a pydantic-capable
type (a ``BaseModel``, dataclass, builtin container, or a generic alias such
as ``list[Recipe]``).

Decoding is strict.  A payload that is not JSON, or that does not validate
against the requested type, raises :class:`DeserializationError`; callers
must not treat corrupt data as a cache miss.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from src.utils.errors import DeserializationError, InvalidArgumentError


@lru_cache(maxsize=128)
def _adapter(value_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


def encode_value(value: Any) -> str:
    """Serialize *value* to a JSON string.

    Raises
    ------
    InvalidArgumentError
        If *value* is ``None`` or cannot be represented as JSON.
    """
    if value is None:
        raise InvalidArgumentError("Cannot cache a None value")
    try:
        return to_json(value).decode("utf-8")
    except PydanticSerializationError as exc:
        raise InvalidArgumentError(
            f"Value of type {type(value).__name__} is not JSON-serializable: {exc}"
        ) from exc


def decode_value(payload: str, value_type: Any = None, *, key: str | None = None) -> Any:
    """Decode a JSON *payload*, optionally validating it into *value_type*.

    Without *value_type* the plain JSON structure (dict / list / scalar) is
    returned.
    """
    if value_type is None:
        try:
            return json.loads(payload)
        except (json.JSONDecodeError, TypeError) as exc:
            raise DeserializationError(
                f"Cached payload for {key!r} is not valid JSON: {exc}", key=key
            ) from exc

    try:
        return _adapter(value_type).validate_json(payload)
    except ValidationError as exc:
        raise DeserializationError(
            f"Cached payload for {key!r} does not match {value_type!r}: "
            f"{exc.error_count()} validation error(s)",
            key=key,
        ) from exc
