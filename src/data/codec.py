"""Blob codec — typed (de)serialization of persisted JSON values.

Every read goes through decode_blob(), which collapses all the ways a blob
can be bad (empty, "undefined", truncated JSON, wrong shape) into a single
CorruptBlobError. Callers decide whether that means "use a default" or
"report an error".
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CorruptBlobError(ValueError):
    """Raised when a stored value cannot be decoded into the expected type."""


def looks_like_json(raw: str) -> bool:
    """Cheap pre-check: a valid blob is always a JSON array or object."""
    stripped = raw.strip()
    return stripped.startswith("[") or stripped.startswith("{")


def decode_blob(raw: str | None, adapter: TypeAdapter[T]) -> T | None:
    """Decode a stored string. None means absent; bad data raises CorruptBlobError."""
    if raw is None:
        return None
    if not looks_like_json(raw):
        raise CorruptBlobError(f"not a JSON array/object: {raw[:40]!r}")
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        raise CorruptBlobError(f"{exc.error_count()} validation error(s): {exc.errors()[0]['msg']}") from exc


def encode_blob(value: Any, adapter: TypeAdapter[Any]) -> str:
    return adapter.dump_json(value, by_alias=True).decode()
