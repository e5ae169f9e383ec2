"""
Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic text form of tree and access list snapshots.

Snapshots only carry JSON-native scalars: field elements already rendered
as 0x hex strings, bit lists of 0/1 ints, and the access type label. The
canonical text sorts object keys and drops all insignificant whitespace, so
two snapshots of identical state compare equal byte for byte.
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import CanonicalizationException

CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")

_SCALARS = (bool, int, str)


def _child_path(path: str, key: Any) -> str:
    if isinstance(key, int):
        return f"{path}[{key}]"
    return f"{path}.{key}" if path else str(key)


def canonicalize_value(value: Any, path: str = "") -> Any:
    """
    Reduce a value to plain JSON types.

    Pydantic models are dumped by alias with None fields left out, enums
    become their values and raw bytes become 0x hex. Floats and any other
    type are rejected, since a snapshot never needs them.

    Raises:
        CanonicalizationException: With the offending path in details
    """
    if value is None:
        return None

    if isinstance(value, Enum):
        return canonicalize_value(value.value, path)

    if isinstance(value, _SCALARS):
        return value

    if isinstance(value, bytes):
        return "0x" + value.hex()

    if isinstance(value, BaseModel):
        try:
            dumped = value.model_dump(mode="json", by_alias=True, exclude_none=True)
        except ValueError as e:
            raise CanonicalizationException(
                message=f"Cannot serialize {type(value).__name__}: {e}",
                details={"path": path, "type": type(value).__name__},
            ) from e
        return canonicalize_value(dumped, path)

    if isinstance(value, dict):
        return {
            str(key): canonicalize_value(item, _child_path(path, key))
            for key, item in value.items()
            if item is not None
        }

    if isinstance(value, (list, tuple)):
        return [canonicalize_value(item, _child_path(path, i)) for i, item in enumerate(value)]

    raise CanonicalizationException(
        message=f"Cannot canonicalize value of type {type(value).__name__}",
        details={"path": path, "type": type(value).__name__},
    )


def dumps_canonical(obj: Any) -> str:
    """
    Serialize a snapshot (or any plain structure) to canonical JSON text.

    Example:
        >>> dumps_canonical({"b": 2, "a": [1, 0]})
        '{"a":[1,0],"b":2}'
    """
    canonical = canonicalize_value(obj)
    try:
        return json.dumps(
            canonical,
            sort_keys=True,
            separators=CANONICAL_JSON_SEPARATORS,
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as e:
        raise CanonicalizationException(
            message=f"Failed to serialize to canonical JSON: {e}",
            details={"type": type(obj).__name__},
        ) from e


def loads_canonical(json_str: str) -> Any:
    """
    Parse snapshot text back into plain Python structures.

    Raises:
        CanonicalizationException: If the text is not valid JSON
    """
    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, TypeError) as e:
        raise CanonicalizationException(
            message=f"Failed to parse JSON: {e}",
            details={"error": str(e)},
        ) from e
