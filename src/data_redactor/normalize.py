"""
Value classification and object normalization.

Objects are turned into dicts either through their own ``to_dict()`` method or
through a JSON round trip over their public attributes. A round trip fails on
reference cycles and on values JSON cannot represent.
"""

from __future__ import annotations

import dataclasses
import datetime
import decimal
import enum
import json
import uuid
from collections.abc import Mapping
from pathlib import PurePath
from typing import Any, Protocol, runtime_checkable

# Leaf values the walker never tries to normalize
SCALAR_TYPES: tuple[type, ...] = (
    str,
    bytes,
    int,
    float,
    bool,
    type(None),
    datetime.date,
    datetime.time,
    datetime.timedelta,
    decimal.Decimal,
    uuid.UUID,
    enum.Enum,
    PurePath,
)


@runtime_checkable
class SupportsToDict(Protocol):
    """Objects that know how to convert themselves to a dict."""

    def to_dict(self) -> Mapping[str, Any]: ...


class NormalizationError(Exception):
    """An object could not be converted into a collection."""

    def __init__(self, reason: str, cause: BaseException | None = None):
        super().__init__(reason if cause is None else f"{reason}: {cause}")
        self.reason = reason
        self.cause = cause


def is_collection(value: Any) -> bool:
    """Check if a value is a keyed or ordered collection."""
    return isinstance(value, (Mapping, list, tuple))


def is_scalar(value: Any) -> bool:
    return isinstance(value, SCALAR_TYPES)


def is_opaque_object(value: Any) -> bool:
    """Check if a value is a structured object that is neither scalar nor collection."""
    return not is_scalar(value) and not is_collection(value)


def _json_default(obj: Any) -> Any:
    """JSON ``default`` hook: encode leaf values as strings, objects as their public attributes."""
    if isinstance(obj, (datetime.date, datetime.time)):
        return obj.isoformat()
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (datetime.timedelta, decimal.Decimal, uuid.UUID, PurePath)):
        return str(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: getattr(obj, f.name)
            for f in dataclasses.fields(obj)
            if not f.name.startswith("_")
        }
    try:
        attributes = vars(obj)
    except TypeError:
        raise TypeError(
            f"Object of type {type(obj).__name__} is not JSON serializable"
        ) from None
    return {k: v for k, v in attributes.items() if not k.startswith("_")}


def json_round_trip(obj: Any) -> Any:
    """
    Serialize an object to JSON and decode it again.

    Raises:
        NormalizationError: On serialization failure (including cycles)
    """
    try:
        encoded = json.dumps(obj, default=_json_default)
    except (TypeError, ValueError, RecursionError) as e:
        raise NormalizationError("exception_during_processing", e) from e
    return json.loads(encoded)


def to_collection(obj: Any, *, fallback: bool = True) -> Mapping[str, Any] | list[Any]:
    """
    Convert an opaque object into a dict or list.

    Args:
        obj: Object to convert
        fallback: When the object has ``to_dict()`` and it fails, try the
            JSON round trip instead of giving up

    Returns:
        The converted collection

    Raises:
        NormalizationError: If no conversion yields a collection
    """
    if isinstance(obj, SupportsToDict):
        try:
            result = obj.to_dict()
        except Exception as e:
            if not fallback:
                raise NormalizationError("to_dict_failed", e) from e
        else:
            if is_collection(result):
                return result
            if not fallback:
                raise NormalizationError("to_dict_not_collection")

    decoded = json_round_trip(obj)
    if not isinstance(decoded, (dict, list)):
        raise NormalizationError("json_decode_not_array")

    return decoded
