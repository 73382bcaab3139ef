"""
Canonical Value Comparison

Two snapshot values are equal iff their canonical serializations are identical:

- object keys are stringified and sorted, so key order never matters;
- arrays (lists and tuples) keep element order, so reordering a list is a change;
- integral floats and decimals serialize as integers, so ``1``, ``1.0`` and
  ``Decimal("1.00")`` compare equal; other decimals compare by numeric value;
- datetimes, dates and times serialize as ISO strings, enums by value,
  pydantic models by their JSON dump, dataclasses by their fields;
- sets serialize as arrays sorted by the serialized form of their elements;
- any other value (UUID, bytes, paths, timedeltas...) serializes through
  pydantic-core's JSON conversion.

A key missing from a snapshot is read as ``MISSING``, which equals only itself:
absent and ``None`` are different values.

Cyclic structures and values pydantic-core cannot convert have no canonical
form. Comparisons involving them report "not equal" so the field is
conservatively treated as changed.
"""

import dataclasses
import json
import logging
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Set

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from ..exceptions import SnapshotSerializationError

logger = logging.getLogger(__name__)

_SCALAR_TYPES = (str, int, bool, type(None))


class _Missing:
    """Marker for a key absent from a snapshot."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _Missing()


def read_value(snapshot: Mapping, key: str) -> Any:
    """Read a snapshot key, returning ``MISSING`` when the key is absent."""
    return snapshot.get(key, MISSING)


def reported_value(value: Any) -> Any:
    """Value as carried on a change record; an absent key is reported as None."""
    return None if value is MISSING else value


def _canonical_decimal(value: Decimal) -> Any:
    if not value.is_finite():
        return str(value)
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def _canonicalize(value: Any, active: Set[int]) -> Any:
    """Convert a value into plain JSON-compatible data with normalized numbers."""
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, Decimal):
        return _canonicalize(_canonical_decimal(value), active)
    if isinstance(value, Enum):
        return _canonicalize(value.value, active)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return _canonicalize(value.model_dump(mode="json"), active)

    is_dataclass = dataclasses.is_dataclass(value) and not isinstance(value, type)
    if is_dataclass or isinstance(value, (Mapping, list, tuple, set, frozenset)):
        marker = id(value)
        if marker in active:
            raise SnapshotSerializationError("Circular reference detected", type(value).__name__)
        active.add(marker)
        try:
            if is_dataclass:
                return {
                    field.name: _canonicalize(getattr(value, field.name), active)
                    for field in dataclasses.fields(value)
                }
            if isinstance(value, Mapping):
                return {str(key): _canonicalize(item, active) for key, item in value.items()}
            if isinstance(value, (set, frozenset)):
                items = [_canonicalize(item, active) for item in value]
                return sorted(items, key=lambda item: json.dumps(item, sort_keys=True))
            return [_canonicalize(item, active) for item in value]
        finally:
            active.discard(marker)

    try:
        converted = to_jsonable_python(value)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise SnapshotSerializationError(
            f"Value of type {type(value).__name__} has no canonical serialization: {e}",
            type(value).__name__
        )
    return _canonicalize(converted, active)


def canonical_serialize(value: Any) -> str:
    """Serialize a snapshot value to its canonical JSON form.

    Args:
        value: Any snapshot value

    Returns:
        Canonical JSON string

    Raises:
        SnapshotSerializationError: If the value is cyclic, ``MISSING`` or not convertible
    """
    if value is MISSING:
        raise SnapshotSerializationError("Absent values have no serialization", "missing")
    try:
        return json.dumps(_canonicalize(value, set()), sort_keys=True, separators=(",", ":"))
    except RecursionError:
        raise SnapshotSerializationError("Value nested too deeply to serialize", type(value).__name__)


def values_equal(old_value: Any, new_value: Any) -> bool:
    """Compare two snapshot values under the canonical serialization contract.

    ``MISSING`` equals only ``MISSING``. Never raises: a value without a
    canonical form makes the pair unequal.
    """
    if old_value is MISSING or new_value is MISSING:
        return old_value is new_value
    try:
        return canonical_serialize(old_value) == canonical_serialize(new_value)
    except (SnapshotSerializationError, TypeError, ValueError) as e:
        logger.debug(f"Treating value as changed, serialization failed: {e}")
        return False
