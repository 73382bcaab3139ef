"""Tracked Value Tagged Union

Snapshot values are dynamically shaped. This module wraps a raw value in a
variant keyed by its registry ``ValueKind`` so consumers can dispatch on
``kind`` instead of inspecting the raw value. The raw value is carried
untouched; only ``display()`` interprets it.
"""

import json
from datetime import date, datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from .field_registry import ValueKind

EMPTY_DISPLAY = "(empty)"


class _TrackedValueBase(BaseModel):
    raw: Any = Field(None, description="Snapshot value, uncoerced")

    model_config = {"frozen": True}

    @property
    def is_empty(self) -> bool:
        return self.raw is None or self.raw == "" or self.raw == [] or self.raw == {}

    def display(self) -> str:
        if self.is_empty:
            return EMPTY_DISPLAY
        return str(self.raw)


class TextValue(_TrackedValueBase):
    kind: Literal["text"] = "text"


class NumberValue(_TrackedValueBase):
    kind: Literal["number"] = "number"

    def display(self) -> str:
        if self.is_empty:
            return EMPTY_DISPLAY
        if isinstance(self.raw, float) and self.raw.is_integer():
            return str(int(self.raw))
        return str(self.raw)


class BooleanValue(_TrackedValueBase):
    kind: Literal["boolean"] = "boolean"

    def display(self) -> str:
        if self.raw is None:
            return EMPTY_DISPLAY
        return "Yes" if self.raw else "No"


class DateValue(_TrackedValueBase):
    kind: Literal["date"] = "date"

    def display(self) -> str:
        if self.is_empty:
            return EMPTY_DISPLAY
        if isinstance(self.raw, (datetime, date)):
            return self.raw.isoformat()
        return str(self.raw)


class ArrayValue(_TrackedValueBase):
    kind: Literal["array"] = "array"

    def display(self) -> str:
        if self.is_empty:
            return EMPTY_DISPLAY
        if isinstance(self.raw, (list, tuple)):
            return ", ".join(str(item) for item in self.raw)
        return str(self.raw)


class ObjectValue(_TrackedValueBase):
    kind: Literal["object"] = "object"

    def display(self) -> str:
        if self.is_empty:
            return EMPTY_DISPLAY
        try:
            return json.dumps(self.raw, sort_keys=True, default=str)
        except (TypeError, ValueError):
            return repr(self.raw)


class FileValue(_TrackedValueBase):
    kind: Literal["file"] = "file"

    def display(self) -> str:
        if self.is_empty:
            return EMPTY_DISPLAY
        name = getattr(self.raw, "name", None)
        return str(name) if name else str(self.raw)


TrackedValue = Annotated[
    Union[TextValue, NumberValue, BooleanValue, DateValue, ArrayValue, ObjectValue, FileValue],
    Field(discriminator="kind"),
]

_TRACKED_VALUE_ADAPTER = TypeAdapter(TrackedValue)


def tracked_value(kind: ValueKind, raw: Any) -> TrackedValue:
    """Wrap a raw snapshot value in the variant for its value kind."""
    return _TRACKED_VALUE_ADAPTER.validate_python({"kind": ValueKind(kind).value, "raw": raw})
