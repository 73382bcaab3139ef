"""Change Tracker Data Models

This package contains Pydantic data models for the change tracker module:
the tracked field registry and the tagged union over monitored value kinds.
"""

from .field_registry import (
    ValueKind, FieldMapping, FileFieldMapping, PendingUploadSlot, CollectionSpec,
    ChangeTrackingRegistry, DEFAULT_FIELD_MAPPINGS
)
from .tracked_value import (
    TrackedValue, TextValue, NumberValue, BooleanValue, DateValue, ArrayValue,
    ObjectValue, FileValue, tracked_value
)

__all__ = [
    'ValueKind', 'FieldMapping', 'FileFieldMapping', 'PendingUploadSlot', 'CollectionSpec',
    'ChangeTrackingRegistry', 'DEFAULT_FIELD_MAPPINGS',
    'TrackedValue', 'TextValue', 'NumberValue', 'BooleanValue', 'DateValue', 'ArrayValue',
    'ObjectValue', 'FileValue', 'tracked_value'
]
