"""
Audit Entry Data Models

Normalized, human-readable audit entries handed to the audit sink. Field and
invoice changes share the field entry shape used by the event request audit
trail; file changes carry a coarse file category derived from the field name.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..change_detection import FileChangeType


class AuditChangeType(str, Enum):
    """Change classification recorded in the audit trail."""
    ADDED = "added"
    REMOVED = "removed"
    UPDATED = "updated"


class FileCategory(str, Enum):
    """Coarse category of a changed file, derived from its field name."""
    ROOM_BOOKING = "room_booking"
    INVOICE = "invoice"
    LOGO = "logo"
    GRAPHICS = "graphics"
    OTHER = "other"


# Checked in order; the first fragment found in the lowercased field name wins
_FILE_CATEGORY_FRAGMENTS = (
    ("roombooking", FileCategory.ROOM_BOOKING),
    ("invoice", FileCategory.INVOICE),
    ("logo", FileCategory.LOGO),
    ("graphics", FileCategory.GRAPHICS),
)


def classify_file_field(field: str) -> FileCategory:
    """Derive the file category of a file field or upload slot name."""
    normalized = field.lower().replace("_", "")
    for fragment, category in _FILE_CATEGORY_FRAGMENTS:
        if fragment in normalized:
            return category
    return FileCategory.OTHER


class AuditFieldEntry(BaseModel):
    """Audit entry for a field change or an invoice change."""

    field: str = Field(..., description="Changed field")
    field_display_name: str = Field(..., description="Label shown in the audit trail")
    old_value: Any = Field(None, description="Value before the edit")
    new_value: Any = Field(None, description="Value after the edit")
    change_type: AuditChangeType = Field(..., description="Added, removed or updated")
    invoice_id: Optional[Any] = Field(None, description="Invoice id for invoice changes")

    model_config = {"frozen": True}


class AuditFileEntry(BaseModel):
    """Audit entry for a file added or removed."""

    action: FileChangeType = Field(..., description="Whether the file was added or removed")
    file_name: str = Field(..., description="Display filename")
    file_type: FileCategory = Field(..., description="File category")
    url: Optional[str] = Field(None, description="Persisted location, None for pending uploads")

    model_config = {"frozen": True}
