"""
Change Detection Data Models

This module defines Pydantic models for the change detection system, providing
validation and serialization for the per-field, per-file and per-invoice
changes found by one diff pass, and the ChangeSet aggregating them.

Change values are carried exactly as they appear in the snapshots; the models
never coerce them.
"""

from typing import Any, List, Literal, Optional, Set
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, computed_field

from ..models import ValueKind, TrackedValue, tracked_value


class FileChangeType(str, Enum):
    """Kinds of file reference changes."""
    ADDED = "added"
    REMOVED = "removed"


class InvoiceChangeType(str, Enum):
    """Kinds of invoice collection changes.

    Values:
        ADDED: Invoice id present only in the live snapshot
        REMOVED: Invoice id present only in the baseline snapshot
        MODIFIED: One compared field differs on a matched invoice
    """
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


WHOLE_INVOICE_FIELD = "invoice"


class FieldChange(BaseModel):
    """A monitored field whose value differs between baseline and live."""

    field: str = Field(..., min_length=1, description="Snapshot key of the changed field")
    label: str = Field(..., description="Human-readable field label from the registry")
    old_value: Any = Field(None, description="Baseline value, uncoerced")
    new_value: Any = Field(None, description="Live value, uncoerced")
    value_kind: ValueKind = Field(..., description="Registry value kind of the field")
    timestamp: datetime = Field(default_factory=datetime.now, description="Diff pass time")

    model_config = {"frozen": True}

    @property
    def old(self) -> TrackedValue:
        """Baseline value wrapped in its value kind variant."""
        return tracked_value(self.value_kind, self.old_value)

    @property
    def new(self) -> TrackedValue:
        """Live value wrapped in its value kind variant."""
        return tracked_value(self.value_kind, self.new_value)

    def describe(self) -> str:
        return f"{self.label}: {self.old.display()} -> {self.new.display()}"


class FileChange(BaseModel):
    """A file reference added to or removed from a file-bearing field.

    ``url`` is None for pending local uploads, which have no persisted location yet.
    """

    change_type: FileChangeType = Field(..., description="Whether the file was added or removed")
    field: str = Field(..., min_length=1, description="Snapshot key of the file field or upload slot")
    filename: str = Field(..., description="Display filename derived from the reference")
    url: Optional[str] = Field(None, description="Persisted file reference, if any")
    timestamp: datetime = Field(default_factory=datetime.now, description="Diff pass time")

    model_config = {"frozen": True}

    @property
    def is_pending_upload(self) -> bool:
        return self.url is None


class InvoiceChange(BaseModel):
    """An invoice presence change or a modified field of a matched invoice."""

    invoice_id: Any = Field(..., description="Stable id of the invoice")
    field: str = Field(..., min_length=1, description="Changed invoice field, or 'invoice' for presence")
    old_value: Any = Field(None, description="Baseline value (whole invoice for presence changes)")
    new_value: Any = Field(None, description="Live value (whole invoice for presence changes)")
    change_type: InvoiceChangeType = Field(..., description="Added, removed or modified")
    timestamp: datetime = Field(default_factory=datetime.now, description="Diff pass time")

    model_config = {"frozen": True}

    @property
    def is_presence_change(self) -> bool:
        return self.field == WHOLE_INVOICE_FIELD and self.change_type != InvoiceChangeType.MODIFIED


class UnidentifiableItem(BaseModel):
    """A collection item excluded from reconciliation because it has no usable id."""

    side: Literal["baseline", "live"] = Field(..., description="Snapshot the item came from")
    position: int = Field(..., ge=0, description="Index of the item in its list")
    reason: str = Field(..., description="Why the item could not be identified")

    model_config = {"frozen": True}


class ChangeSet(BaseModel):
    """Aggregate output of one diff pass.

    Built fresh on every pass and never mutated afterwards. ``has_changes`` is
    derived from the three change lists; unidentifiable items are warnings and
    do not count as changes.
    """

    field_changes: List[FieldChange] = Field(default_factory=list)
    file_changes: List[FileChange] = Field(default_factory=list)
    invoice_changes: List[InvoiceChange] = Field(default_factory=list)
    unidentifiable_items: List[UnidentifiableItem] = Field(default_factory=list)
    last_change_timestamp: Optional[datetime] = Field(
        None, description="When the diff pass producing this set ran"
    )

    model_config = {"frozen": True}

    @computed_field
    @property
    def has_changes(self) -> bool:
        return bool(self.field_changes or self.file_changes or self.invoice_changes)

    @classmethod
    def empty(cls) -> 'ChangeSet':
        """The state before any diff pass, or after a reset."""
        return cls()

    @property
    def change_count(self) -> int:
        return len(self.field_changes) + len(self.file_changes) + len(self.invoice_changes)

    @property
    def invoice_ids(self) -> Set[Any]:
        """Ids touched by any invoice change."""
        return {change.invoice_id for change in self.invoice_changes}

    def get_change_summary(self) -> str:
        """Get a human-readable summary of the change set."""
        if not self.has_changes:
            return "No changes detected"
        parts = []
        if self.field_changes:
            parts.append(f"{len(self.field_changes)} field change(s)")
        if self.file_changes:
            parts.append(f"{len(self.file_changes)} file change(s)")
        if self.invoice_changes:
            parts.append(f"{len(self.invoice_changes)} invoice change(s)")
        return "Pending changes: " + ", ".join(parts)

    def without_timestamps(self) -> dict:
        """Structural view of the change set used to compare two passes."""
        return self.model_dump(
            exclude={
                "last_change_timestamp": True,
                "field_changes": {"__all__": {"timestamp"}},
                "file_changes": {"__all__": {"timestamp"}},
                "invoice_changes": {"__all__": {"timestamp"}},
            }
        )
