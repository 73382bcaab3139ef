"""Change Tracker Module

This module detects what changed while an event request is being edited, across
monitored fields, file references and the invoice collection, coalesces bursts
of edits into single diff passes, and reports the result to the audit trail.
"""

from .models import ChangeTrackingRegistry, FieldMapping, ValueKind
from .change_detection import ChangeSet, FieldChange, FileChange, InvoiceChange
from .tracker import ChangeTrackingEngine

__all__ = [
    'ChangeTrackingRegistry', 'FieldMapping', 'ValueKind',
    'ChangeSet', 'FieldChange', 'FileChange', 'InvoiceChange',
    'ChangeTrackingEngine'
]
