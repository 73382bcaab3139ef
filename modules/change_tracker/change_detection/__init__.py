"""Change Detection System for the Change Tracker

This module provides detection of what changed between the baseline and the live
snapshot of an event request being edited.

Components:
- FieldDiffDetector: Registry-driven comparison of scalar/structured fields
- FileSetDiffDetector: Added/removed file references and pending uploads
- CollectionDiffDetector: Keyed reconciliation of the invoice collection
- ChangeSet: Aggregate result of one diff pass

Usage:
    from modules.change_tracker.change_detection import FieldDiffDetector

    changes = FieldDiffDetector().detect(baseline, live, registry.field_mappings)
"""

from .change_detection_models import (
    FileChangeType, InvoiceChangeType, FieldChange, FileChange, InvoiceChange,
    UnidentifiableItem, ChangeSet, WHOLE_INVOICE_FIELD
)
from .value_comparison import MISSING, canonical_serialize, values_equal
from .field_diff_detector import FieldDiffDetector
from .file_set_diff_detector import FileSetDiffDetector, extract_filename, UNKNOWN_FILENAME
from .collection_diff_detector import CollectionDiffDetector, CollectionReconciliation

__all__ = [
    'FileChangeType', 'InvoiceChangeType', 'FieldChange', 'FileChange', 'InvoiceChange',
    'UnidentifiableItem', 'ChangeSet', 'WHOLE_INVOICE_FIELD',
    'MISSING', 'canonical_serialize', 'values_equal',
    'FieldDiffDetector', 'FileSetDiffDetector', 'extract_filename', 'UNKNOWN_FILENAME',
    'CollectionDiffDetector', 'CollectionReconciliation'
]
