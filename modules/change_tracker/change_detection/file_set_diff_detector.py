"""
File Set Diff Detector

Compares the sets of persisted file references held by file-bearing fields, and
reports local files attached to pending upload slots of the live snapshot.
"""

from datetime import datetime
from pathlib import PurePath
from typing import Any, Iterable, List, Mapping, Optional, Sequence
from urllib.parse import unquote
import logging

from ..models import FileFieldMapping, PendingUploadSlot
from .change_detection_models import FileChange, FileChangeType

logger = logging.getLogger(__name__)

UNKNOWN_FILENAME = "Unknown file"


def extract_filename(reference: Any) -> str:
    """Derive a display filename from a persisted file reference.

    Takes the last path segment (query string and fragment removed), strips the
    upload disambiguation prefix up to and including the first ``_`` and
    URL-decodes the rest. Anything unparseable yields ``UNKNOWN_FILENAME``.
    """
    try:
        if not isinstance(reference, str):
            raise TypeError(f"File reference must be a string, got {type(reference).__name__}")

        segment = reference.split("/")[-1]
        segment = segment.split("?", 1)[0].split("#", 1)[0]
        if "_" in segment:
            segment = segment.split("_", 1)[1]

        filename = unquote(segment, errors="strict")
        if not filename:
            raise ValueError(f"No filename in reference: {reference!r}")
        return filename

    except (TypeError, ValueError) as e:
        logger.debug(f"Could not derive filename: {e}")
        return UNKNOWN_FILENAME


def pending_upload_filename(handle: Any) -> str:
    """Derive a display filename from a local file handle awaiting upload."""
    name = handle.get("name") if isinstance(handle, Mapping) else getattr(handle, "name", None)
    if name is None and isinstance(handle, (str, PurePath)):
        name = handle
    if isinstance(name, (str, PurePath)) and str(name):
        return PurePath(name).name or UNKNOWN_FILENAME
    return UNKNOWN_FILENAME


def _reference_set(value: Any) -> List[str]:
    """Read a file field as an insertion-ordered set of reference strings.

    Persisted references are strings; any other element is skipped with a
    warning rather than reported under a placeholder name.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    elif (not isinstance(value, Iterable) or isinstance(value, Mapping)
          or isinstance(value, (bytes, bytearray))):
        logger.warning(f"Ignoring file field value of type {type(value).__name__}")
        return []

    references: List[str] = []
    for reference in value:
        if not isinstance(reference, str):
            logger.warning(f"Ignoring non-string file reference of type {type(reference).__name__}")
            continue
        if reference not in references:
            references.append(reference)
    return references


class FileSetDiffDetector:
    """Detects added and removed file references per file-bearing field.

    Membership is plain reference-string equality; two URLs pointing at the
    same object under different spellings are different files.
    """

    def detect(self, baseline: Mapping[str, Any], live: Mapping[str, Any],
               file_fields: Sequence[FileFieldMapping],
               pending_slots: Sequence[PendingUploadSlot] = (),
               timestamp: Optional[datetime] = None) -> List[FileChange]:
        """Detect file changes for every file field, then pending uploads.

        Args:
            baseline: Snapshot as last loaded
            live: Snapshot as currently edited
            file_fields: Fields holding persisted file references
            pending_slots: Live-only slots holding local files not yet uploaded
            timestamp: Diff pass time stamped on every change (defaults to now)

        Returns:
            Removed then added references per field, followed by pending uploads
        """
        timestamp = timestamp or datetime.now()
        changes: List[FileChange] = []

        for file_field in file_fields:
            old_refs = _reference_set(baseline.get(file_field.field))
            new_refs = _reference_set(live.get(file_field.field))

            for reference in old_refs:
                if reference not in new_refs:
                    changes.append(self._reference_change(
                        FileChangeType.REMOVED, file_field.field, reference, timestamp
                    ))

            for reference in new_refs:
                if reference not in old_refs:
                    changes.append(self._reference_change(
                        FileChangeType.ADDED, file_field.field, reference, timestamp
                    ))

        changes.extend(self._detect_pending_uploads(live, pending_slots, timestamp))

        if changes:
            logger.debug(f"File changes detected: {len(changes)}")
        return changes

    def _reference_change(self, change_type: FileChangeType, field: str,
                          reference: str, timestamp: datetime) -> FileChange:
        return FileChange(
            change_type=change_type,
            field=field,
            filename=extract_filename(reference),
            url=reference,
            timestamp=timestamp
        )

    def _detect_pending_uploads(self, live: Mapping[str, Any],
                                pending_slots: Sequence[PendingUploadSlot],
                                timestamp: datetime) -> List[FileChange]:
        """Report every local file waiting in a pending upload slot as added."""
        changes: List[FileChange] = []

        for slot in pending_slots:
            value = live.get(slot.field)
            if not value:
                continue

            if slot.multiple and isinstance(value, (list, tuple)):
                handles = list(value)
            else:
                handles = [value]

            for handle in handles:
                if handle is None:
                    continue
                changes.append(FileChange(
                    change_type=FileChangeType.ADDED,
                    field=slot.field,
                    filename=pending_upload_filename(handle),
                    url=None,
                    timestamp=timestamp
                ))

        return changes
