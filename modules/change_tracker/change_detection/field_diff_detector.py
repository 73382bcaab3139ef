"""
Field Diff Detector

Compares the monitored scalar and structured fields of two event request
snapshots using the static field registry.
"""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Sequence
import logging

from ..models import FieldMapping
from .change_detection_models import FieldChange
from .value_comparison import read_value, reported_value, values_equal

logger = logging.getLogger(__name__)


class FieldDiffDetector:
    """Detects changed registry fields between a baseline and a live snapshot.

    Only fields listed in the registry are inspected. A key missing from a
    snapshot differs from every present value, None included; the change
    record reports the absent side as None.
    """

    def detect(self, baseline: Mapping[str, Any], live: Mapping[str, Any],
               mappings: Sequence[FieldMapping],
               timestamp: Optional[datetime] = None) -> List[FieldChange]:
        """Detect changed fields in registry order.

        Args:
            baseline: Snapshot as last loaded
            live: Snapshot as currently edited
            mappings: Monitored fields
            timestamp: Diff pass time stamped on every change (defaults to now)

        Returns:
            One FieldChange per monitored field whose values differ
        """
        timestamp = timestamp or datetime.now()
        changes: List[FieldChange] = []

        for mapping in mappings:
            old_value = read_value(baseline, mapping.field)
            new_value = read_value(live, mapping.field)

            if values_equal(old_value, new_value):
                continue

            changes.append(FieldChange(
                field=mapping.field,
                label=mapping.label,
                old_value=reported_value(old_value),
                new_value=reported_value(new_value),
                value_kind=mapping.value_kind,
                timestamp=timestamp
            ))

        if changes:
            logger.debug(f"Field changes detected: {[change.field for change in changes]}")
        return changes
