"""
Collection Diff Detector

Reconciles a keyed sub-collection (the invoices of an event request) between a
baseline and a live snapshot. Items are matched by their stable id, never by
their position in the list.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple
import logging

from .change_detection_models import (
    InvoiceChange, InvoiceChangeType, UnidentifiableItem, WHOLE_INVOICE_FIELD
)
from .value_comparison import read_value, reported_value, values_equal

logger = logging.getLogger(__name__)


def _is_hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


@dataclass
class CollectionReconciliation:
    """Outcome of reconciling one collection."""
    changes: List[InvoiceChange] = field(default_factory=list)
    unidentifiable_items: List[UnidentifiableItem] = field(default_factory=list)

    @property
    def touched_ids(self) -> set:
        return {change.invoice_id for change in self.changes}


@dataclass
class _IndexEntry:
    old: Optional[Mapping[str, Any]] = None
    new: Optional[Mapping[str, Any]] = None


class CollectionDiffDetector:
    """Detects added, removed and modified items of a keyed collection.

    Items lacking a usable id (missing, None, empty string or unhashable) or
    that are not mappings are excluded from reconciliation and reported as
    UnidentifiableItem warnings.
    """

    def __init__(self, id_field: str = "id"):
        """Initialize the detector.

        Args:
            id_field: Item key carrying the stable identity
        """
        self.id_field = id_field

    def detect(self, baseline_items: Optional[Sequence[Any]], live_items: Optional[Sequence[Any]],
               compared_fields: Sequence[str],
               timestamp: Optional[datetime] = None) -> List[InvoiceChange]:
        """Detect collection changes.

        Args:
            baseline_items: Items as last loaded (None reads as empty)
            live_items: Items as currently edited (None reads as empty)
            compared_fields: Item fields compared between matched items
            timestamp: Diff pass time stamped on every change (defaults to now)

        Returns:
            InvoiceChange list in index order: baseline ids first, then new live ids
        """
        return self.reconcile(baseline_items, live_items, compared_fields, timestamp).changes

    def reconcile(self, baseline_items: Optional[Sequence[Any]], live_items: Optional[Sequence[Any]],
                  compared_fields: Sequence[str],
                  timestamp: Optional[datetime] = None) -> CollectionReconciliation:
        """Reconcile the collection, also reporting items that could not be identified."""
        timestamp = timestamp or datetime.now()
        result = CollectionReconciliation()

        index: Dict[Hashable, _IndexEntry] = {}
        for position, item_id, item in self._identified_items(baseline_items, "baseline", result):
            index.setdefault(item_id, _IndexEntry()).old = item
        for position, item_id, item in self._identified_items(live_items, "live", result):
            index.setdefault(item_id, _IndexEntry()).new = item

        for item_id, entry in index.items():
            if entry.old is not None and entry.new is None:
                result.changes.append(InvoiceChange(
                    invoice_id=item_id,
                    field=WHOLE_INVOICE_FIELD,
                    old_value=entry.old,
                    new_value=None,
                    change_type=InvoiceChangeType.REMOVED,
                    timestamp=timestamp
                ))
            elif entry.old is None and entry.new is not None:
                result.changes.append(InvoiceChange(
                    invoice_id=item_id,
                    field=WHOLE_INVOICE_FIELD,
                    old_value=None,
                    new_value=entry.new,
                    change_type=InvoiceChangeType.ADDED,
                    timestamp=timestamp
                ))
            else:
                for compared_field in compared_fields:
                    old_value = read_value(entry.old, compared_field)
                    new_value = read_value(entry.new, compared_field)
                    if values_equal(old_value, new_value):
                        continue
                    result.changes.append(InvoiceChange(
                        invoice_id=item_id,
                        field=compared_field,
                        old_value=reported_value(old_value),
                        new_value=reported_value(new_value),
                        change_type=InvoiceChangeType.MODIFIED,
                        timestamp=timestamp
                    ))

        if result.changes:
            logger.debug(f"Invoice changes detected for ids: {sorted(map(str, result.touched_ids))}")
        return result

    def _identified_items(self, items: Optional[Sequence[Any]], side: str,
                          result: CollectionReconciliation) -> List[Tuple[int, Hashable, Mapping[str, Any]]]:
        """Pair each usable item with its id, recording the ones without a usable id."""
        identified = []
        seen_ids = set()

        for position, item in enumerate(items or []):
            reason = None
            item_id = None

            if not isinstance(item, Mapping):
                reason = f"item is a {type(item).__name__}, not a mapping"
            else:
                item_id = item.get(self.id_field)
                if item_id is None or item_id == "":
                    reason = f"missing '{self.id_field}'"
                elif not _is_hashable(item_id):
                    reason = f"'{self.id_field}' of type {type(item_id).__name__} is not hashable"

            if reason:
                logger.warning(f"Excluding unidentifiable {side} collection item at position {position}: {reason}")
                result.unidentifiable_items.append(
                    UnidentifiableItem(side=side, position=position, reason=reason)
                )
                continue

            if item_id in seen_ids:
                logger.warning(f"Duplicate {side} collection id {item_id!r}; the later item wins")
            seen_ids.add(item_id)
            identified.append((position, item_id, item))

        return identified
