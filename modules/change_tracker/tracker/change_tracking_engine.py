"""ChangeTrackingEngine Implementation

This module implements the ChangeTrackingEngine, the object an event request
editor talks to. It owns the baseline snapshot, the tracked field registry, the
debounced scheduler and the audit mapper, and keeps the most recent ChangeSet
for the editor's "pending changes" indicator.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Set

from eventops.config.config_loader import ConfigLoader
from eventops.interfaces import AuditSink, ActorNameResolver
from eventops.utils import log_performance
from ..models import ChangeTrackingRegistry
from ..change_detection import (
    ChangeSet, FieldDiffDetector, FileSetDiffDetector, CollectionDiffDetector
)
from ..scheduling import ChangeScheduler, DEFAULT_QUIESCENCE_WINDOW
from ..audit import AuditLogMapper

logger = logging.getLogger(__name__)


class ChangeTrackingEngine:
    """Change detection and audit logging for one record being edited.

    The editor calls ``schedule(live)`` on every mutation. After the quiescence
    window a single diff pass compares the baseline with the live snapshot as it
    is at that moment, stores the ChangeSet and, when something changed, hands
    it to the audit mapper as a fire-and-forget task.

    Diffs always compare against the baseline given at construction; the last
    processed live snapshot is kept only to know that a pass happened.
    """

    def __init__(self, baseline: Optional[Mapping[str, Any]],
                 registry: Optional[ChangeTrackingRegistry] = None,
                 audit_mapper: Optional[AuditLogMapper] = None,
                 quiescence_window: float = DEFAULT_QUIESCENCE_WINDOW):
        """Initialize the engine.

        Args:
            baseline: Record state as last loaded; never mutated
            registry: Monitored fields (defaults to the event request registry)
            audit_mapper: Audit delivery; None disables audit logging
            quiescence_window: Debounce window in seconds
        """
        self._baseline: Mapping[str, Any] = baseline if baseline is not None else {}
        self.registry = registry or ChangeTrackingRegistry()
        self.audit_mapper = audit_mapper

        self.field_detector = FieldDiffDetector()
        self.file_detector = FileSetDiffDetector()
        self.collection_detector = CollectionDiffDetector(self.registry.invoice_collection.id_field)
        self.scheduler = ChangeScheduler(self._run_diff_pass, self._dispatch_audit, quiescence_window)

        self._live: Optional[Mapping[str, Any]] = None
        self._last_processed: Optional[Mapping[str, Any]] = None
        self._delivery_tasks: Set[asyncio.Task] = set()

        logger.debug(
            f"ChangeTrackingEngine initialized with {len(self.registry.field_mappings)} tracked fields, "
            f"{quiescence_window:.3f}s quiescence window"
        )

    @classmethod
    def from_config(cls, baseline: Optional[Mapping[str, Any]], config_loader: ConfigLoader,
                    environment: str, sink: AuditSink, actor_resolver: ActorNameResolver,
                    record_id: Optional[str] = None,
                    actor_id: Optional[str] = None) -> 'ChangeTrackingEngine':
        """Build an engine from the environment and field mapping configuration.

        Args:
            baseline: Record state as last loaded
            config_loader: ConfigLoader providing both configuration files
            environment: Environment name (development/production)
            sink: External audit sink
            actor_resolver: Display name lookup for the acting party
            record_id: Event request being edited
            actor_id: Acting user

        Returns:
            Configured ChangeTrackingEngine

        Raises:
            EventOpsConfigurationError: If configuration is missing or invalid
        """
        settings = config_loader.get_change_tracking_settings(environment)
        record_type = settings.get("record_type", "event_request")
        registry = ChangeTrackingRegistry.from_record_config(config_loader.get_record_config(record_type))
        mapper = AuditLogMapper.from_settings(sink, actor_resolver, settings, record_id, actor_id)
        quiescence_window = settings.get("debounce_ms", DEFAULT_QUIESCENCE_WINDOW * 1000) / 1000.0

        return cls(baseline, registry=registry, audit_mapper=mapper, quiescence_window=quiescence_window)

    @property
    def baseline(self) -> Mapping[str, Any]:
        return self._baseline

    @property
    def change_set(self) -> ChangeSet:
        """Most recent ChangeSet, empty before the first pass and after a reset."""
        return self.scheduler.last_change_set or ChangeSet.empty()

    @property
    def has_changes(self) -> bool:
        return self.change_set.has_changes

    @property
    def is_pending(self) -> bool:
        return self.scheduler.is_pending

    @property
    def last_processed_snapshot(self) -> Optional[Mapping[str, Any]]:
        return self._last_processed

    def schedule(self, live: Mapping[str, Any]) -> None:
        """Notify the engine that the live snapshot changed. Returns immediately.

        The snapshot is read when the pass runs, not now, so the caller may keep
        mutating it in place.
        """
        self._live = live
        self.scheduler.notify()

    def cancel(self) -> bool:
        """Cancel the pending diff pass, if any."""
        return self.scheduler.cancel()

    def flush_now(self, live: Optional[Mapping[str, Any]] = None) -> ChangeSet:
        """Run a diff pass immediately instead of waiting for the quiescence window."""
        if live is not None:
            self._live = live
        return self.scheduler.flush_now()

    def reset(self) -> None:
        """Clear the pending pass and discard the last ChangeSet without reporting it."""
        self.scheduler.reset()
        self._last_processed = None
        logger.debug("Change tracking reset")

    @log_performance
    def detect(self, live: Mapping[str, Any]) -> ChangeSet:
        """Compare the baseline with a live snapshot without scheduling or auditing.

        Fields, files and invoices are detected in that fixed order.
        """
        timestamp = datetime.now()
        collection = self.registry.invoice_collection

        field_changes = self.field_detector.detect(
            self._baseline, live, self.registry.field_mappings, timestamp
        )
        file_changes = self.file_detector.detect(
            self._baseline, live, self.registry.file_fields,
            self.registry.pending_upload_slots, timestamp
        )
        reconciliation = self.collection_detector.reconcile(
            self._baseline.get(collection.field), live.get(collection.field),
            collection.compared_fields, timestamp
        )

        return ChangeSet(
            field_changes=field_changes,
            file_changes=file_changes,
            invoice_changes=reconciliation.changes,
            unidentifiable_items=reconciliation.unidentifiable_items,
            last_change_timestamp=timestamp
        )

    async def drain(self) -> None:
        """Wait for in-flight audit deliveries to finish."""
        if self._delivery_tasks:
            await asyncio.gather(*list(self._delivery_tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the pending pass and wait for in-flight audit deliveries."""
        self.cancel()
        await self.drain()

    def _run_diff_pass(self) -> ChangeSet:
        live = self._live if self._live is not None else self._baseline
        change_set = self.detect(live)
        self._last_processed = live
        logger.info(change_set.get_change_summary())
        return change_set

    def _dispatch_audit(self, change_set: ChangeSet) -> None:
        if self.audit_mapper is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Synchronous caller without an event loop: deliver inline
            asyncio.run(self.audit_mapper.map(change_set))
            return

        task = loop.create_task(self.audit_mapper.map(change_set))
        self._delivery_tasks.add(task)
        task.add_done_callback(self._delivery_tasks.discard)
