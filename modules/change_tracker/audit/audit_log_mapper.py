"""
Audit Log Mapper

Reshapes a ChangeSet into audit entries and delivers them to the external audit
sink. Delivery is best-effort: the audit trail is a side channel of the edit
session, so every sink or resolver failure is logged here and swallowed.
"""

from typing import Any, Dict, List, Optional
import logging

from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from eventops.interfaces import AuditSink, ActorNameResolver
from ..change_detection import ChangeSet, InvoiceChangeType
from .audit_models import (
    AuditChangeType, AuditFieldEntry, AuditFileEntry, classify_file_field
)

logger = logging.getLogger(__name__)

_INVOICE_CHANGE_TYPES = {
    InvoiceChangeType.ADDED: AuditChangeType.ADDED,
    InvoiceChangeType.REMOVED: AuditChangeType.REMOVED,
    InvoiceChangeType.MODIFIED: AuditChangeType.UPDATED,
}


class AuditLogMapper:
    """Maps change sets to audit entries and forwards them to an AuditSink.

    The acting party's display name is resolved once per change set through the
    ActorNameResolver, retried with exponential backoff, falling back to the
    actor id when the directory cannot answer.
    """

    def __init__(self, sink: AuditSink, actor_resolver: ActorNameResolver,
                 record_id: Optional[str] = None, actor_id: Optional[str] = None,
                 enabled: bool = True, max_attempts: int = 3,
                 wait_multiplier: float = 0.5, wait_max: float = 4.0):
        """Initialize the mapper.

        Args:
            sink: External audit sink
            actor_resolver: Display name lookup for the acting party
            record_id: Event request being edited; nothing is logged without it
            actor_id: Acting user; nothing is logged without it
            enabled: Master switch for audit logging
            max_attempts: Actor name resolution attempts
            wait_multiplier: Exponential backoff multiplier in seconds
            wait_max: Backoff ceiling in seconds
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

        self.sink = sink
        self.actor_resolver = actor_resolver
        self.record_id = record_id
        self.actor_id = actor_id
        self.enabled = enabled
        self.max_attempts = max_attempts
        self.wait_multiplier = wait_multiplier
        self.wait_max = wait_max

    @classmethod
    def from_settings(cls, sink: AuditSink, actor_resolver: ActorNameResolver,
                      settings: Dict[str, Any], record_id: Optional[str] = None,
                      actor_id: Optional[str] = None) -> 'AuditLogMapper':
        """Build a mapper from the ``change_tracking`` configuration section."""
        retry_settings = settings.get("actor_resolution", {})
        return cls(
            sink,
            actor_resolver,
            record_id=record_id,
            actor_id=actor_id,
            enabled=settings.get("enable_audit_logging", True),
            max_attempts=retry_settings.get("max_attempts", 3),
            wait_multiplier=retry_settings.get("wait_multiplier", 0.5),
            wait_max=retry_settings.get("wait_max", 4.0),
        )

    async def map(self, change_set: ChangeSet) -> None:
        """Deliver a change set to the audit sink, one batched call per non-empty group.

        Never raises.
        """
        if not self.enabled or not change_set.has_changes:
            return
        if not self.record_id or not self.actor_id:
            logger.debug("Audit logging skipped: record or actor unknown")
            return

        try:
            actor_name = await self.resolve_actor_name()

            groups = (
                ("field", self.sink.log_field_changes, self.build_field_entries(change_set)),
                ("file", self.sink.log_file_changes, self.build_file_entries(change_set)),
                ("invoice", self.sink.log_invoice_changes, self.build_invoice_entries(change_set)),
            )

            for group_name, log_call, entries in groups:
                if not entries:
                    continue
                try:
                    await log_call(self.record_id, actor_name, entries, actor_name)
                    logger.info(f"Logged {len(entries)} {group_name} change(s) for {self.record_id}")
                except Exception as e:
                    logger.error(f"Error logging {group_name} changes to audit for {self.record_id}: {e}")

        except Exception as e:
            logger.error(f"Error logging changes to audit for {self.record_id}: {e}", exc_info=True)

    async def resolve_actor_name(self) -> str:
        """Resolve the acting party's display name, falling back to the actor id."""
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.wait_multiplier, max=self.wait_max),
                reraise=True,
            ):
                with attempt:
                    name = await self.actor_resolver.resolve_actor_name(self.actor_id)
            return name or self.actor_id
        except Exception as e:
            logger.warning(f"Could not resolve actor name for {self.actor_id}: {e}")
            return self.actor_id

    def build_field_entries(self, change_set: ChangeSet) -> List[AuditFieldEntry]:
        """Build one audit entry per field change.

        Unlike the event request audit trail this replaces, which records every
        field change as "updated", entries are classified by value: a change
        from None is "added", a change to None is "removed", anything else is
        "updated". A key that appears holding None reports None on both sides
        and is therefore classified as "added".
        """
        entries = []
        for change in change_set.field_changes:
            if change.old_value is None:
                change_type = AuditChangeType.ADDED
            elif change.new_value is None:
                change_type = AuditChangeType.REMOVED
            else:
                change_type = AuditChangeType.UPDATED

            entries.append(AuditFieldEntry(
                field=change.field,
                field_display_name=change.label,
                old_value=change.old_value,
                new_value=change.new_value,
                change_type=change_type
            ))
        return entries

    def build_file_entries(self, change_set: ChangeSet) -> List[AuditFileEntry]:
        return [
            AuditFileEntry(
                action=change.change_type,
                file_name=change.filename,
                file_type=classify_file_field(change.field),
                url=change.url
            )
            for change in change_set.file_changes
        ]

    def build_invoice_entries(self, change_set: ChangeSet) -> List[AuditFieldEntry]:
        return [
            AuditFieldEntry(
                field=change.field,
                field_display_name=f"Invoice {change.invoice_id} - {change.field}",
                old_value=change.old_value,
                new_value=change.new_value,
                change_type=_INVOICE_CHANGE_TYPES[change.change_type],
                invoice_id=change.invoice_id
            )
            for change in change_set.invoice_changes
        ]
