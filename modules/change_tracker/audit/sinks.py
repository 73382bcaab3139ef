"""
Reference Audit Collaborators

Minimal AuditSink and ActorNameResolver implementations used by the command
line entry point and for local development, where no audit store or user
directory is available.
"""

from typing import Any, Dict, List, Optional
import logging

from eventops.interfaces import AuditSink, ActorNameResolver

logger = logging.getLogger(__name__)


class LoggingAuditSink(AuditSink):
    """Audit sink writing every entry to the log instead of an audit store."""

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    async def log_field_changes(self, record_id: str, performed_by: str,
                                entries: List[Any], performed_by_name: str) -> None:
        self._log("field", record_id, performed_by_name, entries)

    async def log_file_changes(self, record_id: str, performed_by: str,
                               entries: List[Any], performed_by_name: str) -> None:
        self._log("file", record_id, performed_by_name, entries)

    async def log_invoice_changes(self, record_id: str, performed_by: str,
                                  entries: List[Any], performed_by_name: str) -> None:
        self._log("invoice", record_id, performed_by_name, entries)

    def _log(self, group: str, record_id: str, performed_by_name: str, entries: List[Any]) -> None:
        for entry in entries:
            payload = entry.model_dump(mode="json") if hasattr(entry, "model_dump") else entry
            logger.log(
                self.log_level,
                f"Audit {group} change on {record_id} by {performed_by_name}: {payload}",
                extra={"record_id": record_id, "audit_group": group}
            )


class StaticActorNameResolver(ActorNameResolver):
    """Resolver answering from a fixed id to name table.

    Unknown ids resolve to themselves, matching the directory lookup's behaviour
    for users without a profile name.
    """

    def __init__(self, names: Optional[Dict[str, str]] = None):
        self.names = dict(names or {})

    async def resolve_actor_name(self, actor_id: str) -> str:
        return self.names.get(actor_id, actor_id)
