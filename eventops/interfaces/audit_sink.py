"""EventOps Audit Collaborator Interfaces

This module defines the abstract base classes for the external collaborators the
change tracking module reports to: the audit sink that records human-readable
change history, and the directory lookup that resolves an actor's display name.
"""

from abc import ABC, abstractmethod
from typing import Any, List


class AuditSink(ABC):
    """Abstract system of record for event request change history.

    Every method receives the record identifier, the acting party, a batch of
    audit entries of one kind, and the acting party's display name. The
    parameter order is part of the contract and mirrors the audit service of
    the event request dashboard, which passes the display name both as the
    performer and as the performer name.

    Implementations may raise any exception on failure; callers treat the sink
    as a best-effort side channel and never let its failures reach the editor.
    """

    @abstractmethod
    async def log_field_changes(self, record_id: str, performed_by: str,
                                entries: List[Any], performed_by_name: str) -> None:
        """Record a batch of scalar/structured field changes.

        Args:
            record_id: Identifier of the event request being edited
            performed_by: Acting party
            entries: Field audit entries
            performed_by_name: Human-readable name of the acting party
        """
        pass

    @abstractmethod
    async def log_file_changes(self, record_id: str, performed_by: str,
                               entries: List[Any], performed_by_name: str) -> None:
        """Record a batch of file additions and removals."""
        pass

    @abstractmethod
    async def log_invoice_changes(self, record_id: str, performed_by: str,
                                  entries: List[Any], performed_by_name: str) -> None:
        """Record a batch of invoice additions, removals and field edits."""
        pass


class ActorNameResolver(ABC):
    """Abstract lookup turning an actor identifier into a display name."""

    @abstractmethod
    async def resolve_actor_name(self, actor_id: str) -> str:
        """Resolve the display name for an actor.

        Args:
            actor_id: Identifier of the acting user

        Returns:
            str: Display name to show in the audit trail
        """
        pass
