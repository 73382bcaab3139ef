"""EventOps Framework Interfaces

This package contains abstract interfaces for the external collaborators of the
EventOps framework, providing standardized contracts for processing modules.
"""

from .audit_sink import AuditSink, ActorNameResolver

__all__ = ['AuditSink', 'ActorNameResolver']
