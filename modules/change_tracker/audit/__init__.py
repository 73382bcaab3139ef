"""Audit Log Generation for the Change Tracker

Turns ChangeSets into human-readable audit entries and delivers them,
best-effort, to the external audit sink.
"""

from .audit_models import (
    AuditChangeType, FileCategory, AuditFieldEntry, AuditFileEntry, classify_file_field
)
from .audit_log_mapper import AuditLogMapper
from .sinks import LoggingAuditSink, StaticActorNameResolver

__all__ = [
    'AuditChangeType', 'FileCategory', 'AuditFieldEntry', 'AuditFileEntry', 'classify_file_field',
    'AuditLogMapper', 'LoggingAuditSink', 'StaticActorNameResolver'
]
