"""Change Tracking Specific Exceptions

Extends framework exception hierarchy with change tracking specific
error types for comprehensive error handling and classification.
"""

from eventops.exceptions import EventOpsConfigurationError, EventOpsProcessingError


class ChangeTrackingException(EventOpsProcessingError):
    """Base exception for change tracking operations."""
    pass


class SnapshotSerializationError(ChangeTrackingException):
    """Exception for snapshot values that have no canonical serialization.

    Raised for cyclic structures and unsupported value types. Detectors never
    let it escape; the affected value is treated as changed.
    """

    def __init__(self, message: str, value_type: str = ""):
        super().__init__(message, {"value_type": value_type} if value_type else None)
        self.value_type = value_type


class SchedulerError(ChangeTrackingException):
    """Exception for diff scheduling outside a running event loop."""
    pass


class RegistryConfigurationError(EventOpsConfigurationError):
    """Exception for an invalid tracked field registry."""
    pass
