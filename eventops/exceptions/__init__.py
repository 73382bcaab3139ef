"""
Custom exceptions for the EventOps framework.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    EventOpsBaseException,
    EventOpsConfigurationError,
    EventOpsValidationError,
    EventOpsProcessingError,
)

__all__ = [
    "EventOpsBaseException",
    "EventOpsConfigurationError",
    "EventOpsValidationError",
    "EventOpsProcessingError",
]
