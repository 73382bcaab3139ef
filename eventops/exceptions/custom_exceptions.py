"""
Custom exception classes for the EventOps framework.

This module defines domain-specific exceptions to provide clear error handling
and debugging information throughout the system.
"""

from typing import Optional, Dict, Any


class EventOpsBaseException(Exception):
    """Base exception class for all EventOps exceptions."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class EventOpsConfigurationError(EventOpsBaseException):
    """
    Exception raised when configuration loading or validation fails.

    This exception is raised when:
    - Configuration files are missing or invalid
    - Environment configuration is malformed
    - Required configuration values are missing
    """
    pass


class EventOpsValidationError(EventOpsBaseException):
    """
    Exception raised when data validation fails.

    This exception is raised when:
    - Field mapping validation fails
    - Required environment variables are missing
    - Schema validation fails
    """
    pass


class EventOpsProcessingError(EventOpsBaseException):
    """
    Exception raised when change processing fails.

    This exception is raised when:
    - A snapshot value cannot be serialized for comparison
    - The diff scheduler is used outside an event loop
    """
    pass
