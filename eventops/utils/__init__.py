"""
Utility modules for the EventOps framework.

This module provides utility functions and setup for logging and other
common functionality used throughout the system.
"""

from .logging_setup import setup_logging, get_logger, log_performance, JSONFormatter

__all__ = ["setup_logging", "get_logger", "log_performance", "JSONFormatter"]
