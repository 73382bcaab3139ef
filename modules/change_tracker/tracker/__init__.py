"""Change Tracker Engine

This package contains the ChangeTrackingEngine tying the detectors, the
debounced scheduler and the audit mapper together.
"""

from .change_tracking_engine import ChangeTrackingEngine

__all__ = ['ChangeTrackingEngine']
