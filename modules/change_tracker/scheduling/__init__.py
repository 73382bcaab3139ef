"""Debounced diff scheduling for the change tracker."""

from .change_scheduler import ChangeScheduler, SchedulerState, DEFAULT_QUIESCENCE_WINDOW

__all__ = ['ChangeScheduler', 'SchedulerState', 'DEFAULT_QUIESCENCE_WINDOW']
