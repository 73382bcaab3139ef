"""
Change Scheduler

Debounces live snapshot notifications into diff passes. Every notification
restarts a quiescence timer; only a timer that runs out uninterrupted triggers
a pass, so a burst of edits produces exactly one pass reading the freshest
live snapshot.

The scheduler runs on the asyncio event loop of its caller. The timer wait is
the only suspension point: the pass itself runs synchronously inside the timer
callback, so two passes can never overlap.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from ..change_detection import ChangeSet
from ..exceptions import SchedulerError

logger = logging.getLogger(__name__)

DEFAULT_QUIESCENCE_WINDOW = 0.5


class SchedulerState(str, Enum):
    """Scheduler states.

    Values:
        IDLE: No diff pass is pending
        PENDING_DIFF: A quiescence timer is running
    """
    IDLE = "idle"
    PENDING_DIFF = "pending_diff"


class ChangeScheduler:
    """Debounced trigger running one diff pass per burst of notifications.

    Each timer is tagged with a generation number; a timer callback whose
    generation is no longer current is ignored, which makes cancellation safe
    even if a callback was already queued on the loop.
    """

    def __init__(self, diff_pass: Callable[[], ChangeSet],
                 on_changes: Callable[[ChangeSet], None],
                 quiescence_window: float = DEFAULT_QUIESCENCE_WINDOW):
        """Initialize the scheduler.

        Args:
            diff_pass: Runs the detectors against the current live snapshot
            on_changes: Receives every ChangeSet that has changes
            quiescence_window: Seconds without notifications before a pass runs
        """
        if quiescence_window < 0:
            raise ValueError(f"Quiescence window cannot be negative: {quiescence_window}")

        self._diff_pass = diff_pass
        self._on_changes = on_changes
        self.quiescence_window = quiescence_window

        self._state = SchedulerState.IDLE
        self._timer: Optional[asyncio.TimerHandle] = None
        self._generation = 0
        self.last_change_set: Optional[ChangeSet] = None
        self.pass_count = 0

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state == SchedulerState.PENDING_DIFF

    def notify(self) -> None:
        """Record that the live snapshot changed and restart the quiescence timer.

        Returns immediately.

        Raises:
            SchedulerError: If called outside a running event loop
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            raise SchedulerError("Diff scheduling requires a running event loop")

        if self._timer is not None:
            self._timer.cancel()

        self._generation += 1
        self._timer = loop.call_later(self.quiescence_window, self._fire, self._generation)
        self._state = SchedulerState.PENDING_DIFF

    def cancel(self) -> bool:
        """Cancel the pending diff pass, if any.

        Returns:
            bool: True if a pending pass was cancelled
        """
        was_pending = self._timer is not None
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._generation += 1
        self._state = SchedulerState.IDLE
        if was_pending:
            logger.debug("Pending diff pass cancelled")
        return was_pending

    def reset(self) -> None:
        """Cancel any pending pass and discard the last ChangeSet without reporting it."""
        self.cancel()
        self.last_change_set = None

    def flush_now(self) -> ChangeSet:
        """Cancel the pending timer and run a diff pass immediately.

        Returns:
            ChangeSet: Result of the pass

        Raises:
            Exception: Whatever the diff pass raises
        """
        self.cancel()
        return self._execute_pass()

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug(f"Ignoring stale diff timer (generation {generation})")
            return

        self._timer = None
        try:
            self._execute_pass()
        except Exception as e:
            logger.error(f"Diff pass failed: {e}", exc_info=True)

    def _execute_pass(self) -> ChangeSet:
        self._state = SchedulerState.IDLE

        change_set = self._diff_pass()
        self.pass_count += 1
        self.last_change_set = change_set

        if change_set.has_changes:
            try:
                self._on_changes(change_set)
            except Exception as e:
                logger.error(f"Change handler failed: {e}", exc_info=True)

        return change_set
