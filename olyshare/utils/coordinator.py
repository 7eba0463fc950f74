"""
Run coordination: one cancellation signal and one outcome slot per run.

The first terminal condition reported (fatal error or cutoff) wins and sets
the shared cancellation event. Later reports are ignored. An external
interrupt simply sets the same event; ``result()`` then reports the run as
cancelled.
"""

from __future__ import annotations

import threading
from typing import Optional

from loguru import logger

from olyshare.models.schemas import ImportStats, RunOutcome, RunResult, RunState
from olyshare.utils.errors import CutoffReached, ImportCancelled


class RunCoordinator:
    """Owns cancellation and the single terminal outcome of a run."""

    def __init__(self, cancel: Optional[threading.Event] = None, stats: Optional[ImportStats] = None):
        self._cancel = cancel if cancel is not None else threading.Event()
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._cutoff: Optional[CutoffReached] = None
        self._state = RunState.LISTING
        self.stats = stats if stats is not None else ImportStats()

    @property
    def cancel_event(self) -> threading.Event:
        return self._cancel

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def state(self) -> RunState:
        return self._state

    def advance(self, state: RunState) -> None:
        """Move to ``state`` unless the run already reached a terminal state."""
        with self._lock:
            if self._state.terminal:
                return
            logger.debug(f"Run state {self._state.value} -> {state.value}")
            self._state = state

    def check(self) -> None:
        """Raise ``ImportCancelled`` if cancellation was requested."""
        if self._cancel.is_set():
            raise ImportCancelled("import cancelled")

    def fail(self, error: BaseException) -> bool:
        """
        Record a fatal error and cancel the run.

        Returns:
            True if this call set the outcome, False if one was already set
        """
        with self._lock:
            first = self._error is None and self._cutoff is None
            if first:
                self._error = error
        self._cancel.set()
        if first:
            logger.error(f"Run failed: {error}")
        return first

    def halt(self, cutoff: CutoffReached) -> bool:
        """Record a cutoff soft-stop and cancel the run."""
        with self._lock:
            first = self._error is None and self._cutoff is None
            if first:
                self._cutoff = cutoff
        self._cancel.set()
        if first:
            logger.info(f"Stopping import, remaining files are older: {cutoff}")
        return first

    def interrupt(self) -> None:
        """Request cancellation from outside the pipeline."""
        self.fail(ImportCancelled("import interrupted"))

    def result(self) -> RunResult:
        """Finalise the run and return its single result."""
        with self._lock:
            if self._error is not None:
                outcome = RunOutcome.CANCELLED if isinstance(self._error, ImportCancelled) else RunOutcome.FAILED
                error = self._error
                state = RunState.CANCELLED_ERROR
            elif self._cutoff is not None:
                outcome, error, state = RunOutcome.CUTOFF, None, RunState.CANCELLED_CUTOFF
            elif self._cancel.is_set():
                outcome, error, state = RunOutcome.CANCELLED, ImportCancelled("import interrupted"), RunState.CANCELLED_ERROR
            else:
                outcome, error, state = RunOutcome.COMPLETED, None, RunState.COMPLETED

            if not self._state.terminal:
                self._state = state

        return RunResult(outcome=outcome, state=self._state, error=error, stats=self.stats)
