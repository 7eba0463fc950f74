"""
Fixed-size worker pool fed by a single producer.

Workers pull from one bounded queue. A worker stops on the end-of-work
sentinel, on cancellation, or after reporting a failure or cutoff to the
coordinator. Queue operations poll so cancellation is seen within
``poll_interval`` seconds.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, Generic, TypeVar

from loguru import logger

from olyshare.utils.coordinator import RunCoordinator
from olyshare.utils.errors import CutoffReached, ImportCancelled

T = TypeVar("T")

_DONE = object()


class WorkerPool(Generic[T]):
    """Run ``handler`` over submitted items on ``size`` threads."""

    def __init__(
        self,
        handler: Callable[[T], None],
        size: int,
        coordinator: RunCoordinator,
        name: str = "worker",
        poll_interval: float = 0.1,
    ) -> None:
        if size < 1:
            raise ValueError(f"pool size must be positive, got {size}")
        self.handler = handler
        self.size = size
        self.coordinator = coordinator
        self.name = name
        self.poll_interval = poll_interval
        self._queue: queue.Queue = queue.Queue(maxsize=size * 2)
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        for index in range(self.size):
            thread = threading.Thread(
                target=self._work,
                name=f"{self.name}-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        logger.debug(f"Started {self.size} {self.name} threads")

    def submit(self, item: T) -> bool:
        """
        Hand ``item`` to the workers.

        Returns:
            False if the run was cancelled before the item was queued
        """
        return self._put(item)

    def close(self) -> None:
        """Signal end of work, one sentinel per worker."""
        for _ in self._threads:
            if not self._put(_DONE):
                return

    def join(self) -> None:
        for thread in self._threads:
            while thread.is_alive():
                thread.join(self.poll_interval)

    def _put(self, item: object) -> bool:
        while not self.coordinator.cancelled:
            try:
                self._queue.put(item, timeout=self.poll_interval)
                return True
            except queue.Full:
                continue
        return False

    def _work(self) -> None:
        while True:
            try:
                item = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self.coordinator.cancelled:
                    return
                continue

            if item is _DONE or self.coordinator.cancelled:
                return

            try:
                self.handler(item)
            except CutoffReached as stop:
                self.coordinator.halt(stop)
                return
            except ImportCancelled:
                return
            except Exception as e:
                self.coordinator.fail(e)
                return
