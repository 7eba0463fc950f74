"""Retention window check applied to each fetched item."""

from datetime import datetime, timedelta
from typing import Callable, Optional

from olyshare.utils.errors import CutoffReached
from olyshare.utils.helpers import now_local


class AgeGate:
    """
    Halts the import once an item is older than ``copy_days``.

    The listing is consumed newest first, so the first too-old item means
    every item still pending is too old as well. ``copy_days <= 0``
    disables the gate.
    """

    def __init__(self, copy_days: int, clock: Optional[Callable[[], datetime]] = None):
        self.copy_days = copy_days
        self.clock = clock or now_local

    @property
    def enabled(self) -> bool:
        return self.copy_days > 0

    def cutoff(self) -> datetime:
        return self.clock() - timedelta(days=self.copy_days)

    def check(self, item_id: str, taken: datetime) -> None:
        """Raise ``CutoffReached`` if ``taken`` falls before the cutoff."""
        if not self.enabled:
            return
        cutoff = self.cutoff()
        if taken < cutoff:
            raise CutoffReached(item_id, taken, cutoff)
