"""
Exception types raised by the import pipelines.

Every fatal condition derives from ``OlyshareError`` so callers can report
it as a single human readable line. ``CutoffReached`` is deliberately not an
``OlyshareError``: it ends a run successfully.
"""


class OlyshareError(Exception):
    """Base class for fatal pipeline errors."""


class ListingError(OlyshareError):
    """The camera listing could not be fetched or read."""


class FetchError(OlyshareError):
    """An item body could not be downloaded."""


class DecodeError(OlyshareError):
    """No capture timestamp could be extracted from an item."""


class PersistenceError(OlyshareError):
    """Writing an item to the destination directory failed."""


class ImportCancelled(OlyshareError):
    """The run was cancelled before the work finished."""


class CutoffReached(Exception):
    """An item older than the retention window was reached."""

    def __init__(self, item_id: str, taken, cutoff):
        super().__init__(f"{item_id} taken {taken:%Y-%m-%d %H:%M:%S} is older than {cutoff:%Y-%m-%d %H:%M:%S}")
        self.item_id = item_id
        self.taken = taken
        self.cutoff = cutoff
