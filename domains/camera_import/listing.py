"""
Camera listing source.

The camera publishes a plaintext index, one record per line::

    /DCIM/100OLYMP,P3300029.JPG,2964502,0,19582,35122

Only the directory and filename fields are used. Rows are returned newest
first, which is the reverse of the order the camera lists them in.
"""

from typing import Iterable, Iterator, Optional

import httpx
from loguru import logger

from olyshare.models.schemas import RemoteItem
from olyshare.utils.coordinator import RunCoordinator
from olyshare.utils.errors import ListingError

PATH_SEPARATOR = "/"
FIELD_SEPARATOR = ","


def parse_listing_line(line: str) -> str | None:
    """
    Turn one listing record into an item identifier.

    Args:
        line: Raw record, line ending allowed

    Returns:
        ``<dirpath>/<filename>`` or None if the record is not a listing row
    """
    text = line.rstrip("\r\n")
    if not text.startswith(PATH_SEPARATOR):
        return None

    parts = text.split(FIELD_SEPARATOR)
    if len(parts) < 2 or not parts[1]:
        logger.debug(f"Skipping malformed listing row: {text!r}")
        return None

    return PATH_SEPARATOR.join(parts[:2])


def parse_listing(lines: Iterable[str]) -> list[str]:
    """Collect identifiers from ``lines`` and return them newest first."""
    ids = []
    for line in lines:
        logger.debug(f"listing: {line.rstrip()}")
        item_id = parse_listing_line(line)
        if item_id is not None:
            ids.append(item_id)

    ids.reverse()
    return ids


class CameraListing:
    """Fetches and parses the camera's image listing."""

    def __init__(self, client: httpx.Client, listing_url: str):
        self.client = client
        self.listing_url = listing_url

    def _iter_lines(self, coordinator: Optional[RunCoordinator]) -> Iterator[str]:
        if coordinator:
            coordinator.check()
        with self.client.stream("GET", self.listing_url) as response:
            if response.is_error:
                raise ListingError(
                    f"could not list images, GET {self.listing_url} returned {response.status_code}"
                )
            for line in response.iter_lines():
                if coordinator:
                    coordinator.check()
                yield line

    def fetch(self, coordinator: Optional[RunCoordinator] = None) -> list[RemoteItem]:
        """
        Fetch the listing.

        Args:
            coordinator: Run whose cancellation aborts the listing

        Returns:
            Remote items, newest first

        Raises:
            ListingError: if the request fails or the body cannot be read
            ImportCancelled: if the run is cancelled before or while listing
        """
        logger.info(f"Listing images from {self.listing_url}")
        try:
            ids = parse_listing(self._iter_lines(coordinator))
        except httpx.HTTPError as e:
            raise ListingError(f"could not list images, used GET {self.listing_url} and failed with {e}") from e

        logger.info(f"Camera listed {len(ids)} files")
        return [RemoteItem(id=item_id) for item_id in ids]
