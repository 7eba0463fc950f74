"""
Skip predicates applied to listed items before any download.

Each predicate returns True when the item should be skipped. ``FilterChain``
evaluates them in order and stops at the first that says skip.
"""

import threading
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

import httpx
from loguru import logger

from olyshare.models.schemas import ImportStats, RemoteItem
from olyshare.utils.helpers import normalise_content_type

SkipPredicate = Callable[[RemoteItem], bool]


class FilterChain:
    """Ordered, short-circuiting list of skip predicates."""

    def __init__(self, predicates: Sequence[SkipPredicate]):
        self.predicates = list(predicates)

    def skip(self, item: RemoteItem) -> bool:
        return any(predicate(item) for predicate in self.predicates)


class AlreadyPresent:
    """Skip items whose file already exists in the destination directory."""

    def __init__(self, out_dir: Path, stats: Optional[ImportStats] = None):
        self.out_dir = out_dir
        self.stats = stats

    def __call__(self, item: RemoteItem) -> bool:
        if (self.out_dir / item.filename).exists():
            logger.debug(f"Already imported: {item.filename}")
            if self.stats:
                self.stats.incr("skipped_present")
            return True
        return False


class DuplicateName:
    """
    Skip items whose destination filename was already claimed this run.

    Calling the filter claims the filename for the item. ``claimed`` only
    checks, so it can run ahead of other filters without an item that is
    later skipped holding on to its name.
    """

    def __init__(self, stats: Optional[ImportStats] = None):
        self.stats = stats
        self._seen: set[str] = set()
        self._lock = threading.Lock()

    def _skipped(self, item: RemoteItem) -> bool:
        logger.warning(f"Skipping {item.id}: another listed file already maps to {item.filename}")
        if self.stats:
            self.stats.incr("skipped_duplicate")
        return True

    def claimed(self, item: RemoteItem) -> bool:
        with self._lock:
            duplicate = item.filename in self._seen
        return self._skipped(item) if duplicate else False

    def __call__(self, item: RemoteItem) -> bool:
        with self._lock:
            duplicate = item.filename in self._seen
            self._seen.add(item.filename)
        return self._skipped(item) if duplicate else False


class ContentTypeExcluded:
    """
    Probe an item's content type with HEAD and skip excluded types.

    A failed probe also skips the item; it is never retried.
    """

    def __init__(
        self,
        client: httpx.Client,
        item_url: Callable[[str], str],
        excluded: Iterable[str],
        stats: Optional[ImportStats] = None,
    ):
        self.client = client
        self.item_url = item_url
        self.excluded = frozenset(normalise_content_type(t) for t in excluded)
        self.stats = stats

    def probe(self, item: RemoteItem) -> str:
        """
        Fetch the item's Content-Type without transferring the body.

        Raises:
            httpx.HTTPError: on transport failure or an error status
        """
        url = self.item_url(item.id)
        response = self.client.head(url)
        response.raise_for_status()

        for name, value in response.headers.items():
            logger.debug(f"{url} {name}: {value}")

        item.content_type = response.headers.get("Content-Type", "")
        return item.content_type

    def __call__(self, item: RemoteItem) -> bool:
        try:
            content_type = self.probe(item)
        except httpx.HTTPError as e:
            logger.warning(f"HEAD {self.item_url(item.id)} failed with {e}, skipping")
            if self.stats:
                self.stats.incr("skipped_type")
            return True

        if normalise_content_type(content_type) in self.excluded:
            logger.debug(f"Skipping {item.id} with content type {content_type}")
            if self.stats:
                self.stats.incr("skipped_type")
            return True
        return False
