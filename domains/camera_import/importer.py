#!/usr/bin/env python3
"""
Camera importer.

Lists the camera, drops files that are already imported, duplicated or of
an excluded content type, then downloads the rest on a fixed pool of
workers. Each worker decodes the capture time, stops the whole run once
files fall outside the retention window, and writes the others to the
output directory.
"""

import threading
from datetime import datetime
from typing import Callable, Optional

import httpx
from loguru import logger

from domains.camera_import.exif import ExifDecoder
from domains.camera_import.filters import AlreadyPresent, ContentTypeExcluded, DuplicateName, FilterChain
from domains.camera_import.gate import AgeGate
from domains.camera_import.listing import CameraListing
from olyshare.models.schemas import ImportJob, ImportStats, RemoteItem, RunResult, RunState
from olyshare.utils.coordinator import RunCoordinator
from olyshare.utils.errors import DecodeError, FetchError, OlyshareError
from olyshare.utils.helpers import format_bytes
from olyshare.utils.storage import SaveHandler, save_file
from olyshare.utils.workers import WorkerPool


class Importer:
    """Runs one import of camera files into ``job.out_dir``."""

    def __init__(
        self,
        job: ImportJob,
        client: httpx.Client,
        decoder: ExifDecoder,
        save_handler: SaveHandler = save_file,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize importer.

        Args:
            job: Run configuration
            client: HTTP client, normally the caching client
            decoder: Initialised EXIF decoder
            save_handler: Writes a payload to its destination path
            clock: Current-time source for the age gate
        """
        self.job = job
        self.client = client
        self.decoder = decoder
        self.save_handler = save_handler
        self.gate = AgeGate(job.copy_days, clock=clock)

    def build_filters(self, stats: ImportStats) -> FilterChain:
        """
        Cheap local checks first, then the HEAD probe.

        A filename is only claimed once its item passed every other filter,
        so an excluded or unprobeable newest copy leaves the name to an older
        one. Claimed names are checked before the existence check so a file
        written earlier in this run by a worker still counts as a duplicate.
        """
        duplicates = DuplicateName(stats)
        return FilterChain([
            duplicates.claimed,
            AlreadyPresent(self.job.out_dir, stats),
            ContentTypeExcluded(self.client, self.job.item_url, self.job.skip_content_types, stats),
            duplicates,
        ])

    def run(self, cancel: Optional[threading.Event] = None) -> RunResult:
        """
        Run the import to completion, cutoff, failure or cancellation.

        Args:
            cancel: Event an outside party (signal handler) may set

        Returns:
            The run's single result; pipeline failures are reported here,
            never raised
        """
        coordinator = RunCoordinator(cancel)
        stats = coordinator.stats

        try:
            items = CameraListing(self.client, self.job.listing_url).fetch(coordinator)
        except OlyshareError as e:
            coordinator.fail(e)
            return coordinator.result()

        stats.incr("listed", len(items))
        chain = self.build_filters(stats)

        pool: WorkerPool[RemoteItem] = WorkerPool(
            lambda item: self.store_item(item, coordinator),
            self.job.workers,
            coordinator,
            name="import",
        )
        coordinator.advance(RunState.FILTERING)
        pool.start()
        try:
            for item in items:
                if coordinator.cancelled:
                    break
                if chain.skip(item):
                    continue
                if not pool.submit(item):
                    break
            pool.close()
            coordinator.advance(RunState.DRAINING)
        except KeyboardInterrupt:
            coordinator.interrupt()
        except Exception as e:
            coordinator.fail(e)
        finally:
            pool.join()

        result = coordinator.result()
        logger.info(f"Import finished: {result.outcome.value} {stats.as_dict()}")
        return result

    def grab(self, item: RemoteItem, coordinator: RunCoordinator) -> bytes:
        """
        Download an item's body, checking for cancellation between chunks.

        Raises:
            FetchError: on transport failure or an error status
            ImportCancelled: if the run is cancelled mid-download
        """
        url = self.job.item_url(item.id)
        logger.info(f"grabbing image {url}")
        chunks = []
        try:
            with self.client.stream("GET", url) as response:
                if response.is_error:
                    raise FetchError(f"GET {url} returned {response.status_code}")
                for chunk in response.iter_bytes():
                    coordinator.check()
                    chunks.append(chunk)
        except httpx.HTTPError as e:
            raise FetchError(f"GET {url} failed with {e}") from e

        coordinator.stats.incr("fetched")
        return b"".join(chunks)

    def store_item(self, item: RemoteItem, coordinator: RunCoordinator) -> None:
        """Fetch, date-check and persist one item; runs on a worker thread."""
        coordinator.check()
        body = self.grab(item, coordinator)

        try:
            item.taken = self.decoder.decode(body)
        except DecodeError as e:
            if self.job.undated_policy == "skip":
                logger.warning(f"Skipping {item.id}: {e}")
                coordinator.stats.incr("skipped_undated")
                return
            raise DecodeError(f"{item.id}: {e}") from e

        self.gate.check(item.id, item.taken)

        dest = self.job.destination(item.id)
        coordinator.check()
        self.save_handler(dest, body)
        coordinator.stats.incr("imported")
        logger.info(f"imported file to {dest} ({format_bytes(len(body))})")
