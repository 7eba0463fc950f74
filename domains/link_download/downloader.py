"""
Bulk link downloader.

Reads URLs one per line and stores each response body as
``<out_dir>/<md5 of url>``. The first failure cancels the remaining
downloads.
"""

import threading
from pathlib import Path
from typing import Iterable, Optional

import httpx
from loguru import logger

from olyshare.models.schemas import RunResult, RunState
from olyshare.utils.coordinator import RunCoordinator
from olyshare.utils.errors import FetchError
from olyshare.utils.helpers import link_filename
from olyshare.utils.storage import SaveHandler, save_file
from olyshare.utils.workers import WorkerPool


def iter_links(lines: Iterable[str]) -> Iterable[str]:
    """Yield stripped, non-empty lines."""
    for line in lines:
        link = line.strip()
        if link:
            yield link


class LinkDownloader:
    """Downloads links into ``out_dir`` on ``workers`` threads."""

    def __init__(
        self,
        client: httpx.Client,
        out_dir: Path,
        workers: int = 2,
        save_handler: SaveHandler = save_file,
    ):
        self.client = client
        self.out_dir = out_dir
        self.workers = workers
        self.save_handler = save_handler

    def fetch(self, link: str, coordinator: RunCoordinator) -> Path:
        """Download one link and persist it."""
        coordinator.check()
        chunks = []
        try:
            with self.client.stream("GET", link) as response:
                if response.is_error:
                    raise FetchError(f"GET {link} returned {response.status_code}")
                for chunk in response.iter_bytes():
                    coordinator.check()
                    chunks.append(chunk)
        except httpx.HTTPError as e:
            raise FetchError(f"GET {link} failed with {e}") from e

        coordinator.stats.incr("fetched")
        dest = self.out_dir / link_filename(link)
        coordinator.check()
        self.save_handler(dest, b"".join(chunks))
        coordinator.stats.incr("imported")
        logger.info(f"downloaded {link} to {dest}")
        return dest

    def _feed(self, lines: Iterable[str], pool: WorkerPool[str], coordinator: RunCoordinator) -> None:
        """Submit links as they are read; runs on the reader thread."""
        try:
            for link in iter_links(lines):
                coordinator.stats.incr("listed")
                if not pool.submit(link):
                    return
            pool.close()
            coordinator.advance(RunState.DRAINING)
        except Exception as e:
            coordinator.fail(e)

    def run(self, lines: Iterable[str], cancel: Optional[threading.Event] = None) -> RunResult:
        """
        Download every link read from ``lines``.

        ``lines`` is read on a daemon thread, so a read blocked on an idle
        stdin never holds up cancellation. The calling thread returns as
        soon as the input is exhausted and the workers drain, or the run is
        cancelled.
        """
        coordinator = RunCoordinator(cancel)
        pool: WorkerPool[str] = WorkerPool(
            lambda link: self.fetch(link, coordinator),
            self.workers,
            coordinator,
            name="gget",
        )

        coordinator.advance(RunState.FILTERING)
        pool.start()
        reader = threading.Thread(
            target=self._feed,
            args=(lines, pool, coordinator),
            name="gget-reader",
            daemon=True,
        )
        reader.start()
        try:
            while reader.is_alive() and not coordinator.cancelled:
                reader.join(pool.poll_interval)
        except KeyboardInterrupt:
            coordinator.interrupt()
        finally:
            pool.join()

        if coordinator.cancelled and reader.is_alive():
            logger.info("Stopped reading links, run was cancelled")
        return coordinator.result()
