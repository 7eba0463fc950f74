#!/usr/bin/env python3
"""Import recent photos from an Olympus camera over Wi-Fi.

The camera must be reachable (PC joined to the camera's Wi-Fi network).
Files already present in the output directory are skipped, so interrupted
imports can simply be re-run.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from domains.camera_import.exif import ExifDecoder
from domains.camera_import.importer import Importer
from olyshare.models.schemas import ImportJob, RunOutcome
from olyshare.utils.config import Settings, get_settings
from olyshare.utils.http_client import build_http_client
from olyshare.utils.log import configure_logging


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Copy recent images from the camera into an output directory.",
    )
    parser.add_argument("--cam-ip", dest="camera_url", help="Camera base URL (default: http://192.168.0.10).")
    parser.add_argument("--cache-dir", type=Path, help="HTTP cache directory (default: .cache).")
    parser.add_argument("--out-dir", type=Path, help="Output directory (default: output).")
    parser.add_argument(
        "--skip-movie",
        action="store_true",
        default=None,
        help="Skip movie files.",
    )
    parser.add_argument(
        "--skip-raw",
        action="store_true",
        default=None,
        help="Skip raw (ORF) files.",
    )
    parser.add_argument(
        "--copy-days",
        type=int,
        help="Copy images taken within this many days; 0 copies everything (default: 1).",
    )
    parser.add_argument(
        "--import-routines",
        dest="import_workers",
        type=int,
        help="Number of parallel downloads, 1-4 (default: 2).",
    )
    parser.add_argument(
        "--undated",
        dest="undated_policy",
        choices=["fail", "skip"],
        help="What to do with files without a capture time (default: fail).",
    )
    parser.add_argument("--log-level", help="Log level (default: INFO).")

    return parser.parse_args(argv)


def resolve_settings(args: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    """Overlay explicitly given CLI flags on the environment settings."""
    base = base or get_settings()
    overrides = {key: value for key, value in vars(args).items() if value is not None}
    return base.model_copy(update=overrides)


def check_dirs(settings: Settings) -> bool:
    """Both the cache and output directories must already exist."""
    for path in (settings.cache_dir, settings.out_dir):
        if not path.is_dir():
            logger.error(f"given dir {path} does not exist or is not a directory")
            return False
    return True


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    settings = resolve_settings(args)
    configure_logging(settings.log_level)

    if not check_dirs(settings):
        return 1

    job = ImportJob.from_settings(settings)
    decoder = ExifDecoder()

    cancel = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, cancelling import.")
        cancel.set()

    signal.signal(signal.SIGINT, _signal_handler)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _signal_handler)

    with build_http_client(settings) as client:
        result = Importer(job, client, decoder).run(cancel)

    stats = result.stats.as_dict()
    if not result.ok:
        logger.error(f"import error: {result.error}")
        return 1

    if result.outcome is RunOutcome.CUTOFF:
        logger.success(f"Imported {stats['imported']} files, stopped at the {job.copy_days} day cutoff")
    else:
        logger.success(f"Imported {stats['imported']} files")
    logger.info(f"Run statistics: {stats}")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
