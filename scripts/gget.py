#!/usr/bin/env python3
"""Download every URL read from stdin into a directory."""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger

from domains.link_download.downloader import LinkDownloader
from olyshare.utils.config import get_settings
from olyshare.utils.http_client import build_http_client
from olyshare.utils.log import configure_logging


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    settings = get_settings()
    parser = argparse.ArgumentParser(description="Download URLs listed on stdin.")
    parser.add_argument("--outdir", type=Path, default=Path("./"), help="Output directory (default: ./).")
    parser.add_argument(
        "--routines",
        type=int,
        default=settings.gget_workers,
        help="Number of downloads to run at a time (default: 2).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None, stdin: Optional[TextIO] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)

    if args.routines < 1:
        logger.error(f"--routines must be positive, got {args.routines}")
        return 1

    cancel = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, cancelling downloads.")
        cancel.set()

    signal.signal(signal.SIGINT, _signal_handler)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, _signal_handler)

    with build_http_client(settings, cache=False) as client:
        downloader = LinkDownloader(client, args.outdir, workers=args.routines)
        result = downloader.run(stdin or sys.stdin, cancel)

    if not result.ok:
        logger.error(f"error while downloading: {result.error}")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
