"""
HTTP clients used to talk to the camera.

Provides:
- A caching client (hishel file storage) for listing, probes and downloads
- A plain client for the link downloader
"""

from pathlib import Path
from typing import Optional

import hishel
import httpx
from loguru import logger

from olyshare.utils.config import Settings

CACHEABLE_METHODS = ["GET", "HEAD"]


def build_cache_transport(
    cache_dir: Path,
    transport: Optional[httpx.BaseTransport] = None,
) -> hishel.CacheTransport:
    """
    Wrap ``transport`` with an on-disk response cache.

    Camera responses rarely carry explicit freshness headers, so heuristic
    caching is enabled; anything with a Last-Modified validator is reused.

    Args:
        cache_dir: Directory holding cached responses
        transport: Underlying transport, defaults to a plain HTTP transport

    Returns:
        Caching transport
    """
    storage = hishel.FileStorage(base_path=Path(cache_dir))
    controller = hishel.Controller(
        cacheable_methods=CACHEABLE_METHODS,
        allow_heuristics=True,
    )
    return hishel.CacheTransport(
        transport=transport or httpx.HTTPTransport(),
        storage=storage,
        controller=controller,
    )


def build_http_client(
    settings: Settings,
    transport: Optional[httpx.BaseTransport] = None,
    cache: bool = True,
) -> httpx.Client:
    """
    Build the client shared by the listing, filter and worker stages.

    ``httpx.Client`` is safe to share across worker threads.
    """
    if cache:
        logger.debug(f"HTTP cache directory: {settings.cache_dir}")
        transport = build_cache_transport(settings.cache_dir, transport)

    return httpx.Client(
        transport=transport,
        timeout=settings.http_timeout,
        follow_redirects=True,
    )
