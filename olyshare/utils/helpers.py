"""
Helper utilities for olyshare.

Common functions used across domains.
"""

import hashlib
from datetime import datetime


def base_filename(item_id: str) -> str:
    """Return the last ``/`` separated segment of a listing identifier."""
    return item_id.rsplit('/', 1)[-1]


def normalise_content_type(value: str | None) -> str:
    """
    Normalise a Content-Type header for comparison.

    Parameters such as ``; charset=binary`` are dropped and the media type
    is lower-cased.

    Args:
        value: Raw header value, may be None

    Returns:
        Normalised media type, empty string if missing
    """
    if not value:
        return ""
    return value.split(';', 1)[0].strip().lower()


def link_filename(link: str) -> str:
    """Stable on-disk name for a downloaded link: the MD5 hex of the URL."""
    return hashlib.md5(link.encode()).hexdigest()


def now_local() -> datetime:
    """Get the current time as a timezone-aware local datetime."""
    return datetime.now().astimezone()


def format_bytes(bytes_count: float) -> str:
    """Format bytes as human-readable string."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_count < 1024.0:
            return f"{bytes_count:.1f} {unit}"
        bytes_count /= 1024.0
    return f"{bytes_count:.1f} PB"
