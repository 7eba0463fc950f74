"""Durable file persistence for downloaded payloads."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

from loguru import logger

from olyshare.utils.errors import PersistenceError

SaveHandler = Callable[[Path, bytes], Path]


def save_file(dest: Path, data: bytes) -> Path:
    """
    Write ``data`` to ``dest`` so that no partial file is ever visible there.

    The payload goes to ``<dest>.part`` first, is flushed and fsynced, then
    renamed over ``dest``. On failure the ``.part`` file is removed.

    Args:
        dest: Final file path
        data: Payload bytes

    Returns:
        The written path

    Raises:
        PersistenceError: if any create, write, flush or rename step fails
    """
    tmp = dest.with_name(dest.name + ".part")
    try:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        tmp.replace(dest)
    except OSError as e:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as cleanup_error:
            logger.warning(f"Could not remove partial file {tmp}: {cleanup_error}")
        raise PersistenceError(f"file create {dest} failed with {e}") from e

    return dest
