"""
Shared data models for olyshare.

Run configuration is a frozen pydantic model; per-item and per-run records
are plain dataclasses since they never cross a serialisation boundary.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Literal, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, field_validator

from olyshare.utils.config import Settings
from olyshare.utils.helpers import base_filename, normalise_content_type

MIN_WORKERS = 1
MAX_WORKERS = 4
DEFAULT_WORKERS = 2


# =====================================================
# Run Configuration
# =====================================================

class ImportJob(BaseModel):
    """Immutable configuration for one import run."""

    model_config = ConfigDict(frozen=True)

    camera_url: str
    listing_path: str
    out_dir: Path
    copy_days: int = 1
    workers: int = DEFAULT_WORKERS
    skip_content_types: FrozenSet[str] = frozenset()
    undated_policy: Literal["fail", "skip"] = "fail"

    @field_validator("workers")
    @classmethod
    def _bound_workers(cls, value: int) -> int:
        if MIN_WORKERS <= value <= MAX_WORKERS:
            return value
        logger.warning(
            f"Worker count {value} outside {MIN_WORKERS}-{MAX_WORKERS}, using {DEFAULT_WORKERS}"
        )
        return DEFAULT_WORKERS

    @field_validator("skip_content_types")
    @classmethod
    def _normalise_types(cls, value: FrozenSet[str]) -> FrozenSet[str]:
        return frozenset(normalise_content_type(t) for t in value if t)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImportJob":
        """Build a job from loaded settings."""
        return cls(
            camera_url=settings.camera_url,
            listing_path=settings.listing_path,
            out_dir=settings.out_dir,
            copy_days=settings.copy_days,
            workers=settings.import_workers,
            skip_content_types=frozenset(settings.get_skip_content_types()),
            undated_policy=settings.undated_policy,
        )

    @property
    def listing_url(self) -> str:
        return self.camera_url.rstrip("/") + self.listing_path

    def item_url(self, item_id: str) -> str:
        return self.camera_url.rstrip("/") + item_id

    def destination(self, item_id: str) -> Path:
        return self.out_dir / base_filename(item_id)


# =====================================================
# Pipeline Records
# =====================================================

@dataclass(slots=True)
class RemoteItem:
    """One file named in the camera listing."""

    id: str
    content_type: Optional[str] = None
    taken: Optional[datetime] = None

    @property
    def filename(self) -> str:
        return base_filename(self.id)


class RunState(str, Enum):
    LISTING = "listing"
    FILTERING = "filtering"
    DRAINING = "draining"
    COMPLETED = "completed"
    CANCELLED_ERROR = "cancelled_error"
    CANCELLED_CUTOFF = "cancelled_cutoff"

    @property
    def terminal(self) -> bool:
        return self in (RunState.COMPLETED, RunState.CANCELLED_ERROR, RunState.CANCELLED_CUTOFF)


class RunOutcome(str, Enum):
    COMPLETED = "completed"
    CUTOFF = "cutoff"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class ImportStats:
    """Counters updated concurrently by the producer and the workers."""

    listed: int = 0
    skipped_present: int = 0
    skipped_duplicate: int = 0
    skipped_type: int = 0
    skipped_undated: int = 0
    fetched: int = 0
    imported: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return {
                "listed": self.listed,
                "skipped_present": self.skipped_present,
                "skipped_duplicate": self.skipped_duplicate,
                "skipped_type": self.skipped_type,
                "skipped_undated": self.skipped_undated,
                "fetched": self.fetched,
                "imported": self.imported,
            }


@dataclass(frozen=True)
class RunResult:
    """Terminal value of a run."""

    outcome: RunOutcome
    state: RunState
    error: Optional[BaseException] = None
    stats: ImportStats = field(default_factory=ImportStats)

    @property
    def ok(self) -> bool:
        return self.outcome in (RunOutcome.COMPLETED, RunOutcome.CUTOFF)
