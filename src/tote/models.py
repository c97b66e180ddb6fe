"""Pydantic models and enums shared across tote modules.

:class:`Verdict` is the transient classification computed on every lookup;
:class:`CacheStatus` is a read-only snapshot of a cache file used by
inspection tooling such as ``tote status``.  Neither is ever written to the
cache file itself.
"""

from __future__ import annotations

import enum
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Verdict(str, enum.Enum):
    """Freshness classification of a cache file.

    Only ``FRESH`` short-circuits the fetch; the other three are handled
    identically by triggering a refetch.
    """

    FRESH = "fresh"
    MISSING = "missing"
    EXPIRED = "expired"
    CORRUPT = "corrupt"


class CacheStatus(BaseModel):
    """Snapshot of a cache file's state at the time it was inspected.

    Produced by :meth:`tote.cache.Tote.status`.  ``modified_at``, ``age``
    and ``size_bytes`` are ``None`` when the file does not exist.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    exists: bool
    max_age: timedelta
    verdict: Verdict
    modified_at: Optional[datetime] = Field(
        default=None, description="Last-modified time of the cache file (UTC)"
    )
    age: Optional[timedelta] = Field(
        default=None, description="Elapsed time since the last write"
    )
    size_bytes: Optional[int] = None

    @property
    def expires_at(self) -> Optional[datetime]:
        """When the file stops being fresh, or ``None`` if it does not exist."""
        if self.modified_at is None:
            return None
        return self.modified_at + self.max_age
