"""Single-artifact file cache with a freshness window.

:class:`Tote` binds one file path and a maximum age to a typed artifact.
Each :meth:`~Tote.get` call classifies the file into a
:class:`~tote.models.Verdict`:

* **MISSING** -- the file does not exist (or cannot be stat'ed).
* **EXPIRED** -- the file is older than ``max_age``.
* **CORRUPT** -- the file is within the window but cannot be read or
  decoded.
* **FRESH** -- the file is within the window and decodes; its value is
  returned and the fetch capability is not called.

Every verdict other than FRESH invokes the fetch capability once, writes
the result over the file and returns it.  Corrupt files are never reported
as errors: they are repaired by the refetch so a damaged cache can never
permanently block the host tool.  Only :class:`~tote.exceptions.FetchError`
and :class:`~tote.exceptions.PersistenceError` reach the caller.

The file's last-modified time is the only freshness signal; nothing about
expiry is stored inside the file.  Writes overwrite the file in place --
there is no temp-file-and-rename and no locking, so concurrent writers on
the same path race and the last one wins.

:meth:`~Tote.get_async` applies exactly the same policy; it awaits the
fetch capability and moves file I/O to a worker thread with
:func:`asyncio.to_thread`.

Example::

    from datetime import timedelta
    from tote import Tote

    def fetch_colors() -> list[str]:
        return ["Larkspur", "Lavender", "Periwinkle"]

    cache = Tote("./colors.cache", timedelta(days=1), list[str], fetch=fetch_colors)
    colors = cache.get()
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Generic, Optional, TypeVar, Union

from tote.codec import Codec, JsonCodec
from tote.exceptions import InvalidUsageError, PersistenceError
from tote.fetch import AnyFetch, call_fetch, call_fetch_async
from tote.models import CacheStatus, Verdict

logger = logging.getLogger(__name__)

T = TypeVar("T")

MaxAge = Union[timedelta, int, float]


def _as_timedelta(max_age: MaxAge) -> timedelta:
    if isinstance(max_age, timedelta):
        return max_age
    return timedelta(seconds=max_age)


class Tote(Generic[T]):
    """Local file cache for one artifact.

    Construction performs no I/O; the file need not exist yet.  The handle
    holds no state between calls -- everything lives on disk.

    Args:
        path: Filesystem location of the cache file.  Any path-like value.
        max_age: Freshness window, as a :class:`~datetime.timedelta` or a
            number of seconds.  Files whose age exceeds it are refetched.
        artifact_type: Type of the cached value, used to build the default
            :class:`~tote.codec.JsonCodec`.  Ignored when *codec* is given.
        codec: Encode/decode pair for the file contents.
        fetch: Default fetch capability, used when :meth:`get` or
            :meth:`get_async` is called without one.
    """

    def __init__(
        self,
        path: Union[str, os.PathLike[str]],
        max_age: MaxAge,
        artifact_type: Any = Any,
        codec: Optional[Codec[T]] = None,
        fetch: Optional[AnyFetch[T]] = None,
    ) -> None:
        self._path = Path(path)
        self._max_age = _as_timedelta(max_age)
        self._codec: Codec[T] = codec if codec is not None else JsonCodec(artifact_type)
        self._fetch = fetch

    @property
    def path(self) -> Path:
        """The cache file location."""
        return self._path

    @property
    def max_age(self) -> timedelta:
        """The freshness window."""
        return self._max_age

    @property
    def codec(self) -> Codec[T]:
        """The codec used for the file contents."""
        return self._codec

    def __repr__(self) -> str:
        return f"Tote(path={str(self._path)!r}, max_age={self._max_age!r}, codec={self._codec!r})"

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get(self, fetch: Optional[AnyFetch[T]] = None) -> T:
        """Return the cached artifact, fetching and storing it if needed.

        Args:
            fetch: Blocking fetch capability for this call.  Falls back to
                the one given at construction.

        Returns:
            The decoded artifact when the file is fresh, otherwise the
            newly fetched one.

        Raises:
            FetchError: If the fetch capability fails.  The file is left
                untouched.
            PersistenceError: If the fetched artifact cannot be written.
            InvalidUsageError: If a fetch is needed but none was supplied,
                or the supplied one is asynchronous.
        """
        verdict, value = self._lookup()
        if verdict is Verdict.FRESH:
            return value  # type: ignore[return-value]

        strategy = self._resolve_fetch(fetch, verdict)
        value = call_fetch(strategy)
        self.put(value)
        return value

    async def get_async(self, fetch: Optional[AnyFetch[T]] = None) -> T:
        """Asynchronous equivalent of :meth:`get`.

        *fetch* may return an awaitable or a plain value.  Cancelling the
        task before the fetch completes leaves the file untouched; a
        cancellation during the write may leave it truncated, in which case
        the next lookup reports it as corrupt and refetches.

        Raises:
            FetchError: If the fetch capability fails.
            PersistenceError: If the fetched artifact cannot be written.
            InvalidUsageError: If a fetch is needed but none was supplied.
        """
        verdict, value = await asyncio.to_thread(self._lookup)
        if verdict is Verdict.FRESH:
            return value  # type: ignore[return-value]

        strategy = self._resolve_fetch(fetch, verdict)
        value = await call_fetch_async(strategy)
        await asyncio.to_thread(self.put, value)
        return value

    def put(self, value: T) -> None:
        """Encode *value* and write it over the cache file.

        Parent directories are created as needed.

        Raises:
            PersistenceError: If the value cannot be encoded or the file
                cannot be written (permissions, disk full, invalid path).
        """
        try:
            data = self._codec.encode(value)
        except Exception as exc:
            raise PersistenceError(f"Cannot encode value for {self._path}: {exc}") from exc

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_bytes(data)
        except OSError as exc:
            raise PersistenceError(f"Cannot write cache file {self._path}: {exc}") from exc
        logger.debug("Wrote %d bytes to %s", len(data), self._path)

    def read(self) -> Optional[T]:
        """Return the cached artifact if the file is fresh, else ``None``.

        Never fetches and never raises for missing, expired or corrupt
        files.
        """
        verdict, value = self._lookup()
        return value if verdict is Verdict.FRESH else None

    def verdict(self) -> Verdict:
        """Classify the cache file without fetching."""
        return self._lookup()[0]

    def is_valid(self) -> bool:
        """Whether the file exists and is within the freshness window.

        The contents are not decoded, so a corrupt file inside the window
        still counts as valid here.
        """
        try:
            mtime = self._path.stat().st_mtime
        except OSError:
            return False
        return not self._is_expired(mtime)

    def status(self) -> CacheStatus:
        """Return a :class:`~tote.models.CacheStatus` snapshot of the file."""
        verdict, _ = self._lookup()
        try:
            stat = self._path.stat()
        except OSError:
            return CacheStatus(
                path=self._path, exists=False, max_age=self._max_age, verdict=verdict
            )
        return CacheStatus(
            path=self._path,
            exists=True,
            max_age=self._max_age,
            verdict=verdict,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            age=self._age(stat.st_mtime),
            size_bytes=stat.st_size,
        )

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _lookup(self) -> tuple[Verdict, Optional[T]]:
        """Classify the file and decode it when it is within the window."""
        try:
            mtime = self._path.stat().st_mtime
        except FileNotFoundError:
            logger.debug("Cache file %s is missing", self._path)
            return Verdict.MISSING, None
        except OSError as exc:
            logger.debug("Cannot stat cache file %s: %s", self._path, exc)
            return Verdict.MISSING, None

        if self._is_expired(mtime):
            logger.debug(
                "Cache file %s expired (age %s > %s)",
                self._path, self._age(mtime), self._max_age,
            )
            return Verdict.EXPIRED, None

        try:
            value = self._codec.decode(self._path.read_bytes())
        except Exception as exc:
            # Any decode failure, including from codecs that do not raise
            # CodecError, is recovered by refetching.
            logger.warning("Ignoring unreadable cache file %s: %s", self._path, exc)
            return Verdict.CORRUPT, None

        logger.debug("Cache file %s is fresh", self._path)
        return Verdict.FRESH, value

    def _resolve_fetch(self, fetch: Optional[AnyFetch[T]], verdict: Verdict) -> AnyFetch[T]:
        strategy = fetch if fetch is not None else self._fetch
        if strategy is None:
            raise InvalidUsageError(
                f"Cache file {self._path} is {verdict.value} and no fetch capability was given"
            )
        logger.debug("Fetching fresh data for %s (%s)", self._path, verdict.value)
        return strategy

    def _age(self, mtime: float) -> timedelta:
        return timedelta(seconds=time.time() - mtime)

    def _is_expired(self, mtime: float) -> bool:
        return self._age(mtime) > self._max_age
