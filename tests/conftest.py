"""Shared test fixtures for tote.

Provides cache-file paths, counting fetch capabilities and a helper that
back-dates a file's modification time, so freshness scenarios can be tested
without sleeping.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Any, Callable

import pytest

from tote.output import reset_reporter


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_reporter_between_tests() -> None:
    """Drop the installed Reporter after every test.

    A Reporter caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation.
    """
    yield
    reset_reporter()


@pytest.fixture(autouse=True)
def _reset_tote_logger() -> None:
    """Drop handlers the CLI callback attaches to the ``tote`` logger."""
    yield
    package_logger = logging.getLogger("tote")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Fetch capabilities
# ---------------------------------------------------------------------------


class CountingFetch:
    """Blocking fetch capability that records how often it was called.

    Returns *value* on every call, or raises *error* when one is set.
    """

    def __init__(self, value: Any = None, error: Exception | None = None) -> None:
        self.value = value
        self.error = error
        self.calls = 0

    def __call__(self) -> Any:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.value


class AsyncCountingFetch(CountingFetch):
    """Asynchronous variant of :class:`CountingFetch`."""

    async def __call__(self) -> Any:  # type: ignore[override]
        return super().__call__()


@pytest.fixture
def counting_fetch() -> type[CountingFetch]:
    return CountingFetch


@pytest.fixture
def async_counting_fetch() -> type[AsyncCountingFetch]:
    return AsyncCountingFetch


# ---------------------------------------------------------------------------
# Cache files
# ---------------------------------------------------------------------------


@pytest.fixture
def cache_file(tmp_path: Path) -> Path:
    """Path of a cache file that does not exist yet."""
    return tmp_path / "colors.cache"


@pytest.fixture
def backdate() -> Callable[[Path, float], None]:
    """Return a function that sets a file's mtime to *seconds* ago."""

    def _backdate(path: Path, seconds: float) -> None:
        stamp = time.time() - seconds
        os.utime(path, (stamp, stamp))

    return _backdate
