"""Cache location and freshness-window helpers for host CLIs.

The core :class:`~tote.cache.Tote` takes whatever path and duration it is
given.  This module covers the two things nearly every host tool needs to
decide before constructing one:

* **Where** -- :func:`get_cache_dir` and :func:`cache_path` follow the XDG
  Base Directory spec on Linux/BSD (``$XDG_CACHE_HOME/<app>/``, default
  ``~/.cache/<app>/``) and use ``~/.<app>/cache/`` on macOS and Windows.
* **How long** -- :func:`parse_max_age` turns user-facing strings such as
  ``"15m"`` or ``"1d"`` into a :class:`~datetime.timedelta`.
"""

from __future__ import annotations

import os
import platform
import re
from datetime import timedelta
from pathlib import Path

from tote.exceptions import InvalidUsageError

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhdw]?)\s*$", re.IGNORECASE)

_UNIT_SECONDS = {
    "": 1,
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _validate_app_name(app_name: str) -> str:
    if not app_name or os.sep in app_name or app_name in (".", ".."):
        raise InvalidUsageError(f"Invalid application name for cache directory: {app_name!r}")
    return app_name


def get_cache_dir(app_name: str, create: bool = True) -> Path:
    """Return the cache directory for *app_name*.

    On Linux/BSD: ``$XDG_CACHE_HOME/<app_name>/`` (default
    ``~/.cache/<app_name>/``).  On macOS/Windows: ``~/.<app_name>/cache/``.

    Args:
        app_name: Name of the host application; used as a directory name.
        create: Create the directory if it does not exist.

    Returns:
        Absolute path to the cache directory.

    Raises:
        InvalidUsageError: If *app_name* is empty or contains a path separator.
    """
    _validate_app_name(app_name)
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CACHE_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".cache"
        path = base / app_name
    else:
        path = Path.home() / f".{app_name}" / "cache"
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def cache_path(app_name: str, filename: str) -> Path:
    """Return the path of *filename* inside the cache directory for *app_name*.

    The directory is not created; :meth:`~tote.cache.Tote.put` creates it
    on the first write.

    Example::

        >>> cache_path("mytool", "public_ip.json")  # doctest: +SKIP
        PosixPath('/home/me/.cache/mytool/public_ip.json')
    """
    return get_cache_dir(app_name, create=False) / filename


# --- Durations ---


def parse_max_age(value: str) -> timedelta:
    """Parse a duration string into a :class:`~datetime.timedelta`.

    Accepts a non-negative number with an optional unit suffix: ``s``
    (seconds, the default), ``m``, ``h``, ``d`` or ``w``.  Examples:
    ``"90"``, ``"90s"``, ``"15m"``, ``"1.5h"``, ``"1d"``, ``"2w"``.

    Raises:
        InvalidUsageError: If *value* is not a recognised duration.
    """
    match = _DURATION_RE.match(value)
    if match is None:
        raise InvalidUsageError(
            f"Invalid max age {value!r}: expected a number with an optional "
            "unit (s, m, h, d, w), e.g. '15m' or '1d'"
        )
    amount, unit = match.groups()
    try:
        return timedelta(seconds=float(amount) * _UNIT_SECONDS[unit.lower()])
    except OverflowError as exc:
        raise InvalidUsageError(f"Invalid max age {value!r}: duration is too large") from exc
