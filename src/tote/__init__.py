"""tote -- a lightweight single-file data cache for CLI tools.

For CLIs that query the same externally-sourced data on every invocation
(a lookup table, a geolocation result, a public IP address), :class:`Tote`
caches that data in one file so later runs can skip the fetch until the
file is older than a freshness window.

Typical use::

    from datetime import timedelta
    from tote import Tote

    cache: Tote[list[str]] = Tote(
        "./colors.cache", timedelta(days=1), list[str], fetch=fetch_colors
    )
    colors = cache.get()              # blocking
    colors = await cache.get_async()  # inside an event loop

Modules:
    cache: :class:`Tote`, the cache handle.
    codec: The :class:`~tote.codec.Codec` protocol and default JSON codec.
    fetch: Fetch capability protocols and the shared error policy.
    fetchers: httpx-based fetch capabilities for JSON endpoints.
    config: XDG cache paths and duration parsing for host CLIs.
    models: :class:`~tote.models.Verdict` and :class:`~tote.models.CacheStatus`.
    exceptions: Exception hierarchy with exit-code mapping.
    app: The ``tote`` inspection CLI.
"""

__version__ = "0.6.0"

from tote.cache import Tote  # noqa: E402
from tote.codec import Codec, JsonCodec  # noqa: E402
from tote.exceptions import (  # noqa: E402
    CodecError,
    FetchError,
    InvalidUsageError,
    PersistenceError,
    ToteError,
)
from tote.fetch import AsyncFetch, Fetch  # noqa: E402
from tote.models import CacheStatus, Verdict  # noqa: E402

__all__ = [
    "AsyncFetch",
    "CacheStatus",
    "Codec",
    "CodecError",
    "Fetch",
    "FetchError",
    "InvalidUsageError",
    "JsonCodec",
    "PersistenceError",
    "Tote",
    "ToteError",
    "Verdict",
]
