"""Exception hierarchy for tote.

All exceptions inherit from :class:`ToteError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`tote.exit_codes`.

Only :class:`FetchError` and :class:`PersistenceError` ever escape
:meth:`~tote.cache.Tote.get` and :meth:`~tote.cache.Tote.get_async`.
:class:`CodecError` is raised by codecs and recovered inside the cache by
refetching; it only reaches callers who use a codec directly.

Subclass hierarchy::

    ToteError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- FetchError          (exit 3)
    +-- PersistenceError    (exit 4)
    +-- CodecError          (exit 5)
"""

from tote.exit_codes import (
    EXIT_CODEC_FAILURE,
    EXIT_FETCH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PERSISTENCE_FAILURE,
)


class ToteError(Exception):
    """Base exception for all tote errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ToteError):
    """Raised for invalid arguments, e.g. an unparseable max age or a missing fetch capability."""

    exit_code = EXIT_INVALID_USAGE


class FetchError(ToteError):
    """Raised when the fetch capability fails.

    The original exception is chained as ``__cause__``.  Nothing is written
    to the cache file when this is raised.
    """

    exit_code = EXIT_FETCH_FAILURE


class PersistenceError(ToteError):
    """Raised when a fetched artifact cannot be written to the cache file.

    The artifact was obtained but the operation as a whole did not
    complete, so it is not returned.
    """

    exit_code = EXIT_PERSISTENCE_FAILURE


class CodecError(ToteError):
    """Raised by a codec when bytes cannot be decoded or a value cannot be encoded."""

    exit_code = EXIT_CODEC_FAILURE
