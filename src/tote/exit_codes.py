"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tote.exceptions.ToteError` subclass.  Host CLIs
built on :class:`~tote.cache.Tote` can reuse these codes so that shell
wrappers can tell a failed fetch from a failed cache write without parsing
stderr.

Example::

    $ tote show ~/.cache/mytool/ip.json
    $ echo $?
    5   # EXIT_CODEC_FAILURE -- the cache file could not be decoded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments, or the cache file is missing."""

EXIT_FETCH_FAILURE = 3
"""The fetch capability failed to produce a fresh artifact."""

EXIT_PERSISTENCE_FAILURE = 4
"""A freshly fetched artifact could not be written to the cache file."""

EXIT_CODEC_FAILURE = 5
"""The cache file contents could not be encoded or decoded."""
