"""Built-in CLI sub-commands for tote.

Each module defines the command functions registered on the top-level
Typer application in :mod:`tote.app`:

Modules:
    inspect: ``status``, ``show`` and ``clear`` for a single cache file.
"""
