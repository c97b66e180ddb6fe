"""Inspect commands -- examine, print or remove a cache file.

These commands work on any file written by :class:`~tote.cache.Tote`
with the default JSON codec.  They never fetch: ``status`` reports the
verdict the next ``get()`` would reach, ``show`` prints the decoded
contents, and ``clear`` deletes the file so the next ``get()`` refetches.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from tote.cache import Tote
from tote.codec import JsonCodec
from tote.config import parse_max_age
from tote.exceptions import InvalidUsageError, ToteError
from tote.output import format_delta, get_reporter


def _fail(exc: ToteError) -> typer.Exit:
    get_reporter().error(str(exc))
    return typer.Exit(code=exc.exit_code)


def status_command(
    path: Path = typer.Argument(help="Cache file to inspect."),
    max_age: str = typer.Option(
        "1d", "--max-age", "-a", help="Freshness window, e.g. '90s', '15m', '1h', '1d'."
    ),
) -> None:
    """Show age, size and freshness verdict of a cache file.

    Example::

        tote status ~/.cache/mytool/ip.json --max-age 1h
        tote --json status ~/.cache/mytool/ip.json
    """
    try:
        window = parse_max_age(max_age)
    except ToteError as exc:
        raise _fail(exc)

    get_reporter().status(Tote(path, window).status())


def show_command(
    path: Path = typer.Argument(help="Cache file to print."),
    max_age: Optional[str] = typer.Option(
        None, "--max-age", "-a", help="Warn when the file is older than this window."
    ),
) -> None:
    """Print the decoded contents of a cache file.

    Exits with code 2 when the file does not exist and 5 when it cannot
    be decoded as JSON.

    Example::

        tote show ~/.cache/mytool/colors.json
    """
    try:
        if not path.is_file():
            raise InvalidUsageError(f"No cache file at {path}")
        window = parse_max_age(max_age) if max_age is not None else None
        data = JsonCodec().decode(path.read_bytes())
    except ToteError as exc:
        raise _fail(exc)

    if window is not None and not Tote(path, window).is_valid():
        get_reporter().warning(
            f"{path} is older than {format_delta(window)}; the next get() will refetch"
        )
    get_reporter().contents(data)


def clear_command(
    path: Path = typer.Argument(help="Cache file to delete."),
) -> None:
    """Delete a cache file so the next ``get()`` refetches.

    Example::

        tote clear ~/.cache/mytool/ip.json
    """
    if not path.exists():
        get_reporter().info(f"Nothing to clear at {path}")
        return
    if path.is_dir():
        raise _fail(InvalidUsageError(f"{path} is a directory, not a cache file"))
    try:
        path.unlink()
    except OSError as exc:
        raise _fail(ToteError(f"Cannot delete {path}: {exc}"))
    get_reporter().success(f"Cleared {path}")
