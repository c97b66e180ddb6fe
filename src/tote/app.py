"""Typer application and CLI entry point for tote.

The ``tote`` command inspects cache files written by
:class:`~tote.cache.Tote`: ``status``, ``show`` and ``clear``.  It is a
debugging aid for host-tool authors; the cache itself needs no CLI.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.  :class:`~tote.exceptions.ToteError` instances exit
with the error's ``exit_code``; anything else exits with
:data:`~tote.exit_codes.EXIT_GENERIC_FAILURE`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any

import typer
from rich.logging import RichHandler

from tote import __version__
from tote.commands.inspect import clear_command, show_command, status_command
from tote.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="tote",
    help="Inspect and manage single-file CLI data caches.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("status")(status_command)
app.command("show")(show_command)
app.command("clear")(clear_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"tote {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, console: Any) -> None:
    """Route library log records through Rich on stderr."""
    package_logger = logging.getLogger("tote")
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, show_time=False)
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~tote.output.Reporter` and the
    logging handler for the ``tote`` package.
    """
    from tote.output import OutputFormat, Reporter, set_reporter

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    reporter = Reporter(format=fmt, no_color=no_color, quiet=quiet)
    set_reporter(reporter)
    _configure_logging(verbose, reporter.stderr_console)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``tote`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from tote.exceptions import ToteError
        from tote.output import get_reporter

        if isinstance(exc, ToteError):
            get_reporter().error(str(exc))
            sys.exit(exc.exit_code)
        get_reporter().error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
