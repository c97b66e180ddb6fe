"""Terminal output for the ``tote`` CLI.

What the user asked to see (decoded cache contents, a status report) is
written to stdout.  Notices, warnings and errors are written to stderr, so
``tote show path > out.json`` captures only the data.

Three renderings exist: ``RICH`` (highlighted JSON, a styled status table),
``JSON`` and ``PLAIN`` (tab-separated, one record per line).  ``AUTO``
picks ``RICH`` only when stdout is a terminal and colour is allowed;
``--no-color``, ``NO_COLOR`` and ``TERM=dumb`` all turn colour off.

The library modules never write here; they log through :mod:`logging`.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import timedelta
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from tote.models import CacheStatus, Verdict


class OutputFormat(str, Enum):
    """Rendering used for stdout."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


_VERDICT_STYLES = {
    Verdict.FRESH: "green",
    Verdict.MISSING: "dim",
    Verdict.EXPIRED: "yellow",
    Verdict.CORRUPT: "bold red",
}


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _color_disabled_by_env() -> bool:
    # NO_COLOR counts even when set to an empty string.
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def format_delta(delta: Optional[timedelta]) -> str:
    """Render a duration as ``[-]H:MM:SS`` with whole seconds, or ``-``."""
    if delta is None:
        return "-"
    seconds = int(delta.total_seconds())
    sign = "-" if seconds < 0 else ""
    return sign + str(timedelta(seconds=abs(seconds)))


def status_fields(status: CacheStatus) -> list[tuple[str, str]]:
    """Human-readable ``(field, value)`` pairs for a status report."""
    modified = status.modified_at.isoformat(timespec="seconds") if status.modified_at else "-"
    size = f"{status.size_bytes} bytes" if status.size_bytes is not None else "-"
    return [
        ("path", str(status.path)),
        ("exists", "yes" if status.exists else "no"),
        ("modified", modified),
        ("age", format_delta(status.age)),
        ("max age", format_delta(status.max_age)),
        ("size", size),
        ("verdict", status.verdict.value),
    ]


class Reporter:
    """Writes the results and diagnostics of one CLI invocation.

    Args:
        format: Rendering for stdout.  ``AUTO`` is resolved here, once.
        no_color: Turn off colour on both streams.
        quiet: Drop notices and confirmations.  Warnings and errors are
            always written.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._colorless = no_color or _color_disabled_by_env()
        self._quiet = quiet
        if format == OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._colorless else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._colorless,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._colorless, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def stderr_console(self) -> Console:
        """Console bound to stderr; the CLI's log handler writes through it."""
        return self._stderr

    # stdout

    def contents(self, data: Any) -> None:
        """Print a decoded cache value.

        In plain mode a mapping prints as ``key<TAB>value`` lines and a
        list prints one item per line, so shell tools can consume it.
        """
        if self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        elif self._format == OutputFormat.JSON:
            self._write(_to_json(data))
        elif isinstance(data, dict):
            for key, value in data.items():
                self._write(f"{key}\t{value}")
        elif isinstance(data, list):
            for item in data:
                if isinstance(item, dict):
                    self._write("\t".join(str(v) for v in item.values()))
                else:
                    self._write(str(item))
        else:
            self._write(str(data))

    def status(self, status: CacheStatus) -> None:
        """Print a cache status report, with the verdict highlighted in rich mode."""
        if self._format == OutputFormat.JSON:
            self._write(_to_json(status.model_dump(mode="json")))
            return

        fields = status_fields(status)
        if self._format == OutputFormat.PLAIN:
            for name, value in fields:
                self._write(f"{name}\t{value}")
            return

        table = Table(title="Cache status", show_header=False)
        table.add_column("field", style="bold cyan")
        table.add_column("value")
        for name, value in fields:
            if name == "verdict":
                table.add_row(name, Text(value, style=_VERDICT_STYLES[status.verdict]))
            else:
                table.add_row(name, value)
        self._stdout.print(table)

    # stderr

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, style="green")

    def warning(self, message: str) -> None:
        self._diagnostic(message, label="Warning:", style="yellow")

    def error(self, message: str) -> None:
        self._diagnostic(message, label="Error:", style="bold red")

    def _diagnostic(self, message: str, label: str = "", style: str = "") -> None:
        if self._colorless:
            line = f"{label} {message}" if label else message
            print(line, file=sys.stderr, flush=True)
            return
        # Text keeps square brackets in paths from being read as markup.
        if label:
            self._stderr.print(Text.assemble((label, style), " ", message))
        else:
            self._stderr.print(Text(message, style=style))

    def _write(self, line: str) -> None:
        print(line, file=sys.stdout, flush=True)


_reporter: Optional[Reporter] = None


def get_reporter() -> Reporter:
    """Return the reporter installed for this invocation, or a default one."""
    global _reporter
    if _reporter is None:
        _reporter = Reporter()
    return _reporter


def set_reporter(reporter: Reporter) -> None:
    global _reporter
    _reporter = reporter


def reset_reporter() -> None:
    global _reporter
    _reporter = None
