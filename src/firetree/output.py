"""Terminal output for the CLI.

Two channels, never mixed:

* **stdout** carries data only: documents read from the store, issued
  tokens, profile listings. Pipe it into ``jq`` or a file.
* **stderr** carries diagnostics: progress, warnings, errors, hints and
  ``--verbose`` debug lines.

Documents are rendered as indented JSON (``--json``), as tab-separated
``key<TAB>value`` lines (``--plain``, the default when piped) or as
highlighted JSON on an interactive terminal. ``NO_COLOR``, ``TERM=dumb`` and
``--no-color`` turn colour off everywhere.

The active :class:`OutputManager` is installed by
:func:`~firetree.app.main_callback`; commands talk to it through the
module-level functions at the bottom of this file.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Iterable, NamedTuple, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How data is written to stdout. ``AUTO`` picks ``RICH`` on a colour TTY, else ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Channel(NamedTuple):
    prefix: str
    style: Optional[str]
    quiet_hides: bool = True
    verbose_only: bool = False


_CHANNELS = {
    "info": _Channel("", None),
    "success": _Channel("", "green"),
    "warning": _Channel("Warning: ", "yellow", quiet_hides=False),
    "error": _Channel("Error: ", "bold red", quiet_hides=False),
    "suggest": _Channel("→ ", "dim"),
    "debug": _Channel("[debug] ", "dim", quiet_hides=False, verbose_only=True),
}


class OutputManager:
    """Holds the output preferences for one CLI invocation.

    Args:
        format: Data format for stdout; ``AUTO`` is resolved immediately.
        no_color: Force colour off (also implied by ``NO_COLOR``/``TERM=dumb``).
        quiet: Hide info, success and hint messages.
        verbose: Show debug messages.
        output_file: Write data to this file instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self.no_color = no_color or _should_disable_color()
        self.quiet = quiet
        self.verbose = verbose
        self.output_file = output_file
        self._format = _resolve_format(format, self.no_color)

        rich_stdout = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self.no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self.no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self.quiet

    @property
    def is_verbose(self) -> bool:
        return self.verbose

    @property
    def stderr_console(self) -> Console:
        """The stderr console; the ``--verbose`` log handler writes here too."""
        return self._stderr

    # --- stdout -------------------------------------------------------- #

    def format_document(self, data: Any) -> None:
        """Write a decoded JSON value in the active format.

        With ``-o`` the file receives indented JSON regardless of format and
        is overwritten. ``None`` is always rendered as ``null``.
        """
        if self.output_file:
            with open(self.output_file, "w", encoding="utf-8") as f:
                f.write(_dumps(data) + "\n")
        elif self._format == OutputFormat.RICH:
            self._stdout.print(Syntax(_dumps(data), "json", theme="monokai", word_wrap=True))
        elif self._format == OutputFormat.JSON:
            self.print_data(_dumps(data))
        else:
            for line in _plain_lines(data):
                self.print_data(line)

    def print_data(self, text: str) -> None:
        """Write one chunk of raw text (newline-terminated) to the data channel."""
        if not text.endswith("\n"):
            text += "\n"
        if self.output_file:
            with open(self.output_file, "a", encoding="utf-8") as f:
                f.write(text)
            return
        sys.stdout.write(text)
        sys.stdout.flush()

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows as JSON records, TSV lines, or a Rich table."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self.print_data("\t".join(row))
            return
        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    # --- stderr -------------------------------------------------------- #

    def info(self, message: str) -> None:
        self._emit("info", message)

    def success(self, message: str) -> None:
        self._emit("success", message)

    def warning(self, message: str) -> None:
        """Never hidden by ``--quiet``."""
        self._emit("warning", message)

    def error(self, message: str) -> None:
        """Never hidden by ``--quiet``."""
        self._emit("error", message)

    def suggest(self, message: str) -> None:
        """A next-step hint, e.g. the command that would fix a problem."""
        self._emit("suggest", message)

    def debug(self, message: str) -> None:
        """Only shown with ``--verbose``."""
        self._emit("debug", message)

    def _emit(self, kind: str, message: str) -> None:
        channel = _CHANNELS[kind]
        if channel.verbose_only and not self.verbose:
            return
        if channel.quiet_hides and self.quiet:
            return
        if self.no_color:
            sys.stderr.write(f"{channel.prefix}{message}\n")
            sys.stderr.flush()
            return
        text = escape(f"{channel.prefix}{message}")
        if channel.style:
            text = f"[{channel.style}]{text}[/{channel.style}]"
        self._stderr.print(text)


# --- rendering helpers -------------------------------------------------- #


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    return OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _inline(value: Any) -> str:
    """One-line rendering: bare strings, compact JSON for everything else."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _plain_lines(data: Any) -> Iterable[str]:
    if isinstance(data, dict):
        return (f"{key}\t{_inline(value)}" for key, value in data.items())
    if isinstance(data, list):
        return (_inline(item) for item in data)
    return [_inline(data)]


def _is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is present (any value, even empty) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# --- process-wide manager ----------------------------------------------- #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    global _output
    _output = None


def format_document(data: Any) -> None:
    get_output().format_document(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
