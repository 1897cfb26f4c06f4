"""The ``firetree`` command line.

Layout::

    firetree [GLOBAL OPTIONS] get|set|push|update|delete PATH ...
    firetree token issue ...
    firetree profile add|list|show|remove|use ...

Global options pick the store (``--profile``, ``--host``, ``--token``),
tune requests (``--timeout``, ``--verify-ssl``) and shape output
(``--json``, ``--plain``, ``--no-color``, ``-q``, ``-v``, ``-o``). They are
handled once in :func:`main_callback` and handed to the commands through
``ctx.obj``.

:func:`main` is the console-script entry point.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer
from rich.logging import RichHandler

from firetree import __version__
from firetree.exit_codes import EXIT_GENERIC_FAILURE

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="firetree",
    help="Read and write Firebase-style JSON tree stores over REST.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

from firetree.commands.data import (  # noqa: E402
    delete_command,
    get_command,
    push_command,
    set_command,
    update_command,
)
from firetree.commands.profile import profile_app  # noqa: E402
from firetree.commands.token import token_app  # noqa: E402

for _name, _command in (
    ("get", get_command),
    ("set", set_command),
    ("push", push_command),
    ("update", update_command),
    ("delete", delete_command),
):
    app.command(_name)(_command)
app.add_typer(token_app, name="token", help="Issue custom auth tokens.")
app.add_typer(profile_app, name="profile", help="Manage stored connections.")


def _print_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"firetree {__version__}")
    raise typer.Exit()


def _configure_logging(verbose: bool, console: Any) -> None:
    """Route the ``firetree`` loggers to *console* at DEBUG level, or detach them."""
    logger = logging.getLogger("firetree")
    for handler in [h for h in logger.handlers if isinstance(h, RichHandler)]:
        logger.removeHandler(handler)
    if verbose:
        logger.addHandler(RichHandler(console=console, show_time=False, show_path=False))
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.NOTSET)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Print the version and exit."
    ),
    profile: Optional[str] = typer.Option(
        None, "--profile", "-p", help="Stored profile to connect with."
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Store base URL, e.g. https://db.example.com/."
    ),
    token: Optional[str] = typer.Option(
        None, "--token", help="Auth token sent as ?auth=; overrides the profile."
    ),
    timeout: Optional[int] = typer.Option(
        None, "--timeout", help="Connect and request timeout in seconds."
    ),
    verify_ssl: Optional[bool] = typer.Option(
        None, "--verify-ssl/--no-verify-ssl", help="Check the server's TLS certificate."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print documents as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print documents as key/value lines."),
    no_color: bool = typer.Option(False, "--no-color", help="Never use colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data, warnings and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and responses to stderr."),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the document to this file instead of stdout."
    ),
) -> None:
    """Set up output and collect connection overrides for the sub-command."""
    from firetree.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    manager = OutputManager(
        format=fmt, no_color=no_color, quiet=quiet, verbose=verbose, output_file=output_file
    )
    set_output(manager)
    _configure_logging(verbose, manager.stderr_console)

    # ctx.obj may arrive pre-seeded (e.g. with an httpx "transport"); keep those keys.
    ctx.ensure_object(dict)
    ctx.obj.update(
        profile=profile,
        host=host,
        token=token,
        timeout=timeout,
        verify_ssl=verify_ssl,
        verbose=verbose,
    )


def _on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _write_crash_log() -> str:
    """Save the active traceback under the data directory and return its path."""
    from firetree.config import get_data_dir

    path = get_data_dir() / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(path)


def main() -> None:
    """Console-script entry point.

    A :class:`~firetree.exceptions.FiretreeError` that reaches this level
    exits with its own code. Anything else is written to a crash log and
    exits with :data:`~firetree.exit_codes.EXIT_GENERIC_FAILURE`.
    """
    from firetree.exceptions import FiretreeError
    from firetree.output import error

    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except KeyboardInterrupt:
        _on_sigint(signal.SIGINT, None)
    except FiretreeError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Traceback saved to {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
