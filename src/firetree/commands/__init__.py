"""Built-in CLI commands for firetree.

Sub-modules:
    data: ``get``, ``set``, ``push``, ``update`` and ``delete`` against a node.
    token: ``token issue`` for custom auth tokens.
    profile: ``profile add/list/show/remove/use`` for stored connections.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from firetree.exceptions import FiretreeError
from firetree.output import error


@contextmanager
def cli_errors() -> Iterator[None]:
    """Turn a :class:`~firetree.exceptions.FiretreeError` into an error line and exit code."""
    try:
        yield
    except FiretreeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
