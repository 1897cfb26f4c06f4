"""Data commands -- read and write nodes of the store.

Each command resolves the active connection (see
:func:`firetree.config.resolve_connection`), builds a
:class:`~firetree.client.Client` for the given path and runs one request
through :meth:`~firetree.client.Client.execute`, so that a failed exchange
ends with a specific exit code instead of an empty result.

Documents for ``set``, ``push`` and ``update`` are given as a JSON string,
``@path`` to read a file, or ``-`` to read stdin.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer

from firetree.client import Client
from firetree.commands import cli_errors
from firetree.exceptions import (
    DecodeError,
    EncodeError,
    InvalidUsageError,
    TransportError,
)
from firetree.models import HTTPMethod, Outcome, OutcomeKind
from firetree.output import debug, format_document, info

_FAILURES = {
    OutcomeKind.TRANSPORT_FAILURE: TransportError,
    OutcomeKind.DECODE_FAILURE: DecodeError,
    OutcomeKind.ENCODE_FAILURE: EncodeError,
}


def load_document(raw: str) -> Any:
    """Parse a DATA argument into a JSON value.

    Raises:
        InvalidUsageError: If the file is missing or the text is not JSON.
    """
    if raw == "-":
        text = sys.stdin.read()
    elif raw.startswith("@"):
        path = Path(raw[1:]).expanduser()
        if not path.is_file():
            raise InvalidUsageError(f"Data file not found: {path}")
        text = path.read_text(encoding="utf-8")
    else:
        text = raw
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Data is not valid JSON: {exc}") from exc


def _client_for(ctx: typer.Context, path: str) -> Client:
    from firetree.config import resolve_connection

    obj = ctx.obj or {}
    profile, token = resolve_connection(
        cli_profile=obj.get("profile"),
        cli_host=obj.get("host"),
        cli_token=obj.get("token"),
        cli_timeout=obj.get("timeout"),
        cli_verify_ssl=obj.get("verify_ssl"),
    )
    debug(f"Using profile '{profile.name}' ({profile.host})")
    root = Client.from_profile(profile, token, transport=obj.get("transport"))
    return root.child(path)


def _run(client: Client, method: HTTPMethod, data: Any = None) -> Any:
    debug(f"{method.value} {client.address.base}.json")
    outcome: Outcome = client.execute(method, data)
    if not outcome.ok:
        raise _FAILURES[outcome.kind](outcome.error or outcome.kind.value)
    format_document(outcome.value)
    return outcome.value


def get_command(
    ctx: typer.Context,
    path: str = typer.Argument("", help="Node path below the host, e.g. 'users/42'."),
    order_by: Optional[str] = typer.Option(
        None, "--order-by", help="Child key (or $key, $value, $priority) to order by."
    ),
    equal_to: Optional[str] = typer.Option(None, "--equal-to", help="Only children equal to this value."),
    start_at: Optional[str] = typer.Option(None, "--start-at", help="Range start (inclusive)."),
    end_at: Optional[str] = typer.Option(None, "--end-at", help="Range end (inclusive)."),
    limit_to_first: Optional[int] = typer.Option(
        None, "--limit-to-first", help="Return only the first N children."
    ),
    limit_to_last: Optional[int] = typer.Option(
        None, "--limit-to-last", help="Return only the last N children."
    ),
) -> None:
    """Read a node, optionally filtered.

    Range and limit options only take effect together with ``--order-by``.

    Example::

        firetree get users --order-by age --start-at 18 --limit-to-first 10
    """
    with cli_errors():
        client = _client_for(ctx, path)
        if order_by is not None:
            client.order_by(order_by)
        if equal_to is not None:
            client.equal_to(equal_to)
        if start_at is not None:
            client.start_at(start_at)
        if end_at is not None:
            client.end_at(end_at)
        if limit_to_first is not None:
            client.limit_to_first(limit_to_first)
        if limit_to_last is not None:
            client.limit_to_last(limit_to_last)
        if order_by is None and not client.filters.is_empty():
            info("Range and limit options are ignored without --order-by.")
        _run(client, HTTPMethod.GET)


def set_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Node path below the host."),
    data: str = typer.Argument(..., help="JSON document, @file, or - for stdin."),
) -> None:
    """Overwrite a node with a document (PUT)."""
    with cli_errors():
        _run(_client_for(ctx, path), HTTPMethod.PUT, load_document(data))


def push_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Parent node path below the host."),
    data: str = typer.Argument(..., help="JSON document, @file, or - for stdin."),
) -> None:
    """Append a document under a generated key (POST).

    The store's answer, usually ``{"name": "<key>"}``, is printed as is.
    """
    with cli_errors():
        _run(_client_for(ctx, path), HTTPMethod.POST, load_document(data))


def update_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Node path below the host."),
    data: str = typer.Argument(..., help="JSON object whose keys are merged, @file, or -."),
) -> None:
    """Merge keys into a node (PATCH)."""
    with cli_errors():
        _run(_client_for(ctx, path), HTTPMethod.PATCH, load_document(data))


def delete_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Node path below the host."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Delete a node (DELETE). Asks for confirmation unless ``--force`` is given."""
    with cli_errors():
        client = _client_for(ctx, path)
        if not force and not typer.confirm(f"Delete '{path}' and everything below it?"):
            info("Cancelled.")
            raise typer.Exit()
        _run(client, HTTPMethod.DELETE)
