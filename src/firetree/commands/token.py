"""Token commands -- issue custom auth tokens from the database secret.

The issued token is printed to stdout so it can be captured::

    export FIRETREE_TOKEN=$(firetree token issue --secret-source env:DB_SECRET \\
        --claims '{"uid": "user-42"}')
"""

from __future__ import annotations

import json
from typing import Optional

import typer

from firetree.commands import cli_errors
from firetree.exceptions import InvalidUsageError
from firetree.models import TokenOptions
from firetree.output import print_data, success

token_app = typer.Typer(no_args_is_help=True)


@token_app.command("issue")
def token_issue(
    secret_source: str = typer.Option(
        ...,
        "--secret-source",
        "-s",
        help="Where to read the secret: env:VAR, file:/path, prompt, or the literal secret.",
    ),
    claims: Optional[str] = typer.Option(
        None, "--claims", "-c", help="JSON object of claims; must contain 'uid' unless --admin."
    ),
    admin: bool = typer.Option(False, "--admin", help="Grant full read/write access."),
    debug_rules: bool = typer.Option(False, "--debug", help="Request security-rule debug output."),
    expires: Optional[int] = typer.Option(
        None, "--expires", help="Expiry as epoch seconds."
    ),
    not_before: Optional[int] = typer.Option(
        None, "--not-before", help="Not valid before this epoch second."
    ),
) -> None:
    """Issue a signed custom token and print it."""
    from firetree.config import resolve_credential
    from firetree.token import issue_token

    with cli_errors():
        parsed_claims = None
        if claims is not None:
            try:
                parsed_claims = json.loads(claims)
            except json.JSONDecodeError as exc:
                raise InvalidUsageError(f"--claims is not valid JSON: {exc}") from exc

        secret = resolve_credential(secret_source)
        options = TokenOptions(
            admin=admin,
            debug=debug_rules,
            expires=expires,
            not_before=not_before,
        )
        token = issue_token(secret, parsed_claims, options)
        print_data(token)
        success("Token issued.")
