"""firetree -- client for Firebase-style JSON tree stores over REST.

The store is a single JSON document addressed by slash-delimited paths.
:class:`~firetree.client.Client` points at one node of that tree and can
read, overwrite, patch, append to, or delete it, optionally filtering reads
with ordering, range and pagination parameters.

Typical usage::

    from firetree import Client

    users = Client.make("https://db.example.com/", token).child("users")
    oldest = users.order_by("age").limit_to_last(3).get()

Modules:
    client: The :class:`Client` facade.
    query: URL composition from address, token and filter state.
    transport: One blocking HTTP exchange per call, backed by :mod:`httpx`.
    token: Legacy custom-token issuance.
    models: Pydantic models shared across the package.
    config: XDG-aware profile and global configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting used by the CLI.
    app: Typer application and console-script entry point.
"""

__version__ = "0.1.0"

from firetree.client import Client  # noqa: E402
from firetree.token import issue_token  # noqa: E402

__all__ = ["Client", "issue_token", "__version__"]
