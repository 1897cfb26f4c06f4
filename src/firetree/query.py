"""URL composition for store requests.

:func:`compose_url` is a pure function of the node address, the auth token
and the filter state. The resulting URL has the shape::

    {host}{path}.json[?auth=TOKEN][&orderBy="FIELD"[&equalTo=V][&startAt=V]
                                   [&endAt=V][&limitToFirst=N][&limitToLast=N]]

The ``orderBy`` operand is wrapped in literal double quotes because the store
reads it as a JSON string naming a child key. The other operands are written
as given. Nothing is percent-encoded here; that is left to the transport.
"""

from __future__ import annotations

from typing import Any, Optional

from firetree.models import FilterState, NodeAddress

# Secondary filters, in the order they are appended.
_RANGE_PARAMS: tuple[tuple[str, str], ...] = (
    ("equal_to", "equalTo"),
    ("start_at", "startAt"),
    ("end_at", "endAt"),
    ("limit_to_first", "limitToFirst"),
    ("limit_to_last", "limitToLast"),
)


def is_set(value: Any) -> bool:
    """Return True if *value* counts as present (not ``None`` and not ``""``)."""
    return value is not None and value != ""


def format_value(value: Any) -> str:
    """Render a filter operand for the query string."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def compose_url(
    address: NodeAddress,
    token: Optional[str] = None,
    filters: Optional[FilterState] = None,
) -> str:
    """Build the request URL for *address*.

    Args:
        address: Host and path of the target node.
        token: Auth token; appended as ``auth`` when present.
        filters: Filter state; only consulted when ``order_by`` is set.

    Returns:
        The composed URL string.

    Example::

        >>> compose_url(NodeAddress(host="https://db.example.com/", path="users"),
        ...             "tok", FilterState(order_by="age", limit_to_first=5))
        'https://db.example.com/users.json?auth=tok&orderBy="age"&limitToFirst=5'
    """
    url = f"{address.base}.json"
    has_token = is_set(token)

    if has_token:
        url = f"{url}?auth={token}"

    if filters is None or not is_set(filters.order_by):
        return url

    separator = "&" if has_token else "?"
    url = f'{url}{separator}orderBy="{filters.order_by}"'

    for attr, name in _RANGE_PARAMS:
        value = getattr(filters, attr)
        if is_set(value):
            url = f"{url}&{name}={format_value(value)}"

    return url
