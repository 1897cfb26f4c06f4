"""The :class:`Client` facade for reading and writing tree nodes.

A client addresses one node (host + path), carries an optional auth token,
request settings, and a mutable :class:`~firetree.models.FilterState`. Two
kinds of derivation coexist and behave differently:

- **Filter setters** (:meth:`Client.order_by`, :meth:`Client.limit_to_first`,
  ...) mutate the filter state of *this* client and return it, so they chain::

      client.order_by("age").start_at(18).get()

- **Navigation** (:meth:`Client.child`) returns a *new* client for a deeper
  path, sharing the token and request settings but starting with empty
  filters.

The CRUD methods never raise for transport or decoding problems. They return
``None`` instead, converting the discriminated
:class:`~firetree.models.Outcome` in :meth:`Client._collapse`. Callers that
need to tell failures apart use :meth:`Client.execute`.

A client is not safe for concurrent filtered reads from several threads; the
filter setters are unsynchronised. Use one client per thread.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Union

import httpx

from firetree.exceptions import EncodeError, TokenError, TransportError
from firetree.models import (
    FilterState,
    FilterValue,
    HTTPMethod,
    NodeAddress,
    Outcome,
    Profile,
    RequestConfig,
    RequestDescriptor,
    TokenOptions,
)
from firetree.query import compose_url
from firetree.token import issue_token
from firetree.transport import TransportExecutor, build_request

logger = logging.getLogger(__name__)


class Client:
    """Handle on one node of a JSON tree store.

    Args:
        host: Base URL of the store, e.g. ``"https://db.example.com/"``.
        token: Optional auth token, sent as the ``auth`` query parameter.
        timeout: Connect and overall timeout in seconds.
        verify_ssl: Verify the server certificate. Off by default to match
            the historical behaviour; turning it on is recommended.
        path: Path of the node below *host*. Usually left empty and built
            with :meth:`child`.
        transport: Optional :class:`httpx.BaseTransport` used for every
            exchange, mainly for tests.

    Example::

        client = Client.make("https://db.example.com/", token)
        client.child("users/42").set({"name": "Ada", "age": 36})
    """

    def __init__(
        self,
        host: str,
        token: Optional[str] = None,
        timeout: int = 10,
        verify_ssl: bool = False,
        path: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.address = NodeAddress(host=host, path=path)
        self.token = token
        self.request_config = RequestConfig(timeout=timeout, verify_ssl=verify_ssl)
        self.filters = FilterState()
        self._transport = transport
        self._executor = TransportExecutor(self.request_config, transport=transport)

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def make(
        cls,
        host: str,
        token: Optional[str] = None,
        timeout: int = 10,
        verify_ssl: bool = False,
    ) -> Client:
        """Create a client for the root of the store at *host*."""
        return cls(host, token, timeout, verify_ssl)

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> Client:
        """Create a client from a stored :class:`~firetree.models.Profile`.

        The profile's ``token_source`` is not resolved here; callers pass the
        resolved *token* (see :func:`firetree.config.resolve_credential`).
        """
        return cls(
            profile.host,
            token,
            timeout=profile.request.timeout,
            verify_ssl=profile.request.verify_ssl,
            transport=transport,
        )

    @staticmethod
    def generate_token(
        secret: str,
        claims: Optional[Mapping[str, Any]],
        options: Optional[TokenOptions] = None,
    ) -> Union[str, bool]:
        """Issue a token, returning ``False`` instead of raising on failure.

        Use :func:`firetree.token.issue_token` directly to see why issuance
        failed.
        """
        try:
            return issue_token(secret, claims, options)
        except TokenError as exc:
            logger.debug("Token issuance failed: %s", exc)
            return False

    def child(self, path: str) -> Client:
        """Return a new client for *path* below this node.

        *path* is appended verbatim, so slashes are the caller's business.
        Token and request settings are shared; filters are not.
        """
        address = self.address.join(path)
        return Client(
            address.host,
            self.token,
            timeout=self.request_config.timeout,
            verify_ssl=self.request_config.verify_ssl,
            path=address.path,
            transport=self._transport,
        )

    # ------------------------------------------------------------------ #
    # Filters (mutate this instance)
    # ------------------------------------------------------------------ #

    def order_by(self, order_by: str) -> Client:
        self.filters.order_by = order_by
        return self

    def equal_to(self, equal_to: FilterValue) -> Client:
        self.filters.equal_to = equal_to
        return self

    def start_at(self, start_at: FilterValue) -> Client:
        self.filters.start_at = start_at
        return self

    def end_at(self, end_at: FilterValue) -> Client:
        self.filters.end_at = end_at
        return self

    def limit_to_first(self, limit_to_first: int) -> Client:
        self.filters.limit_to_first = limit_to_first
        return self

    def limit_to_last(self, limit_to_last: int) -> Client:
        self.filters.limit_to_last = limit_to_last
        return self

    def clear_filters(self) -> Client:
        """Drop every filter set on this client."""
        self.filters = FilterState()
        return self

    # ------------------------------------------------------------------ #
    # CRUD
    # ------------------------------------------------------------------ #

    def get(self) -> Any:
        """Read the node, applying any filters. ``None`` on failure."""
        return self._collapse(self.execute(HTTPMethod.GET))

    def set(self, data: Any) -> Any:
        """Overwrite the node with *data* (PUT). ``None`` on failure."""
        return self._collapse(self.execute(HTTPMethod.PUT, data))

    def push(self, data: Any) -> Any:
        """Append *data* under a store-generated key (POST). ``None`` on failure.

        The store usually answers ``{"name": "<generated key>"}``; the value
        is returned as decoded, without interpretation.
        """
        return self._collapse(self.execute(HTTPMethod.POST, data))

    def update(self, data: Any) -> Any:
        """Merge the keys of *data* into the node (PATCH). ``None`` on failure."""
        return self._collapse(self.execute(HTTPMethod.PATCH, data))

    def delete(self) -> Any:
        """Remove the node (DELETE). ``None`` on failure."""
        return self._collapse(self.execute(HTTPMethod.DELETE))

    # ------------------------------------------------------------------ #
    # Lower-level access
    # ------------------------------------------------------------------ #

    def url(self) -> str:
        """The URL the next request would target."""
        return compose_url(self.address, self.token, self.filters)

    def build_request(self, method: HTTPMethod, data: Any = None) -> RequestDescriptor:
        """Compose the request for *method* without sending it.

        Raises:
            EncodeError: If *data* is not JSON serialisable.
        """
        return build_request(method, self.url(), data)

    def execute(self, method: HTTPMethod, data: Any = None) -> Outcome:
        """Send one request and report what happened.

        Unlike the CRUD methods this tells transport failures, undecodable
        responses and unencodable input apart. Nothing is sent when *data*
        cannot be encoded.
        """
        try:
            request = self.build_request(method, data)
        except EncodeError as exc:
            return Outcome.encode_failure(str(exc))
        try:
            raw = self._executor.send(request)
        except TransportError as exc:
            return Outcome.transport_failure(str(exc))
        try:
            return Outcome.success(json.loads(raw))
        except (ValueError, RecursionError) as exc:
            return Outcome.decode_failure(f"Response is not valid JSON: {exc}")

    def _collapse(self, outcome: Outcome) -> Any:
        if outcome.ok:
            return outcome.value
        logger.warning(
            "Request to %s failed (%s): %s",
            self.address.base,
            outcome.kind.value,
            outcome.error,
        )
        return None

    def __repr__(self) -> str:
        return f"Client(host={self.address.host!r}, path={self.address.path!r})"
