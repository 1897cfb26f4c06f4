"""Canonical Pydantic models shared across all firetree modules.

The models fall into two groups:

**Request models** -- built and consumed on every call:
    :class:`HTTPMethod`, :class:`NodeAddress`, :class:`FilterState`,
    :class:`RequestDescriptor`, :class:`OutcomeKind` and :class:`Outcome`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`Profile` and :class:`GlobalConfig`.

:class:`TokenOptions` sits on its own and is consumed by
:func:`firetree.token.issue_token`.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

FilterValue = Union[str, int, float, bool]
"""A filter operand. Strings are sent verbatim, booleans as ``true``/``false``."""


# --- Request models ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs used against the store, one per CRUD operation."""

    GET = "GET"
    PUT = "PUT"
    POST = "POST"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        """Whether requests with this verb carry a JSON document."""
        return self in (HTTPMethod.PUT, HTTPMethod.POST, HTTPMethod.PATCH)


class NodeAddress(BaseModel):
    """Location of a node in the tree: a base URL plus a path appended verbatim.

    No slash normalisation is done; ``host="https://db.example.com/"`` with
    ``path="users/42"`` addresses ``https://db.example.com/users/42``.
    """

    host: str
    path: str = ""

    def join(self, relative_path: str) -> NodeAddress:
        """Return a new address with *relative_path* appended to the path."""
        return NodeAddress(host=self.host, path=self.path + relative_path)

    @property
    def base(self) -> str:
        return f"{self.host}{self.path}"


class FilterState(BaseModel):
    """Ordering, range and pagination parameters for a read.

    Instances are mutable and owned by exactly one
    :class:`~firetree.client.Client`. Everything other than ``order_by`` is
    a refinement of an ordering and is dropped from the URL when
    ``order_by`` is unset.
    """

    order_by: Optional[str] = None
    equal_to: Optional[FilterValue] = None
    start_at: Optional[FilterValue] = None
    end_at: Optional[FilterValue] = None
    limit_to_first: Optional[int] = None
    limit_to_last: Optional[int] = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class RequestDescriptor(BaseModel):
    """One fully composed request, ready for the transport."""

    method: HTTPMethod
    url: str
    body: Optional[bytes] = None
    headers: dict[str, str] = Field(default_factory=dict)


class OutcomeKind(str, enum.Enum):
    """Discriminator for :class:`Outcome`."""

    SUCCESS = "success"
    TRANSPORT_FAILURE = "transport_failure"
    DECODE_FAILURE = "decode_failure"
    ENCODE_FAILURE = "encode_failure"


class Outcome(BaseModel):
    """Result of one exchange with the store.

    ``value`` holds the decoded JSON document when ``kind`` is
    :attr:`OutcomeKind.SUCCESS` (it may legitimately be ``None`` when the
    store holds ``null``); otherwise ``error`` describes the failure.

    Example::

        outcome = client.execute(HTTPMethod.GET)
        if outcome.ok:
            print(outcome.value)
    """

    kind: OutcomeKind
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> Outcome:
        return cls(kind=OutcomeKind.SUCCESS, value=value)

    @classmethod
    def transport_failure(cls, error: str) -> Outcome:
        return cls(kind=OutcomeKind.TRANSPORT_FAILURE, error=error)

    @classmethod
    def decode_failure(cls, error: str) -> Outcome:
        return cls(kind=OutcomeKind.DECODE_FAILURE, error=error)

    @classmethod
    def encode_failure(cls, error: str) -> Outcome:
        return cls(kind=OutcomeKind.ENCODE_FAILURE, error=error)

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS


# --- Token options ---


class TokenOptions(BaseModel):
    """Optional claims for :func:`~firetree.token.issue_token`.

    ``expires`` and ``not_before`` accept either epoch seconds or a
    :class:`~datetime.datetime`; they become the ``exp`` and ``nbf`` claims.
    ``admin`` grants full read/write access and lifts the ``uid``
    requirement. ``debug`` asks the store to return security-rule traces.
    """

    admin: bool = False
    debug: bool = False
    simulate: bool = False
    expires: Optional[Union[int, datetime]] = None
    not_before: Optional[Union[int, datetime]] = None

    def is_empty(self) -> bool:
        return not (
            self.admin
            or self.debug
            or self.simulate
            or self.expires is not None
            or self.not_before is not None
        )


# --- Configuration models ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every call made by a client.

    ``verify_ssl`` defaults to ``False`` to keep the historical behaviour of
    not validating the server certificate chain. Set it to ``True`` to
    verify; the insecure default is a known open concern.
    """

    timeout: int = Field(
        default=10, description="Connect and overall timeout in seconds"
    )
    verify_ssl: bool = Field(
        default=False, description="Verify the server TLS certificate chain"
    )


class Profile(BaseModel):
    """Named connection settings stored under the ``profiles/`` config directory.

    See Also:
        :func:`~firetree.config.load_profile`: Deserialise a profile by name.
        :func:`~firetree.config.save_profile`: Persist a profile to disk.
    """

    name: str
    host: str = Field(description="Base URL of the store, e.g. https://db.example.com/")
    token_source: Optional[str] = Field(
        default=None,
        description="Credential source for the auth token: env:VAR, file:/path, or a literal",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/firetree/config.json``."""

    default_profile: Optional[str] = None
