"""Custom auth token issuance.

Produces the legacy Firebase custom-token format: an HS256 JWT signed with
the database secret, whose payload is::

    {"v": 0, "d": <claims>, "iat": <issued-at>, ...options}

The ``d`` claims are exposed to security rules as ``auth``. Unless the
``admin`` option is set they must carry a string ``uid``.

:func:`issue_token` raises :class:`~firetree.exceptions.TokenError` for every
invalid input. :meth:`firetree.client.Client.generate_token` wraps it and
returns ``False`` instead.
"""

from __future__ import annotations

import json
import time
from datetime import datetime
from typing import Any, Mapping, Optional, Union

import jwt

from firetree.exceptions import TokenError
from firetree.models import TokenOptions

TOKEN_VERSION = 0
MAX_UID_LENGTH = 256
MAX_TOKEN_LENGTH = 1024


def _to_epoch(value: Union[int, datetime]) -> int:
    if isinstance(value, datetime):
        return int(value.timestamp())
    return int(value)


def _validate_claims(claims: Mapping[str, Any], options: TokenOptions) -> None:
    if not claims and options.is_empty():
        raise TokenError(
            "No claims and no options supplied; the token would have no effect"
        )
    if options.admin:
        return
    uid = claims.get("uid")
    if uid is None:
        raise TokenError("Claims must contain a 'uid' key unless the admin option is set")
    if not isinstance(uid, str):
        raise TokenError("Claim 'uid' must be a string")
    if len(uid) > MAX_UID_LENGTH:
        raise TokenError(f"Claim 'uid' must be at most {MAX_UID_LENGTH} characters")


def build_payload(
    claims: Mapping[str, Any],
    options: TokenOptions,
    issued_at: Optional[int] = None,
) -> dict[str, Any]:
    """Assemble the JWT payload for *claims* and *options*."""
    payload: dict[str, Any] = {
        "v": TOKEN_VERSION,
        "d": dict(claims),
        "iat": int(time.time()) if issued_at is None else issued_at,
    }
    if options.expires is not None:
        payload["exp"] = _to_epoch(options.expires)
    if options.not_before is not None:
        payload["nbf"] = _to_epoch(options.not_before)
    if options.admin:
        payload["admin"] = True
    if options.debug:
        payload["debug"] = True
    if options.simulate:
        payload["simulate"] = True
    return payload


def issue_token(
    secret: str,
    claims: Optional[Mapping[str, Any]],
    options: Optional[TokenOptions] = None,
) -> str:
    """Sign *claims* with *secret* and return the token string.

    Args:
        secret: The database secret used as the HS256 key.
        claims: Arbitrary JSON-serialisable claims; must include ``uid``
            unless ``options.admin`` is set.
        options: Extra token options (admin, debug, expiry, not-before).

    Returns:
        The encoded JWT.

    Raises:
        TokenError: If the secret is empty, the claims are invalid or not
            serialisable, or the resulting token is too long.

    Example::

        token = issue_token(secret, {"uid": "user-42"}, TokenOptions(expires=1893456000))
    """
    if not isinstance(secret, str) or not secret:
        raise TokenError("Secret must be a non-empty string")
    if claims is None:
        claims = {}
    if not isinstance(claims, Mapping):
        raise TokenError(f"Claims must be a mapping, got {type(claims).__name__}")
    options = options or TokenOptions()

    _validate_claims(claims, options)
    payload = build_payload(claims, options)

    try:
        json.dumps(payload)
    except (TypeError, ValueError) as exc:
        raise TokenError(f"Claims are not JSON serialisable: {exc}") from exc

    try:
        token = jwt.encode(payload, secret, algorithm="HS256")
    except jwt.PyJWTError as exc:
        raise TokenError(f"Token signing failed: {exc}") from exc

    if len(token) > MAX_TOKEN_LENGTH:
        raise TokenError(
            f"Generated token is {len(token)} characters; the maximum is {MAX_TOKEN_LENGTH}"
        )
    return token
