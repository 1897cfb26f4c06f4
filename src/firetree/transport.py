"""Blocking HTTP transport for store requests.

This module provides :func:`build_request`, which turns a verb, a URL and an
optional document into a :class:`~firetree.models.RequestDescriptor`, and
:class:`TransportExecutor`, which sends one descriptor over :mod:`httpx` and
returns the raw response body.

The executor does very little:

- **No status inspection** -- any completed exchange returns its body, even
  for 4xx/5xx responses; the store reports errors as JSON documents.
- **No pooling** -- each call opens and closes its own :class:`httpx.Client`.
- **No retries** -- a failed exchange raises
  :class:`~firetree.exceptions.TransportError` immediately.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import httpx

from firetree.exceptions import EncodeError, TransportError
from firetree.models import HTTPMethod, RequestConfig, RequestDescriptor

logger = logging.getLogger(__name__)


def encode_body(data: Any) -> bytes:
    """Encode *data* as compact UTF-8 JSON.

    Raises:
        EncodeError: If *data* is not JSON serialisable.
    """
    try:
        text = json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"Cannot encode request body as JSON: {exc}") from exc
    return text.encode("utf-8")


def build_request(method: HTTPMethod, url: str, data: Any = None) -> RequestDescriptor:
    """Describe a request without sending it.

    PUT, POST and PATCH carry the JSON encoding of *data* with matching
    ``Content-Type`` and ``Content-Length`` headers. GET carries no body and
    DELETE an empty one; *data* is ignored for both.

    Args:
        method: HTTP verb.
        url: Fully composed URL (see :func:`firetree.query.compose_url`).
        data: JSON-serialisable document for write verbs.

    Returns:
        The :class:`~firetree.models.RequestDescriptor`.

    Raises:
        EncodeError: If *data* cannot be encoded.
    """
    method = HTTPMethod(method)
    if method.has_body:
        body = encode_body(data)
        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
        }
        return RequestDescriptor(method=method, url=url, body=body, headers=headers)
    if method == HTTPMethod.DELETE:
        return RequestDescriptor(method=method, url=url, body=b"")
    return RequestDescriptor(method=method, url=url)


class TransportExecutor:
    """Sends one :class:`~firetree.models.RequestDescriptor` per call.

    The connect timeout and the read/write/pool timeouts are all set to
    ``config.timeout``. Certificate verification follows
    ``config.verify_ssl``, which is off unless explicitly enabled.

    Args:
        config: Timeout and TLS settings.
        transport: Optional :class:`httpx.BaseTransport` handed to every
            :class:`httpx.Client` the executor opens. Tests pass an
            :class:`httpx.MockTransport` here to stand in for the store.

    Example::

        executor = TransportExecutor(RequestConfig(timeout=5))
        raw = executor.send(build_request(HTTPMethod.GET, url))
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or RequestConfig()
        self._transport = transport

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.timeout, connect=self.config.timeout)

    def send(self, request: RequestDescriptor) -> bytes:
        """Perform the exchange and return the raw response body.

        Args:
            request: The request to send.

        Returns:
            The response body, whatever the status code.

        Raises:
            TransportError: On connection, timeout, TLS, protocol, URL or
                content-decoding errors.
        """
        logger.debug("%s %s", request.method.value, request.url)
        try:
            with httpx.Client(
                timeout=self.timeout,
                verify=self.config.verify_ssl,
                transport=self._transport,
            ) as client:
                response = client.request(
                    request.method.value,
                    request.url,
                    content=request.body,
                    headers=request.headers,
                )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise TransportError(
                f"{request.method.value} {request.url} failed: {exc}"
            ) from exc

        logger.debug("Response: %s (%d bytes)", response.status_code, len(response.content))
        return response.content
