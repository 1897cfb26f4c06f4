"""Exception hierarchy for firetree.

All exceptions inherit from :class:`FiretreeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`firetree.exit_codes`.
The CLI entry point in :func:`firetree.app.main` catches ``FiretreeError``
and exits with the appropriate code.

The :class:`~firetree.client.Client` facade never lets :class:`TransportError`,
:class:`DecodeError` or :class:`EncodeError` escape from its CRUD methods; it
converts them to ``None`` in one place. They surface directly only from the
lower layers (:mod:`firetree.transport`) and from
:meth:`~firetree.client.Client.execute` callers that choose to raise.

Subclass hierarchy::

    FiretreeError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- TokenError          (exit 3)
    +-- DecodeError         (exit 5)
    +-- EncodeError         (exit 2)
    +-- TransportError      (exit 6)
"""

from firetree.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class FiretreeError(Exception):
    """Base exception for all firetree errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FiretreeError):
    """Raised for invalid CLI arguments or unparseable input documents."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(FiretreeError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class TokenError(FiretreeError):
    """Raised when a token cannot be issued from the given secret and claims."""

    exit_code = EXIT_AUTH_FAILURE


class DecodeError(FiretreeError):
    """Raised when a response body is not valid JSON."""

    exit_code = EXIT_DECODE_ERROR


class EncodeError(FiretreeError):
    """Raised when data handed to a write operation cannot be encoded as JSON."""

    exit_code = EXIT_INVALID_USAGE


class TransportError(FiretreeError):
    """Raised when an HTTP exchange cannot complete (timeout, connection refused, TLS).

    The HTTP status code is never inspected; any completed exchange is a
    success at this layer.
    """

    exit_code = EXIT_CONNECTION_ERROR
