"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~firetree.exceptions.FiretreeError` subclass.
Shell scripts wrapping ``firetree`` can inspect the exit code to tell a
store outage apart from a bad invocation without parsing stderr.

Example::

    $ firetree get users/42
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the store could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or unusable input data."""

EXIT_AUTH_FAILURE = 3
"""A token could not be issued or credentials could not be resolved."""

EXIT_DECODE_ERROR = 5
"""The store answered with a body that is not valid JSON."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused, TLS)."""
