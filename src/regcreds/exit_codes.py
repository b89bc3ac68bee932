"""Numeric process exit codes for the ``regcreds`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~regcreds.exceptions.RegcredsError` subclass.
Shell wrappers can inspect the exit code to tell a missing helper from a
rejected login without parsing stderr.

Example::

    $ regcreds login registry.example.com -u me --password-stdin < pw.txt
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the registry rejected the credential
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The registry rejected the supplied credential."""

EXIT_CONFIG_ERROR = 4
"""The config file is malformed or refuses the requested write."""

EXIT_HELPER_ERROR = 5
"""An external credential helper failed."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred while contacting a registry."""

EXIT_CANCELLED = 130
"""The operation was cancelled or ran past its deadline."""
