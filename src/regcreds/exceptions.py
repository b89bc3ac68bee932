"""Exception hierarchy for regcreds.

All exceptions inherit from :class:`RegcredsError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`regcreds.exit_codes`.
The CLI entry point in :func:`regcreds.app.main` catches ``RegcredsError``
and exits with the appropriate code.

A credential that is simply absent is never an error: stores return
:data:`~regcreds.models.EMPTY_CREDENTIAL` instead.

Subclass hierarchy::

    RegcredsError                 (exit 1)
    +-- ConfigError               (exit 4)
    |   +-- InvalidConfigFormatError
    |   +-- PlaintextPutDisabledError
    +-- HelperExecutionError      (exit 5)
    |   +-- CredentialsNotFoundError
    +-- OperationCancelledError   (exit 130)
    +-- RegistryError             (exit 6)
    |   +-- AuthError             (exit 3)
    +-- LoginError                (exit 3)
    +-- LogoutError               (exit 1)
"""

from __future__ import annotations

from regcreds.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HELPER_ERROR,
)


class RegcredsError(Exception):
    """Base exception for all regcreds errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(RegcredsError):
    """Raised for config file problems."""

    exit_code = EXIT_CONFIG_ERROR


class InvalidConfigFormatError(ConfigError):
    """Raised when the config document, an ``auths`` entry, or its ``auth`` blob is malformed.

    The underlying parse error is always chained as ``__cause__``.
    """


class PlaintextPutDisabledError(ConfigError):
    """Raised by ``put`` when saving plaintext credentials is not allowed.

    Either configure a credential helper (``credsStore`` / ``credHelpers``)
    or opt in with ``StoreOptions(allow_plaintext_put=True)``.
    """

    def __init__(self, message: str = "putting plaintext credentials is disabled"):
        super().__init__(message)


class HelperExecutionError(RegcredsError):
    """Raised when a ``docker-credential-*`` helper exits unsuccessfully.

    Attributes:
        helper: Name of the helper executable.
        action: The protocol action (``get``, ``store``, ``erase``).
        returncode: Process exit status, or ``None`` if it never ran.
        output: Trimmed stdout of the helper, used as the diagnostic.
    """

    exit_code = EXIT_HELPER_ERROR

    def __init__(
        self,
        message: str,
        helper: str = "",
        action: str = "",
        returncode: int | None = None,
        output: str = "",
    ):
        super().__init__(message)
        self.helper = helper
        self.action = action
        self.returncode = returncode
        self.output = output


class CredentialsNotFoundError(HelperExecutionError):
    """The helper reported that it holds no credential for the server.

    Native stores translate this into the empty credential; it only
    escapes when an :class:`~regcreds.executer.Executer` is used directly.
    """


class OperationCancelledError(RegcredsError):
    """Raised when the caller's :class:`~regcreds.context.Context` is cancelled or expired."""

    exit_code = EXIT_CANCELLED


class RegistryError(RegcredsError):
    """Raised when a registry ping fails for a reason other than bad credentials."""

    exit_code = EXIT_CONNECTION_ERROR


class AuthError(RegistryError):
    """Raised when the registry answers the ping with HTTP 401."""

    exit_code = EXIT_AUTH_FAILURE


class LoginError(RegcredsError):
    """Raised when login cannot verify or store the credential."""

    exit_code = EXIT_AUTH_FAILURE


class LogoutError(RegcredsError):
    """Raised when logout cannot remove the stored credential."""
