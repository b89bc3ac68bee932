"""Tests for the exception hierarchy and exit codes."""

from __future__ import annotations

import pytest

from regcreds.exceptions import (
    AuthError,
    ConfigError,
    CredentialsNotFoundError,
    HelperExecutionError,
    InvalidConfigFormatError,
    LoginError,
    LogoutError,
    OperationCancelledError,
    PlaintextPutDisabledError,
    RegcredsError,
    RegistryError,
)
from regcreds.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HELPER_ERROR,
)


@pytest.mark.parametrize(
    "exc_class, code",
    [
        (RegcredsError, EXIT_GENERIC_FAILURE),
        (ConfigError, EXIT_CONFIG_ERROR),
        (InvalidConfigFormatError, EXIT_CONFIG_ERROR),
        (HelperExecutionError, EXIT_HELPER_ERROR),
        (CredentialsNotFoundError, EXIT_HELPER_ERROR),
        (OperationCancelledError, EXIT_CANCELLED),
        (RegistryError, EXIT_CONNECTION_ERROR),
        (AuthError, EXIT_AUTH_FAILURE),
        (LoginError, EXIT_AUTH_FAILURE),
        (LogoutError, EXIT_GENERIC_FAILURE),
    ],
)
def test_exit_codes(exc_class, code: int) -> None:
    assert exc_class("boom").exit_code == code


def test_exit_code_override() -> None:
    err = LoginError("failed", exit_code=EXIT_CONFIG_ERROR)
    assert err.exit_code == EXIT_CONFIG_ERROR
    assert LoginError("other").exit_code == EXIT_AUTH_FAILURE


def test_plaintext_put_disabled_default_message() -> None:
    err = PlaintextPutDisabledError()
    assert str(err) == "putting plaintext credentials is disabled"
    assert isinstance(err, ConfigError)


def test_helper_error_attributes() -> None:
    err = CredentialsNotFoundError(
        "credentials not found in native keychain",
        helper="docker-credential-pass",
        action="get",
        returncode=1,
        output="credentials not found in native keychain",
    )
    assert isinstance(err, HelperExecutionError)
    assert err.helper == "docker-credential-pass"
    assert err.action == "get"
    assert err.returncode == 1


def test_all_derive_from_base() -> None:
    for exc_class in (AuthError, LoginError, LogoutError, OperationCancelledError):
        assert issubclass(exc_class, RegcredsError)
