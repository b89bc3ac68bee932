"""Tests for the pydantic models."""

from __future__ import annotations

import pydantic
import pytest

from regcreds.exceptions import InvalidConfigFormatError
from regcreds.models import (
    EMPTY_CREDENTIAL,
    AuthConfigEntry,
    Credential,
    HelperCredentials,
    StoreOptions,
)


class TestCredential:
    def test_defaults_equal_empty(self) -> None:
        assert Credential() == EMPTY_CREDENTIAL

    def test_value_equality(self) -> None:
        assert Credential(username="u", password="p") == Credential(username="u", password="p")
        assert Credential(username="u", password="p") != Credential(username="u", password="q")

    def test_frozen(self) -> None:
        cred = Credential(username="u")
        with pytest.raises(pydantic.ValidationError):
            cred.username = "other"  # type: ignore[misc]

    def test_repr_hides_secrets(self) -> None:
        cred = Credential(
            username="alice",
            password="hunter2",
            refresh_token="refresh-secret",
            access_token="access-secret",
        )
        text = repr(cred)
        assert "alice" in text
        assert "hunter2" not in text
        assert "refresh-secret" not in text
        assert "access-secret" not in text


class TestAuthConfigEntry:
    def test_from_credential(self) -> None:
        entry = AuthConfigEntry.from_credential(
            Credential(
                username="username",
                password="password",
                refresh_token="identity_token",
                access_token="registry_token",
            )
        )
        assert entry.to_json() == {
            "auth": "dXNlcm5hbWU6cGFzc3dvcmQ=",
            "identitytoken": "identity_token",
            "registrytoken": "registry_token",
        }

    def test_to_json_omits_empty_fields(self) -> None:
        entry = AuthConfigEntry.from_credential(Credential(refresh_token="tok"))
        assert entry.to_json() == {"identitytoken": "tok"}

    def test_to_json_never_writes_legacy_fields(self) -> None:
        entry = AuthConfigEntry.from_credential(Credential(username="u", password="p"))
        assert set(entry.to_json()) == {"auth"}

    def test_validate_by_alias(self) -> None:
        entry = AuthConfigEntry.model_validate(
            {"auth": "", "identitytoken": "id", "registrytoken": "reg", "email": "x@example.com"}
        )
        assert entry.identity_token == "id"
        assert entry.registry_token == "reg"

    def test_auth_overrides_legacy_fields(self) -> None:
        entry = AuthConfigEntry(
            auth="dXNlcm5hbWU6cGFzc3dvcmQ=",
            username="old_username",
            password="old_password",
        )
        cred = entry.to_credential()
        assert cred.username == "username"
        assert cred.password == "password"

    def test_legacy_fields_used_without_auth(self) -> None:
        cred = AuthConfigEntry(username="legacy", password="pass").to_credential()
        assert cred == Credential(username="legacy", password="pass")

    def test_invalid_auth(self) -> None:
        with pytest.raises(InvalidConfigFormatError):
            AuthConfigEntry(auth="!!!").to_credential()

    def test_non_string_field_rejected(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            AuthConfigEntry.model_validate({"auth": 123})


class TestHelperCredentials:
    def test_wire_names(self) -> None:
        payload = HelperCredentials(server_url="https://example.com", username="u", secret="s")
        assert payload.model_dump(by_alias=True) == {
            "ServerURL": "https://example.com",
            "Username": "u",
            "Secret": "s",
        }

    def test_parse(self) -> None:
        payload = HelperCredentials.model_validate(
            {"ServerURL": "registry.example.com", "Username": "u", "Secret": "s"}
        )
        assert payload.server_url == "registry.example.com"
        assert payload.secret == "s"


class TestStoreOptions:
    def test_defaults(self) -> None:
        options = StoreOptions()
        assert options.allow_plaintext_put is False
        assert options.detect_default_native_store is True
