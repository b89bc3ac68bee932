"""Canonical Pydantic models shared across all regcreds modules.

The models fall into three groups:

**Credential values** -- :class:`Credential` and the absence sentinel
    :data:`EMPTY_CREDENTIAL`.  Every store returns one of these.

**Wire and file shapes** -- :class:`AuthConfigEntry` (one entry of the
    ``auths`` object in a Docker ``config.json``) and
    :class:`HelperCredentials` (the JSON exchanged with a
    ``docker-credential-*`` helper on stdin/stdout).

**Options** -- :class:`StoreOptions` for :func:`~regcreds.stores.new_store`.

All models use Pydantic v2.  Secret-bearing fields are excluded from
``repr`` so that credentials never end up in logs or tracebacks.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from regcreds.codec import decode_auth, encode_auth


# --- Credential ---


class Credential(BaseModel):
    """A registry credential.

    Instances are immutable and compared by value.  A store that holds
    nothing for a server returns :data:`EMPTY_CREDENTIAL`; test for absence
    with ``cred == EMPTY_CREDENTIAL`` rather than inspecting fields.

    Attributes:
        username: Username for basic auth.
        password: Password for basic auth.
        refresh_token: OAuth2 refresh token, stored as ``identitytoken`` in
            the config file.  Used instead of the password when present.
        access_token: Bearer token sent directly to the registry, stored as
            ``registrytoken``.
    """

    model_config = ConfigDict(frozen=True)

    username: str = ""
    password: str = Field(default="", repr=False)
    refresh_token: str = Field(default="", repr=False)
    access_token: str = Field(default="", repr=False)


EMPTY_CREDENTIAL = Credential()
"""The sentinel returned when no credential is stored."""


# --- Config file entry ---


class AuthConfigEntry(BaseModel):
    """Authorization information for one server in the ``auths`` object.

    ``auth`` is ``base64("<username>:<password>")``.  The plain ``username``
    and ``password`` keys are legacy: they are honoured on read when ``auth``
    is empty, but never written back.

    Example::

        entry = AuthConfigEntry.from_credential(Credential(username="u", password="p"))
        assert entry.to_json() == {"auth": "dTpw"}
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    auth: str = Field(default="", repr=False)
    identity_token: str = Field(default="", alias="identitytoken", repr=False)
    registry_token: str = Field(default="", alias="registrytoken", repr=False)
    username: str = ""
    password: str = Field(default="", repr=False)

    @classmethod
    def from_credential(cls, cred: Credential) -> AuthConfigEntry:
        """Build the on-disk entry for *cred*."""
        return cls(
            auth=encode_auth(cred.username, cred.password),
            identity_token=cred.refresh_token,
            registry_token=cred.access_token,
        )

    def to_credential(self) -> Credential:
        """Return the credential described by this entry.

        Raises:
            InvalidConfigFormatError: If ``auth`` cannot be decoded.
        """
        username, password = self.username, self.password
        if self.auth:
            username, password = decode_auth(self.auth)
        return Credential(
            username=username,
            password=password,
            refresh_token=self.identity_token,
            access_token=self.registry_token,
        )

    def to_json(self) -> dict[str, str]:
        """Serialise with the Docker key names, omitting empty fields."""
        return self.model_dump(by_alias=True, exclude_defaults=True)


# --- Credential helper protocol ---


class HelperCredentials(BaseModel):
    """Payload of the credential-helper protocol.

    ``store`` reads it from stdin and ``get`` prints it to stdout.  A
    ``Username`` of :data:`TOKEN_USERNAME` marks ``Secret`` as a refresh
    token rather than a password.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    server_url: str = Field(default="", alias="ServerURL")
    username: str = Field(default="", alias="Username")
    secret: str = Field(default="", alias="Secret", repr=False)


TOKEN_USERNAME = "<token>"


# --- Options ---


class StoreOptions(BaseModel):
    """Options for :func:`~regcreds.stores.new_store`.

    Attributes:
        allow_plaintext_put: Allow ``put`` to write credentials into the
            config file in plaintext when no helper is configured.
        detect_default_native_store: When the config file has no
            authentication configured at all, look for the platform's
            default helper on ``PATH`` and use it as ``credsStore``.
    """

    allow_plaintext_put: bool = False
    detect_default_native_store: bool = True
