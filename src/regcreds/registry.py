"""Registry login and logout on top of a credential store.

:func:`login` verifies a credential by pinging the registry's ``/v2/``
endpoint and then saves it; :func:`logout` removes it.  Both apply the
Docker CLI's key convention for Docker Hub: credentials for ``docker.io``
live under ``https://index.docker.io/v1/``.  :func:`credential_func` applies
the same mapping in reverse for the ``registry-1.docker.io`` host that
actually issues authentication challenges.

The ping understands the two schemes registries use on ``/v2/``: HTTP
Basic, and Bearer tokens obtained from the realm named in the
``WWW-Authenticate`` challenge.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Protocol

import httpx

from regcreds.codec import encode_auth
from regcreds.context import Context, check
from regcreds.exceptions import (
    AuthError,
    LoginError,
    LogoutError,
    OperationCancelledError,
    RegcredsError,
    RegistryError,
)
from regcreds.models import EMPTY_CREDENTIAL, Credential
from regcreds.stores.base import Store

logger = logging.getLogger(__name__)

DOCKER_HUB_REGISTRY = "docker.io"
DOCKER_HUB_HOSTNAME = "registry-1.docker.io"
DOCKER_HUB_SERVER_ADDRESS = "https://index.docker.io/v1/"

_DEFAULT_TIMEOUT = 30.0
_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


def server_address_from_registry(registry: str) -> str:
    """Return the store key for a registry name as typed by a user."""
    if registry == DOCKER_HUB_REGISTRY:
        return DOCKER_HUB_SERVER_ADDRESS
    return registry


def server_address_from_hostname(hostname: str) -> str:
    """Return the store key for the host that sent an authentication challenge."""
    if hostname == DOCKER_HUB_HOSTNAME:
        return DOCKER_HUB_SERVER_ADDRESS
    return hostname


def credential_func(store: Store) -> Callable[..., Credential]:
    """Return ``f(hostname, ctx=None)`` looking up the credential for a challenge host.

    An empty hostname yields :data:`~regcreds.models.EMPTY_CREDENTIAL`
    without consulting the store.
    """

    def _credential(hostname: str, ctx: Optional[Context] = None) -> Credential:
        if not hostname:
            return EMPTY_CREDENTIAL
        return store.get(server_address_from_hostname(hostname), ctx)

    return _credential


class Pinger(Protocol):
    """Anything :func:`login` can verify a credential against."""

    registry: str

    def ping(self, cred: Credential, ctx: Optional[Context] = None) -> None: ...


class RegistryClient:
    """Minimal client for checking a credential against a registry.

    Args:
        registry: Registry name, e.g. ``"ghcr.io"`` or ``"localhost:5000"``.
            ``"docker.io"`` is contacted at ``registry-1.docker.io``.
        plain_http: Use ``http://`` instead of ``https://``.
        client: Optional :class:`httpx.Client` to reuse (its transport is
            what tests replace).  A short-lived client is created per ping
            otherwise.
        timeout: Request timeout in seconds when the context has no
            deadline.
    """

    def __init__(
        self,
        registry: str,
        plain_http: bool = False,
        client: Optional[httpx.Client] = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self.registry = registry
        self.plain_http = plain_http
        self._client = client
        self._timeout = timeout

    @property
    def host(self) -> str:
        """The host actually contacted."""
        if self.registry == DOCKER_HUB_REGISTRY:
            return DOCKER_HUB_HOSTNAME
        return self.registry

    @property
    def base_url(self) -> str:
        scheme = "http" if self.plain_http else "https"
        return f"{scheme}://{self.host}"

    def ping(self, cred: Credential, ctx: Optional[Context] = None) -> None:
        """Check that *cred* is accepted by ``GET /v2/``.

        Raises:
            AuthError: If the registry rejects the credential.
            RegistryError: On network failures or unexpected status codes.
            OperationCancelledError: If *ctx* is cancelled.
        """
        check(ctx)
        timeout = self._timeout
        if ctx is not None and ctx.remaining() is not None:
            timeout = ctx.remaining()

        if self._client is not None:
            self._ping(self._client, cred, timeout)
            return
        with httpx.Client(follow_redirects=True) as client:
            self._ping(client, cred, timeout)

    def _ping(self, client: httpx.Client, cred: Credential, timeout: float) -> None:
        url = f"{self.base_url}/v2/"
        response = self._send(client, "GET", url, timeout, headers=_direct_auth_headers(cred))
        if response.status_code == 401:
            challenge = response.headers.get("www-authenticate", "")
            if challenge.lower().startswith("bearer ") and not cred.access_token:
                token = self._fetch_token(client, challenge, cred, timeout)
                response = self._send(
                    client, "GET", url, timeout, headers={"Authorization": f"Bearer {token}"}
                )
        self._raise_for_status(response)
        logger.debug("Ping to %s succeeded", url)

    def _fetch_token(self, client: httpx.Client, challenge: str, cred: Credential, timeout: float) -> str:
        """Exchange *cred* for a bearer token at the challenge's realm."""
        params = dict(_CHALLENGE_PARAM.findall(challenge))
        realm = params.get("realm")
        if not realm:
            raise AuthError(f"registry {self.registry} sent a bearer challenge without a realm")

        if cred.refresh_token:
            data = {
                "grant_type": "refresh_token",
                "refresh_token": cred.refresh_token,
                "service": params.get("service", ""),
                "client_id": "regcreds",
            }
            if params.get("scope"):
                data["scope"] = params["scope"]
            response = self._send(client, "POST", realm, timeout, data=data)
        else:
            query = {k: v for k, v in params.items() if k in ("service", "scope")}
            auth = (cred.username, cred.password) if cred.username or cred.password else None
            response = self._send(client, "GET", realm, timeout, params=query, auth=auth)

        self._raise_for_status(response)
        try:
            body = response.json()
        except ValueError as exc:
            raise RegistryError(f"invalid token response from {realm}: {exc}") from exc
        token = None
        if isinstance(body, dict):
            token = body.get("access_token") or body.get("token")
        if not token:
            raise RegistryError(f"token response from {realm} contains no token")
        return token

    def _send(self, client: httpx.Client, method: str, url: str, timeout: float, **kwargs) -> httpx.Response:
        try:
            return client.request(method, url, timeout=timeout, **kwargs)
        except httpx.HTTPError as exc:
            raise RegistryError(f"failed to reach registry {self.registry}: {exc}") from exc

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            raise AuthError(f"registry {self.registry} rejected the credential (401 Unauthorized)")
        if not response.is_success:
            raise RegistryError(
                f"registry {self.registry} returned HTTP {response.status_code} for {response.request.url}"
            )


def _direct_auth_headers(cred: Credential) -> dict[str, str]:
    if cred.access_token:
        return {"Authorization": f"Bearer {cred.access_token}"}
    if cred.username or cred.password:
        return {"Authorization": f"Basic {encode_auth(cred.username, cred.password)}"}
    return {}


def login(store: Store, registry: Pinger, cred: Credential, ctx: Optional[Context] = None) -> None:
    """Verify *cred* against *registry* and save it in *store*.

    Raises:
        LoginError: If the ping or the save fails; the underlying error is
            chained and its exit code preserved.
    """
    try:
        registry.ping(cred, ctx)
    except OperationCancelledError:
        raise
    except RegcredsError as exc:
        raise LoginError(
            f"unable to login to the registry {registry.registry}: {exc}", exit_code=exc.exit_code
        ) from exc

    server_address = server_address_from_registry(registry.registry)
    try:
        store.put(server_address, cred, ctx)
    except OperationCancelledError:
        raise
    except RegcredsError as exc:
        raise LoginError(
            f"unable to store the credential for {server_address}: {exc}", exit_code=exc.exit_code
        ) from exc
    logger.info("Login succeeded for %s", registry.registry)


def logout(store: Store, registry_name: str, ctx: Optional[Context] = None) -> None:
    """Remove the credential for *registry_name* from *store*.

    Raises:
        LogoutError: If the store fails to delete the credential.
    """
    server_address = server_address_from_registry(registry_name)
    try:
        store.delete(server_address, ctx)
    except OperationCancelledError:
        raise
    except RegcredsError as exc:
        raise LogoutError(f"unable to logout: {exc}", exit_code=exc.exit_code) from exc
    logger.info("Removed credential for %s", server_address)
