"""Credential store backed by a native ``docker-credential-*`` helper.

The helper keeps secrets in the platform keychain (``osxkeychain`` on
macOS, ``wincred`` on Windows, ``pass`` or ``secretservice`` on Linux) or
wherever else a third-party helper chooses.  The protocol has no slot for
a refresh token, so one is stored with the sentinel username ``<token>``
and the token itself as the secret.

Reference: https://github.com/docker/docker-credential-helpers
"""

from __future__ import annotations

import json
import logging
import platform
import shutil
from typing import Optional

from pydantic import ValidationError

from regcreds.context import Context, check
from regcreds.exceptions import CredentialsNotFoundError, HelperExecutionError
from regcreds.executer import Executer, HelperExecuter
from regcreds.models import EMPTY_CREDENTIAL, TOKEN_USERNAME, Credential, HelperCredentials
from regcreds.stores.base import Store

logger = logging.getLogger(__name__)

HELPER_PREFIX = "docker-credential-"


class NativeStore(Store):
    """Keep credentials in an external credential helper.

    Args:
        helper_suffix: The helper name without the ``docker-credential-``
            prefix, e.g. ``"pass"`` or ``"osxkeychain"``.
        executer: Optional :class:`~regcreds.executer.Executer`; defaults to
            running ``docker-credential-<helper_suffix>`` from ``PATH``.
    """

    def __init__(self, helper_suffix: str, executer: Optional[Executer] = None) -> None:
        self.helper_suffix = helper_suffix
        self._executer = executer or HelperExecuter(HELPER_PREFIX + helper_suffix)

    def get(self, server_address: str, ctx: Optional[Context] = None) -> Credential:
        check(ctx)
        try:
            out = self._executer.execute("get", server_address.encode("utf-8"), ctx)
        except CredentialsNotFoundError:
            return EMPTY_CREDENTIAL

        try:
            helper_cred = HelperCredentials.model_validate(json.loads(out))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
            raise HelperExecutionError(
                f"invalid response from credential helper {self.helper_suffix}: {exc}",
                helper=HELPER_PREFIX + self.helper_suffix,
                action="get",
            ) from exc

        if helper_cred.username == TOKEN_USERNAME:
            return Credential(refresh_token=helper_cred.secret)
        return Credential(username=helper_cred.username, password=helper_cred.secret)

    def put(self, server_address: str, cred: Credential, ctx: Optional[Context] = None) -> None:
        check(ctx)
        username, secret = cred.username, cred.password
        if cred.refresh_token:
            username, secret = TOKEN_USERNAME, cred.refresh_token
        payload = HelperCredentials(
            server_url=server_address,
            username=username,
            secret=secret,
        ).model_dump_json(by_alias=True)
        self._executer.execute("store", payload.encode("utf-8"), ctx)
        logger.debug("Stored credential for %s in helper %s", server_address, self.helper_suffix)

    def delete(self, server_address: str, ctx: Optional[Context] = None) -> None:
        check(ctx)
        try:
            self._executer.execute("erase", server_address.encode("utf-8"), ctx)
        except CredentialsNotFoundError:
            logger.debug("Helper %s holds no credential for %s", self.helper_suffix, server_address)


def _platform_default_helper_suffix() -> str:
    system = platform.system()
    if system == "Darwin":
        return "osxkeychain"
    if system == "Windows":
        return "wincred"
    if shutil.which("pass"):
        return "pass"
    return "secretservice"


def get_default_helper_suffix() -> str:
    """Return the platform's default helper suffix if it is installed, else ``""``."""
    suffix = _platform_default_helper_suffix()
    if shutil.which(HELPER_PREFIX + suffix):
        return suffix
    return ""
