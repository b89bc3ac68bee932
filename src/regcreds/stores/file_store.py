"""Plaintext credential store backed by the ``auths`` field of ``config.json``.

Credentials are written in the Docker format: username and password
base64-encoded into ``auth``, refresh token as ``identitytoken`` and access
token as ``registrytoken``.  Nothing is encrypted, which is why
:class:`~regcreds.stores.DynamicStore` disables :meth:`FileStore.put` unless
plaintext storage was explicitly allowed.
"""

from __future__ import annotations

import logging
import os
from typing import Optional, Union

from regcreds.config import ConfigFile
from regcreds.context import Context, check
from regcreds.exceptions import PlaintextPutDisabledError
from regcreds.models import EMPTY_CREDENTIAL, AuthConfigEntry, Credential
from regcreds.stores.base import Store

logger = logging.getLogger(__name__)


class FileStore(Store):
    """Keep credentials in plaintext in a Docker config file.

    Args:
        config: The loaded config document.  Several stores may share one
            :class:`~regcreds.config.ConfigFile`; its lock serialises them.

    Attributes:
        disable_put: When ``True``, :meth:`put` raises
            :class:`~regcreds.exceptions.PlaintextPutDisabledError` without
            touching the file.

    Example::

        store = FileStore.from_path("/tmp/config.json")
        store.put("registry.example.com", Credential(username="u", password="p"))
    """

    def __init__(self, config: ConfigFile, disable_put: bool = False) -> None:
        self.config = config
        self.disable_put = disable_put

    @classmethod
    def from_path(cls, config_path: Union[str, os.PathLike[str]]) -> FileStore:
        """Load *config_path* and return a store over it."""
        return cls(ConfigFile.load(config_path))

    def get(self, server_address: str, ctx: Optional[Context] = None) -> Credential:
        check(ctx)
        entry = self.config.get_auth_entry(server_address)
        if entry is None:
            return EMPTY_CREDENTIAL
        return entry.to_credential()

    def put(self, server_address: str, cred: Credential, ctx: Optional[Context] = None) -> None:
        if self.disable_put:
            raise PlaintextPutDisabledError()
        check(ctx)
        self.config.put_auth_entry(server_address, AuthConfigEntry.from_credential(cred))
        logger.debug("Stored plaintext credential for %s in %s", server_address, self.config.path)

    def delete(self, server_address: str, ctx: Optional[Context] = None) -> None:
        check(ctx)
        self.config.delete_auth_entry(server_address)
