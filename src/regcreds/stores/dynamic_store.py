"""Per-server selection of the credential backend from ``config.json``.

For every operation :class:`DynamicStore` picks the backend for the given
server address in this order:

1. the server-specific helper in ``credHelpers``;
2. the global helper in ``credsStore``;
3. the platform's default helper, when the config file has no
   authentication configured at all and the helper is installed;
4. the plaintext ``auths`` field of the config file itself.

When case 3 is used, the first successful :meth:`DynamicStore.put` records
the detected helper as ``credsStore`` so later runs use it directly.

References:
    - https://docs.docker.com/engine/reference/commandline/login/#credentials-store
    - https://docs.docker.com/engine/reference/commandline/cli/#docker-cli-configuration-file-configjson-properties
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Optional, Union

from regcreds.config import ConfigFile, default_config_path
from regcreds.context import Context, check
from regcreds.models import Credential, StoreOptions
from regcreds.stores.base import Store
from regcreds.stores.file_store import FileStore
from regcreds.stores.native_store import NativeStore, get_default_helper_suffix

logger = logging.getLogger(__name__)


class DynamicStore(Store):
    """Dispatch each call to a native helper or the config file.

    The choice is re-evaluated on every call, so helpers added to the
    config document take effect immediately.  Only two things are
    computed once per instance: the detected default helper and the
    :class:`~regcreds.stores.file_store.FileStore` wrapper.

    Args:
        config: The loaded config document.
        options: Store options; defaults to :class:`StoreOptions()`.
        native_store_factory: Builds the store for a helper suffix.
            Defaults to :class:`~regcreds.stores.native_store.NativeStore`.
    """

    def __init__(
        self,
        config: ConfigFile,
        options: Optional[StoreOptions] = None,
        native_store_factory: Callable[[str], Store] = NativeStore,
    ) -> None:
        self.config = config
        self.options = options or StoreOptions()
        self._native_store_factory = native_store_factory
        self._lock = threading.Lock()
        self._detected_creds_store: Optional[str] = None
        self._file_store: Optional[FileStore] = None
        self._persist_lock = threading.Lock()
        self._creds_store_persisted = False

    def get(self, server_address: str, ctx: Optional[Context] = None) -> Credential:
        check(ctx)
        store, _ = self._resolve(server_address)
        return store.get(server_address, ctx)

    def put(self, server_address: str, cred: Credential, ctx: Optional[Context] = None) -> None:
        check(ctx)
        store, detected = self._resolve(server_address)
        store.put(server_address, cred, ctx)
        if detected:
            self._persist_detected_creds_store()

    def delete(self, server_address: str, ctx: Optional[Context] = None) -> None:
        check(ctx)
        store, _ = self._resolve(server_address)
        store.delete(server_address, ctx)

    def select_store(self, server_address: str) -> Store:
        """Return the backend that handles *server_address* right now."""
        return self._resolve(server_address)[0]

    def get_helper_suffix(self, server_address: str) -> str:
        """Return the helper suffix used for *server_address*, or ``""`` for the file store."""
        return self._helper_suffix(server_address)[0]

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def _resolve(self, server_address: str) -> tuple[Store, bool]:
        helper, detected = self._helper_suffix(server_address)
        if helper:
            logger.debug("Using credential helper %s for %s", helper, server_address)
            return self._native_store_factory(helper), detected
        logger.debug("Using config file %s for %s", self.config.path, server_address)
        return self._get_file_store(), False

    def _helper_suffix(self, server_address: str) -> tuple[str, bool]:
        """Return ``(suffix, came_from_detection)`` for *server_address*."""
        helper = self.config.get_credential_helper(server_address)
        if helper:
            return helper, False
        creds_store = self.config.credentials_store
        if creds_store:
            return creds_store, False
        detected = self._get_detected_creds_store()
        return detected, bool(detected)

    def _get_detected_creds_store(self) -> str:
        with self._lock:
            if self._detected_creds_store is None:
                self._detected_creds_store = ""
                if self.options.detect_default_native_store and not self.config.is_auth_configured():
                    self._detected_creds_store = get_default_helper_suffix()
                    if self._detected_creds_store:
                        logger.debug("Detected default credential helper %s", self._detected_creds_store)
            return self._detected_creds_store

    def _get_file_store(self) -> FileStore:
        with self._lock:
            if self._file_store is None:
                self._file_store = FileStore(
                    self.config,
                    disable_put=not self.options.allow_plaintext_put,
                )
            return self._file_store

    def _persist_detected_creds_store(self) -> None:
        with self._persist_lock:
            if self._creds_store_persisted:
                return
            self._creds_store_persisted = True
            helper = self._detected_creds_store
            if helper:
                self.config.set_credentials_store(helper)
                logger.info("Saved credsStore %s to %s", helper, self.config.path)


def new_store(
    config_path: Union[str, os.PathLike[str]],
    options: Optional[StoreOptions] = None,
) -> DynamicStore:
    """Return a :class:`DynamicStore` over the config file at *config_path*.

    Raises:
        InvalidConfigFormatError: If the file exists but is malformed.
    """
    return DynamicStore(ConfigFile.load(config_path), options)


def new_store_from_docker(options: Optional[StoreOptions] = None) -> DynamicStore:
    """Return a :class:`DynamicStore` over the default Docker config file.

    Uses ``$DOCKER_CONFIG/config.json`` when ``DOCKER_CONFIG`` is set,
    ``~/.docker/config.json`` otherwise.
    """
    return new_store(default_config_path(), options)
