"""Credential stores for container registries.

This package provides interchangeable backends behind one
:class:`Store` contract (``get`` / ``put`` / ``delete`` keyed by server
address):

- :class:`FileStore` -- plaintext ``auths`` in a Docker ``config.json``.
- :class:`NativeStore` -- an external ``docker-credential-*`` helper.
- :class:`InMemoryStore` -- a process-local dict.
- :class:`DynamicStore` -- picks one of the above per server address from
  ``credHelpers`` / ``credsStore``.
- :class:`StoreWithFallbacks` -- searches several stores in order.

Typical usage::

    from regcreds.stores import new_store_from_docker

    store = new_store_from_docker()
    cred = store.get("registry.example.com")
"""

from regcreds.stores.base import Store
from regcreds.stores.dynamic_store import DynamicStore, new_store, new_store_from_docker
from regcreds.stores.fallback import StoreWithFallbacks, new_store_with_fallbacks
from regcreds.stores.file_store import FileStore
from regcreds.stores.memory_store import InMemoryStore
from regcreds.stores.native_store import NativeStore, get_default_helper_suffix

__all__ = [
    "DynamicStore",
    "FileStore",
    "InMemoryStore",
    "NativeStore",
    "Store",
    "StoreWithFallbacks",
    "get_default_helper_suffix",
    "new_store",
    "new_store_from_docker",
    "new_store_with_fallbacks",
]
