"""Composition of several stores into one lookup chain."""

from __future__ import annotations

from typing import Optional

from regcreds.context import Context, check
from regcreds.models import EMPTY_CREDENTIAL, Credential
from regcreds.stores.base import Store


class StoreWithFallbacks(Store):
    """A primary store followed by read-only fallbacks.

    * :meth:`get` asks each store in order and returns the first non-empty
      credential.  An error from any store aborts the lookup.
    * :meth:`put` and :meth:`delete` only touch the primary store.

    Example::

        local = new_store("./.docker/config.json")
        chain = StoreWithFallbacks(local, new_store_from_docker())
    """

    def __init__(self, primary: Store, *fallbacks: Store) -> None:
        self.stores: tuple[Store, ...] = (primary, *fallbacks)

    def get(self, server_address: str, ctx: Optional[Context] = None) -> Credential:
        check(ctx)
        for store in self.stores:
            cred = store.get(server_address, ctx)
            if cred != EMPTY_CREDENTIAL:
                return cred
        return EMPTY_CREDENTIAL

    def put(self, server_address: str, cred: Credential, ctx: Optional[Context] = None) -> None:
        self.stores[0].put(server_address, cred, ctx)

    def delete(self, server_address: str, ctx: Optional[Context] = None) -> None:
        self.stores[0].delete(server_address, ctx)


def new_store_with_fallbacks(primary: Store, *fallbacks: Store) -> Store:
    """Chain *primary* with *fallbacks*; returns *primary* itself when there are none."""
    if not fallbacks:
        return primary
    return StoreWithFallbacks(primary, *fallbacks)
