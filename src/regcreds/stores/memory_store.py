"""In-memory credential store."""

from __future__ import annotations

import threading
from typing import Optional

from regcreds.context import Context, check
from regcreds.models import EMPTY_CREDENTIAL, Credential
from regcreds.stores.base import Store


class InMemoryStore(Store):
    """A thread-safe store that keeps credentials in a dict.

    Useful as a fallback for process-local credentials and as a test double.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[str, Credential] = {}

    def get(self, server_address: str, ctx: Optional[Context] = None) -> Credential:
        check(ctx)
        with self._lock:
            return self._store.get(server_address, EMPTY_CREDENTIAL)

    def put(self, server_address: str, cred: Credential, ctx: Optional[Context] = None) -> None:
        check(ctx)
        with self._lock:
            self._store[server_address] = cred

    def delete(self, server_address: str, ctx: Optional[Context] = None) -> None:
        check(ctx)
        with self._lock:
            self._store.pop(server_address, None)
