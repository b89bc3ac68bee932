"""Abstract base class for credential stores.

Every backend -- the plaintext config file, the in-memory map, a native
credential helper, and the composite :class:`~regcreds.stores.DynamicStore`
and :class:`~regcreds.stores.StoreWithFallbacks` -- implements the same
three-method contract defined by :class:`Store`.

A missing credential is not an error: :meth:`Store.get` returns
:data:`~regcreds.models.EMPTY_CREDENTIAL`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from regcreds.context import Context
from regcreds.models import Credential


class Store(ABC):
    """Abstract base class for credential stores.

    Subclasses provide :meth:`get`, :meth:`put` and :meth:`delete`, each
    keyed by a server address such as ``"registry.example.com"`` or
    ``"https://index.docker.io/v1/"``.  Server addresses are used verbatim:
    they are case-sensitive and never normalised by a store.

    Every method takes an optional :class:`~regcreds.context.Context`; when
    it is cancelled the method raises
    :class:`~regcreds.exceptions.OperationCancelledError` before doing any
    work.
    """

    @abstractmethod
    def get(self, server_address: str, ctx: Optional[Context] = None) -> Credential:
        """Retrieve the credential stored for *server_address*.

        Returns:
            The stored :class:`Credential`, or
            :data:`~regcreds.models.EMPTY_CREDENTIAL` when there is none.
        """
        ...

    @abstractmethod
    def put(self, server_address: str, cred: Credential, ctx: Optional[Context] = None) -> None:
        """Save *cred* for *server_address*, replacing any previous value."""
        ...

    @abstractmethod
    def delete(self, server_address: str, ctx: Optional[Context] = None) -> None:
        """Remove the credential for *server_address*.

        Deleting a credential that does not exist is a no-op.
        """
        ...
