"""Tests for store chains."""

from __future__ import annotations

from pathlib import Path

import pytest

from regcreds.exceptions import InvalidConfigFormatError
from regcreds.models import EMPTY_CREDENTIAL, Credential
from regcreds.stores import FileStore, InMemoryStore, StoreWithFallbacks, new_store_with_fallbacks


class TestStoreWithFallbacks:
    def test_primary_wins(self) -> None:
        primary, fallback = InMemoryStore(), InMemoryStore()
        primary.put("r.example.com", Credential(username="primary"))
        fallback.put("r.example.com", Credential(username="fallback"))
        chain = StoreWithFallbacks(primary, fallback)
        assert chain.get("r.example.com") == Credential(username="primary")

    def test_falls_through_in_order(self) -> None:
        stores = [InMemoryStore() for _ in range(3)]
        stores[1].put("r.example.com", Credential(username="second"))
        stores[2].put("r.example.com", Credential(username="third"))
        chain = StoreWithFallbacks(*stores)
        assert chain.get("r.example.com") == Credential(username="second")

    def test_nothing_found(self) -> None:
        chain = StoreWithFallbacks(InMemoryStore(), InMemoryStore())
        assert chain.get("r.example.com") == EMPTY_CREDENTIAL

    def test_put_and_delete_only_touch_primary(self) -> None:
        primary, fallback = InMemoryStore(), InMemoryStore()
        fallback.put("r.example.com", Credential(username="fallback"))
        chain = StoreWithFallbacks(primary, fallback)

        chain.put("r.example.com", Credential(username="new"))
        assert primary.get("r.example.com") == Credential(username="new")
        assert fallback.get("r.example.com") == Credential(username="fallback")

        chain.delete("r.example.com")
        assert primary.get("r.example.com") == EMPTY_CREDENTIAL
        assert fallback.get("r.example.com") == Credential(username="fallback")
        assert chain.get("r.example.com") == Credential(username="fallback")

    def test_error_aborts_lookup(self, write_config) -> None:
        broken = FileStore.from_path(write_config({"auths": {"r.example.com": {"auth": "!!"}}}))
        fallback = InMemoryStore()
        fallback.put("r.example.com", Credential(username="fallback"))
        with pytest.raises(InvalidConfigFormatError):
            StoreWithFallbacks(broken, fallback).get("r.example.com")

    def test_file_store_chain(self, tmp_path: Path) -> None:
        local = FileStore.from_path(tmp_path / "local.json")
        shared = InMemoryStore()
        shared.put("r.example.com", Credential(username="shared"))
        chain = new_store_with_fallbacks(local, shared)
        assert chain.get("r.example.com") == Credential(username="shared")


class TestNewStoreWithFallbacks:
    def test_no_fallbacks_returns_primary(self) -> None:
        primary = InMemoryStore()
        assert new_store_with_fallbacks(primary) is primary

    def test_with_fallbacks(self) -> None:
        primary, fallback = InMemoryStore(), InMemoryStore()
        chain = new_store_with_fallbacks(primary, fallback)
        assert isinstance(chain, StoreWithFallbacks)
        assert chain.stores == (primary, fallback)
