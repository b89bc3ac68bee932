"""Tests for the package docstring."""

from __future__ import annotations

import json
import textwrap
from pathlib import Path

import pytest

import regcreds
from regcreds.stores import dynamic_store as dynamic_module


def test_typical_usage_example_runs(monkeypatch: pytest.MonkeyPatch, _isolate_docker_config: Path) -> None:
    monkeypatch.setattr(dynamic_module, "get_default_helper_suffix", lambda: "")
    example = regcreds.__doc__.split("Typical usage::")[1].split("Modules:")[0]

    exec(textwrap.dedent(example), {})

    saved = json.loads((_isolate_docker_config / "config.json").read_text())
    assert saved == {"auths": {"registry.example.com": {"auth": "dTpw"}}}
