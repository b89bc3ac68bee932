"""Shared test fixtures for regcreds.

Provides isolated Docker config locations, fake ``docker-credential-*``
helper executables, output state management, and a CLI runner.  These
fixtures are automatically discovered by pytest.
"""

from __future__ import annotations

import json
import os
import stat
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

from regcreds.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time, and
    CliRunner swaps those streams for the duration of an invocation.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _isolate_docker_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``DOCKER_CONFIG`` at a temp directory so no test touches ``~/.docker``."""
    docker_dir = tmp_path / "docker-home"
    monkeypatch.setenv("DOCKER_CONFIG", str(docker_dir))
    return docker_dir


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Path of a config.json that does not exist yet."""
    return tmp_path / "config" / "config.json"


@pytest.fixture
def write_config(config_path: Path) -> Callable[[Any], Path]:
    """Write a JSON document (or raw string) to :func:`config_path`."""

    def _write(content: Any) -> Path:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            config_path.write_text(content)
        else:
            config_path.write_text(json.dumps(content))
        return config_path

    return _write


# ---------------------------------------------------------------------------
# Fake credential helpers
# ---------------------------------------------------------------------------

# A helper that keeps its credentials in a JSON file next to itself, speaking
# the docker-credential-helpers protocol.
_FAKE_HELPER = '''#!{python}
import json
import os
import sys

DB = os.path.join(os.path.dirname(os.path.abspath(__file__)), "{name}.db.json")

def load():
    if os.path.exists(DB):
        with open(DB) as f:
            return json.load(f)
    return {{}}

def save(data):
    with open(DB, "w") as f:
        json.dump(data, f)

action = sys.argv[1]
data = load()
if action == "store":
    payload = json.loads(sys.stdin.read())
    data[payload["ServerURL"]] = {{"Username": payload["Username"], "Secret": payload["Secret"]}}
    save(data)
elif action == "get":
    server = sys.stdin.read().strip()
    if server not in data:
        sys.stdout.write("credentials not found in native keychain\\n")
        sys.exit(1)
    entry = data[server]
    sys.stdout.write(json.dumps({{"ServerURL": server, "Username": entry["Username"], "Secret": entry["Secret"]}}))
elif action == "erase":
    server = sys.stdin.read().strip()
    if server not in data:
        sys.stdout.write("credentials not found in native keychain\\n")
        sys.exit(1)
    del data[server]
    save(data)
else:
    sys.stdout.write("unknown action: " + action)
    sys.exit(1)
'''


@pytest.fixture
def helper_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A directory prepended to ``PATH`` for fake helper executables."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    return bin_dir


@pytest.fixture
def write_script(helper_dir: Path) -> Callable[[str, str], Path]:
    """Write an executable Python script named *name* into :func:`helper_dir`."""

    def _write(name: str, body: str) -> Path:
        path = helper_dir / name
        path.write_text(f"#!{sys.executable}\n{body}")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _write


@pytest.fixture
def fake_helper(helper_dir: Path) -> Callable[[str], Path]:
    """Install a working ``docker-credential-<suffix>`` backed by a JSON file.

    Returns a factory taking the suffix and returning the helper's
    database path, which tests may inspect.
    """

    def _install(suffix: str) -> Path:
        name = f"docker-credential-{suffix}"
        path = helper_dir / name
        path.write_text(_FAKE_HELPER.format(python=sys.executable, name=name))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return helper_dir / f"{name}.db.json"

    return _install


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
