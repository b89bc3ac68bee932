"""Docker-style ``config.json`` handling with atomic, metadata-preserving writes.

This module handles the one piece of persistent state regcreds owns:

* **Location** -- :func:`get_config_dir` / :func:`default_config_path`
  resolve ``$DOCKER_CONFIG/config.json`` with a ``~/.docker/config.json``
  fallback.
* **Document model** -- :class:`ConfigFile` keeps every top-level field of
  the file as parsed JSON so that fields it does not understand survive a
  load/modify/save cycle, non-integer numbers included.  The ``auths``, ``credsStore`` and
  ``credHelpers`` fields are cached separately and merged back on save.
* **Atomic writes** -- :func:`_atomic_write` writes a temp file next to the
  target, copies the target's mode and ownership onto it, and renames it
  into place, writing through symlinks rather than replacing them.

There is no cross-process locking: two processes saving the same file at
the same time each produce a well-formed file, and the last rename wins.
"""

from __future__ import annotations

import json
import logging
import os
import re
import stat
import tempfile
import threading
import uuid
from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator, Optional, Union

from pydantic import TypeAdapter, ValidationError

from regcreds.exceptions import InvalidConfigFormatError
from regcreds.models import AuthConfigEntry

logger = logging.getLogger(__name__)

DOCKER_CONFIG_ENV = "DOCKER_CONFIG"
_CONFIG_DIR_NAME = ".docker"
_CONFIG_FILENAME = "config.json"

# Top-level fields of config.json that are modelled.
FIELD_AUTHS = "auths"
FIELD_CREDS_STORE = "credsStore"
FIELD_CRED_HELPERS = "credHelpers"

_AUTHS_ADAPTER = TypeAdapter(dict[str, Any])
_CREDS_STORE_ADAPTER = TypeAdapter(str)
_CRED_HELPERS_ADAPTER = TypeAdapter(dict[str, str])


# --- Paths ---


def get_config_dir() -> Path:
    """Return the Docker config directory.

    ``$DOCKER_CONFIG`` when set and non-empty, otherwise ``~/.docker``.
    The directory is not created; :meth:`ConfigFile.save` does that on the
    first write.
    """
    env_value = os.environ.get(DOCKER_CONFIG_ENV, "")
    if env_value:
        return Path(env_value)
    return Path.home() / _CONFIG_DIR_NAME


def default_config_path() -> Path:
    """Return the path of the default ``config.json``."""
    return get_config_dir() / _CONFIG_FILENAME


# --- JSON numbers ---


class _JSONNumber(Decimal):
    """A non-integer JSON number that keeps the text it was parsed from."""

    def __new__(cls, text: str) -> _JSONNumber:
        number = super().__new__(cls, text)
        number.text = text
        return number


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_document(text: str) -> Any:
    return json.loads(text, parse_float=_JSONNumber, parse_constant=_reject_constant)


def _dump_document(content: dict[str, Any]) -> str:
    """Serialise *content* as tab-indented JSON.

    Non-integer numbers are written back with the exact text they were
    read with, so ``1.10`` or ``1e400`` survive a load/save cycle.
    """
    marker = uuid.uuid4().hex
    numbers: list[str] = []

    def _default(obj: Any) -> str:
        if isinstance(obj, Decimal) and obj.is_finite():
            numbers.append(getattr(obj, "text", str(obj)))
            return f"{marker}:{len(numbers) - 1}"
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")

    data = json.dumps(content, indent="\t", ensure_ascii=False, allow_nan=False, default=_default)
    if numbers:
        data = re.sub(f'"{marker}:(\\d+)"', lambda m: numbers[int(m.group(1))], data)
    return data + "\n"


# --- Atomic file writes ---


def _resolve_target(path: Path) -> Path:
    """Follow *path* if it is a symlink so the link itself is never replaced."""
    if path.is_symlink():
        return Path(os.path.realpath(path))
    return path


def _copy_file_metadata(src: Path, dst: str) -> None:
    """Copy permission bits and ownership of *src* onto *dst*.

    When *src* does not exist yet (first write) *dst* gets ``0o600``.
    Ownership is copied best-effort: an unprivileged process cannot chown
    to another user, and that is not treated as a failure.
    """
    try:
        st = os.stat(src)
    except FileNotFoundError:
        os.chmod(dst, 0o600)
        return

    mode = stat.S_IMODE(st.st_mode) if stat.S_ISREG(st.st_mode) else 0o600
    os.chmod(dst, mode)

    if hasattr(os, "chown") and st.st_uid > 0 and st.st_gid > 0:
        try:
            os.chown(dst, st.st_uid, st.st_gid)
        except PermissionError as exc:
            logger.debug("Could not copy ownership of %s: %s", src, exc)


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as the (symlink
    resolved) target so that ``os.replace`` is an atomic rename on POSIX
    systems.  On any failure the temp file is removed and the error
    re-raised unchanged.
    """
    target = _resolve_target(path)
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        _copy_file_metadata(target, tmp_path)
        os.replace(tmp_path, target)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        logger.debug("Failed to save config file %s", target)
        raise
    logger.debug("Saved config file %s", target)


# --- Locking ---


class _ReadWriteLock:
    """Allows many concurrent readers or a single writer.

    A waiting writer blocks new readers, so a steady stream of lookups
    cannot hold off a mutation indefinitely.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writers_waiting = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writing or self._readers:
                    self._cond.wait()
            except BaseException:
                self._writers_waiting -= 1
                self._cond.notify_all()
                raise
            self._writers_waiting -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


# --- Config document ---


class ConfigFile:
    """An in-memory view of a Docker ``config.json`` bound to its path.

    Use :meth:`load` to create one.  All accessors are safe for concurrent
    use: lookups share a read lock, and every mutation holds the write lock
    for the whole update-then-save sequence, so a reader never sees a
    half-applied change and concurrent writers are serialised.

    Every mutation rewrites the whole file via :func:`_atomic_write`.

    Example::

        cfg = ConfigFile.load("~/.docker/config.json")
        entry = cfg.get_auth_entry("registry.example.com")
        cfg.set_credentials_store("pass")
    """

    def __init__(
        self,
        path: Union[str, os.PathLike[str]],
        content: Optional[dict[str, Any]] = None,
        auths: Optional[dict[str, Any]] = None,
        credentials_store: str = "",
        credential_helpers: Optional[dict[str, str]] = None,
    ) -> None:
        self._path = Path(path)
        self._lock = _ReadWriteLock()
        self._content: dict[str, Any] = content if content is not None else {}
        self._auths: dict[str, Any] = auths if auths is not None else {}
        self._credentials_store = credentials_store
        self._credential_helpers: dict[str, str] = (
            credential_helpers if credential_helpers is not None else {}
        )

    @classmethod
    def load(cls, path: Union[str, os.PathLike[str]]) -> ConfigFile:
        """Load the config file at *path*.

        A missing file is not an error: an empty document is returned and
        the file is created by the first mutation.

        Raises:
            InvalidConfigFormatError: If *path* is a directory, is not valid
                JSON, is not a JSON object, or one of the modelled fields
                has the wrong type.
            OSError: For other read failures such as missing permissions.
        """
        path = Path(path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("Config file %s does not exist, starting empty", path)
            return cls(path)
        except IsADirectoryError as exc:
            raise InvalidConfigFormatError(
                f"invalid config format: config path {path} is a directory"
            ) from exc

        try:
            content = _parse_document(text)
        except (ValueError, UnicodeDecodeError) as exc:
            raise InvalidConfigFormatError(
                f"invalid config format: failed to decode config file at {path}: {exc}"
            ) from exc
        if not isinstance(content, dict):
            raise InvalidConfigFormatError(
                f"invalid config format: config file at {path} is not a JSON object"
            )

        auths = _decode_field(content, FIELD_AUTHS, _AUTHS_ADAPTER, path) or {}
        creds_store = _decode_field(content, FIELD_CREDS_STORE, _CREDS_STORE_ADAPTER, path) or ""
        cred_helpers = _decode_field(content, FIELD_CRED_HELPERS, _CRED_HELPERS_ADAPTER, path) or {}
        return cls(
            path,
            content=content,
            auths=auths,
            credentials_store=creds_store,
            credential_helpers=cred_helpers,
        )

    @property
    def path(self) -> Path:
        """The filesystem path this document is saved to."""
        return self._path

    # ------------------------------------------------------------------ #
    # auths
    # ------------------------------------------------------------------ #

    def get_auth_entry(self, server_address: str) -> Optional[AuthConfigEntry]:
        """Return the entry stored for *server_address*, or ``None``.

        Raises:
            InvalidConfigFormatError: If the stored entry is not an object
                of string fields.
        """
        with self._lock.read():
            if server_address not in self._auths:
                return None
            raw = self._auths[server_address]
        if raw is None:
            return AuthConfigEntry()
        try:
            return AuthConfigEntry.model_validate(raw)
        except ValidationError as exc:
            raise InvalidConfigFormatError(
                f"invalid config format: failed to unmarshal auth field for {server_address}: {exc}"
            ) from exc

    def put_auth_entry(self, server_address: str, entry: AuthConfigEntry) -> None:
        """Store *entry* for *server_address* and save the file."""
        with self._lock.write():
            self._auths[server_address] = entry.to_json()
            self._save()

    def delete_auth_entry(self, server_address: str) -> None:
        """Remove the entry for *server_address* and save the file.

        A no-op, with no file write, when there is no such entry.
        """
        with self._lock.write():
            if server_address not in self._auths:
                return
            del self._auths[server_address]
            self._save()

    def server_addresses(self) -> list[str]:
        """Return the server addresses present in ``auths``, sorted."""
        with self._lock.read():
            return sorted(self._auths)

    # ------------------------------------------------------------------ #
    # credsStore / credHelpers
    # ------------------------------------------------------------------ #

    @property
    def credentials_store(self) -> str:
        """The configured ``credsStore`` helper suffix, or ``""``."""
        with self._lock.read():
            return self._credentials_store

    def set_credentials_store(self, name: str) -> None:
        """Set ``credsStore`` and save the file.  ``""`` removes the field."""
        with self._lock.write():
            self._credentials_store = name
            self._save()

    def get_credential_helper(self, server_address: str) -> str:
        """Return the ``credHelpers`` suffix for *server_address*, or ``""``."""
        with self._lock.read():
            return self._credential_helpers.get(server_address, "")

    @property
    def credential_helpers(self) -> dict[str, str]:
        """A copy of the ``credHelpers`` mapping."""
        with self._lock.read():
            return dict(self._credential_helpers)

    def is_auth_configured(self) -> bool:
        """Whether any authentication is configured in this document.

        True when ``credsStore`` is set, ``credHelpers`` is non-empty, or
        ``auths`` has at least one key (even with an empty entry).
        """
        with self._lock.read():
            return bool(self._credentials_store or self._credential_helpers or self._auths)

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def _save(self) -> None:
        """Merge the cached fields into the document and write it out.

        Must be called with the write lock held.
        """
        _set_or_omit(self._content, FIELD_AUTHS, self._auths)
        _set_or_omit(self._content, FIELD_CREDS_STORE, self._credentials_store)
        _set_or_omit(self._content, FIELD_CRED_HELPERS, self._credential_helpers)
        data = _dump_document(self._content)
        _atomic_write(self._path, data)


def _decode_field(content: dict[str, Any], field: str, adapter: TypeAdapter, path: Path) -> Any:
    """Validate one modelled top-level field; ``None`` when absent or null."""
    value = content.get(field)
    if value is None:
        return None
    try:
        return adapter.validate_python(value, strict=True)
    except ValidationError as exc:
        raise InvalidConfigFormatError(
            f"invalid config format: failed to unmarshal {field} field in {path}: {exc}"
        ) from exc


def _set_or_omit(content: dict[str, Any], field: str, value: Any) -> None:
    # empty values are dropped rather than written as "" or {}
    if value:
        content[field] = value
    else:
        content.pop(field, None)
