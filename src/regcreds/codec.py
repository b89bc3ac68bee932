"""Encoding of the ``auth`` field of a Docker config entry.

The field holds ``base64("<username>:<password>")`` using the standard
alphabet with padding.  Only the first ``:`` separates the two halves, so a
password may itself contain colons.

Bytes that are not valid UTF-8 are carried through as lone surrogates
(``surrogateescape``), so such a value decodes and re-encodes unchanged.
"""

from __future__ import annotations

import base64
import binascii

from regcreds.exceptions import InvalidConfigFormatError

_ERRORS = "surrogateescape"


def encode_auth(username: str, password: str) -> str:
    """Return the base64 ``auth`` value, or ``""`` when both parts are empty."""
    if not username and not password:
        return ""
    raw = f"{username}:{password}".encode("utf-8", _ERRORS)
    return base64.b64encode(raw).decode("ascii")


def decode_auth(value: str) -> tuple[str, str]:
    """Decode an ``auth`` value into ``(username, password)``.

    Args:
        value: The base64 string found in the config file.

    Returns:
        ``("", "")`` for an empty value, otherwise the two halves split on
        the first ``:``.

    Raises:
        InvalidConfigFormatError: If the value is not valid base64 or the
            decoded bytes have no ``:`` separator.
    """
    if not value:
        return "", ""
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidConfigFormatError(f"invalid config format: failed to decode auth field: {exc}") from exc

    username, sep, password = raw.decode("utf-8", _ERRORS).partition(":")
    if not sep:
        cause = ValueError("decoded auth does not conform to the base64(username:password) format")
        raise InvalidConfigFormatError(f"invalid config format: {cause}") from cause
    return username, password
