"""Helpers for safe debug logging.

Owner-API payloads carry the vehicle's ``tokens`` list and GPS position, and
auth responses carry bearer and refresh tokens. Everything dumped at DEBUG
level goes through :func:`redact_for_log` first.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_REDACTED = "<redacted>"

_CREDENTIAL_KEYS: frozenset[str] = frozenset(
    {"password", "email", "client_secret", "authorization", "cookie", "tokens"}
)

# drive_state position fields
_LOCATION_KEYS: frozenset[str] = frozenset(
    {"latitude", "longitude", "native_latitude", "native_longitude", "corrected_latitude", "corrected_longitude"}
)

_MAX_DEPTH = 20


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    if key in _CREDENTIAL_KEYS or key in _LOCATION_KEYS:
        return True
    return key in {"token", "authtoken"} or key.endswith("_token")


def _redact_mapping(value: Mapping[Any, Any], max_string: int, depth: int) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for k, v in value.items():
        key = str(k)
        out[key] = _REDACTED if _is_sensitive(key) else redact_for_log(v, max_string=max_string, _depth=depth + 1)
    return out


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with credentials and coordinates masked.

    Long strings are cut to *max_string* characters and raw bytes are
    replaced by their length.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if isinstance(value, Mapping):
        return _redact_mapping(value, max_string, _depth)
    if isinstance(value, (list, tuple)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if value is None or isinstance(value, (int, float)):
        return value
    return repr(value)
