"""Helpers for safe debug logging.

Store records carry personal data: the configured email address, GPS
coordinates, photo handles and email bodies.  :func:`redact_for_log`
returns a copy that is safe to emit in DEBUG logs:

* email addresses anywhere in a string keep only their first character
  and domain (``a***@example.com``)
* coordinates are rounded to two decimals (roughly 1 km)
* photo handles and email bodies are replaced entirely
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

_EMAIL_RE = re.compile(r"([A-Za-z0-9._%+-])[A-Za-z0-9._%+-]*@([A-Za-z0-9.-]+)")

_HIDDEN_KEYS: frozenset[str] = frozenset({"uri", "body"})
_COORDINATE_KEYS: frozenset[str] = frozenset({"lat", "lng", "latitude", "longitude"})


def mask_email(text: str) -> str:
    """Mask every email address found in *text*."""
    return _EMAIL_RE.sub(r"\1***@\2", text)


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        masked = mask_email(value)
        if len(masked) > max_string:
            return f"{masked[:max_string]}…<truncated>"
        return masked

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _HIDDEN_KEYS:
                redacted[key] = "<redacted>"
            elif lowered in _COORDINATE_KEYS and isinstance(v, (int, float)) and not isinstance(v, bool):
                redacted[key] = round(float(v), 2)
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
