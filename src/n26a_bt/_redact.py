"""Masking of secrets in debug log output.

Two shapes reach the DEBUG logs: flat request header dicts (which carry
``Authorization: Bearer ...``) and the decoded login response body
(``{"message": ..., "token": {...}}``).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_SECRET_KEYS: frozenset[str] = frozenset({"password", "token", "authorization", "cookie"})

_MASK = "<redacted>"


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of *value* with secret fields masked.

    Mapping keys are matched case-insensitively, so header names in any
    casing are covered. Nested mappings are walked; long strings are
    truncated to *max_string* characters.
    """
    if isinstance(value, Mapping):
        return {
            str(key): _MASK if str(key).lower() in _SECRET_KEYS else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, str) and len(value) > max_string:
        return f"{value[:max_string]}…<truncated>"
    return value
