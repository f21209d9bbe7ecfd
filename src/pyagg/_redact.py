"""Helpers for safe debug logging.

Content sources can submit arbitrarily large readings. This module
provides a small utility to bound what ends up in DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pyagg.models.reading import Reading


def summarize_for_log(value: Any, *, max_string: int = 128, max_fields: int = 16, _depth: int = 0) -> Any:
    """Return a bounded copy of *value* suitable for debug logs."""
    if _depth > 8:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, Reading):
        value = value.as_dict()

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        summarized: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= max_fields:
                summarized["…"] = f"<{len(value) - max_fields} more>"
                break
            summarized[str(k)] = summarize_for_log(
                v, max_string=max_string, max_fields=max_fields, _depth=_depth + 1
            )
        return summarized

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [
            summarize_for_log(v, max_string=max_string, max_fields=max_fields, _depth=_depth + 1)
            for v in value[:max_fields]
        ]

    return repr(value)
